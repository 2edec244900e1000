"""
Declarative base shared by every Fusion model.
"""

import uuid

from sqlalchemy import JSON, TypeDecorator
from sqlalchemy.dialects.postgresql import JSONB as PostgresJSONB
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


class JSONBCompatible(TypeDecorator):
    """
    A JSONB type that falls back to JSON for non-PostgreSQL databases (e.g., SQLite in tests).
    This allows tests to run with SQLite while production uses PostgreSQL JSONB.
    """
    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(PostgresJSONB())
        return dialect.type_descriptor(JSON())


def generate_uuid() -> str:
    return str(uuid.uuid4())


def isoformat(value):
    return value.isoformat() if value else None
