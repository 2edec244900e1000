"""
Alembic environment for the Fusion schema.

Reads DATABASE_URL the same way the app does and targets the shared model metadata.
"""

import os
import sys
import logging

from alembic import context
from dotenv import load_dotenv
from sqlalchemy import engine_from_config, pool

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from models import db  # noqa: E402

load_dotenv()
logger = logging.getLogger('alembic.env')

config = context.config
target_metadata = db.metadata


def _database_url() -> str:
    url = os.environ.get('DATABASE_URL', 'sqlite:///fusion.db')
    if url.startswith('postgres://'):
        url = url.replace('postgres://', 'postgresql://', 1)
    return url


def run_migrations_offline():
    context.configure(
        url=_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={'paramstyle': 'named'},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    section = config.get_section(config.config_ini_section) or {}
    section['sqlalchemy.url'] = _database_url()
    connectable = engine_from_config(section, prefix='sqlalchemy.', poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    logger.info(f"Migrating {_database_url().split(':')[0]} database")
    run_migrations_online()
