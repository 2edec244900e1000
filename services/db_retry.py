"""
Transient Database Error Retry

Wraps service operations so connection drops and pooled-connection prepared
statement collisions are retried with tenacity. The session is rolled back
between attempts; anything that is not transient propagates on the first try.
"""

import os
import logging
from functools import wraps
from typing import Callable

from flask import current_app, has_app_context
from sqlalchemy.exc import DBAPIError, DisconnectionError, OperationalError
from tenacity import (
    Retrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_incrementing,
)

from models import db

logger = logging.getLogger(__name__)

# invalid_sql_statement_name, duplicate_prepared_statement
TRANSIENT_SQLSTATES = {"26000", "42P05"}

TRANSIENT_MESSAGES = (
    "prepared statement",
    "server closed the connection",
    "connection reset",
    "connection refused",
    "could not connect",
    "terminating connection",
    "ssl connection has been closed",
    "connection timed out",
)


def is_transient_db_error(exc: BaseException) -> bool:
    """True when exc is worth retrying on a fresh connection."""
    if isinstance(exc, DisconnectionError):
        return True
    if isinstance(exc, DBAPIError):
        if exc.connection_invalidated:
            return True
        pgcode = getattr(exc.orig, "pgcode", None)
        if pgcode in TRANSIENT_SQLSTATES:
            return True
    message = str(exc).lower()
    if isinstance(exc, (DBAPIError, OperationalError)) or "prepared statement" in message:
        return any(marker in message for marker in TRANSIENT_MESSAGES)
    return False


def _retry_settings():
    if has_app_context():
        attempts = current_app.config.get("DB_RETRY_ATTEMPTS")
        wait_seconds = current_app.config.get("DB_RETRY_WAIT_SECONDS")
    else:
        attempts = wait_seconds = None
    if attempts is None:
        attempts = int(os.environ.get("DB_RETRY_ATTEMPTS", "3"))
    if wait_seconds is None:
        wait_seconds = float(os.environ.get("DB_RETRY_WAIT_SECONDS", "0.2"))
    return max(1, int(attempts)), max(0.0, float(wait_seconds))


def _rollback_before_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        f"Transient database error on attempt {retry_state.attempt_number}, retrying: {exc}"
    )
    db.session.rollback()


def run_with_retry(fn: Callable, *args, **kwargs):
    """Call fn, retrying transient database errors."""
    attempts, wait_seconds = _retry_settings()
    retryer = Retrying(
        retry=retry_if_exception(is_transient_db_error),
        stop=stop_after_attempt(attempts),
        wait=wait_incrementing(start=wait_seconds, increment=wait_seconds),
        before_sleep=_rollback_before_retry,
        reraise=True,
    )
    return retryer(fn, *args, **kwargs)


def with_db_retry(fn: Callable) -> Callable:
    """
    Decorator form of run_with_retry.

    Usage:
        @with_db_retry
        def get_site_image(site_id): ...
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        return run_with_retry(fn, *args, **kwargs)
    return wrapper
