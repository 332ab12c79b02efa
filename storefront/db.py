"""Connection and transaction helpers for the hand-written SQL workflows."""
import logging
import time
from contextlib import contextmanager

import sqlalchemy as sa
from flask import current_app
from sqlalchemy.exc import DBAPIError

from storefront.extensions import db

logger = logging.getLogger(__name__)


@contextmanager
def transaction(engine=None):
    """Yield a pooled connection inside a transaction.

    Commits on normal exit, rolls back and re-raises on any exception, and
    always returns the connection to the pool.
    """
    engine = engine or db.engine
    connection = engine.connect()
    trans = connection.begin()
    try:
        yield connection
        trans.commit()
    except Exception:
        trans.rollback()
        raise
    finally:
        connection.close()


def is_deadlock(error):
    if not isinstance(error, DBAPIError):
        return False
    message = str(getattr(error, "orig", error)).lower()
    return "deadlock" in message


def db_operation(operation, retries=None, backoff=None):
    """Run ``operation(connection)`` in a transaction, retrying deadlocks.

    Only deadlocks are retried; every other error propagates after the
    rollback done by ``transaction``.
    """
    if retries is None:
        retries = current_app.config.get("DB_DEADLOCK_RETRIES", 3)
    if backoff is None:
        backoff = current_app.config.get("DB_DEADLOCK_BACKOFF", 0.1)
    retries = max(1, retries)

    for attempt in range(1, retries + 1):
        try:
            with transaction() as connection:
                return operation(connection)
        except DBAPIError as e:
            if is_deadlock(e) and attempt < retries:
                logger.warning(
                    "Deadlock detected, retrying (%d/%d)", attempt, retries
                )
                time.sleep(backoff * attempt)
                continue
            logger.error("Database operation failed: %s", e.__class__.__name__)
            raise


def insert_row(connection, table, **values):
    """Insert one row and return its generated primary key."""
    result = connection.execute(sa.insert(table).values(**values))
    return result.inserted_primary_key[0]
