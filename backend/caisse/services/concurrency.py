# Overview: Transaction boundaries, row locking and retry for concurrent writes.

from __future__ import annotations

import time
from contextlib import contextmanager

from flask import current_app
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    The optimistic version_id columns still catch lost updates there.
    """
    return query.with_for_update()


@contextmanager
def atomic():
    """
    One all-or-nothing unit of work on the request session.

    Commits when the block exits cleanly. Any exception rolls back every
    write flushed inside the block and is re-raised unchanged.
    """
    try:
        yield db.session
        db.session.commit()
    except BaseException:
        db.session.rollback()
        raise


def run_with_retry(func, *, attempts: int | None = None, backoff_base: float = 0.05):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts). attempts counts the first try, so the
    default of 2 means "retry at most once". Anything else propagates on
    the first failure.
    """
    if attempts is None:
        attempts = current_app.config.get("INVENTORY_RETRY_ATTEMPTS", 2)
    attempts = max(1, attempts)

    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            delay = backoff_base * (2 ** attempt)
            current_app.logger.warning(
                "Concurrent write conflict (%s), retrying in %.2fs (attempt %d/%d)",
                type(exc).__name__, delay, attempt + 1, attempts,
            )
            time.sleep(delay)
