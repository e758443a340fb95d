# Overview: Transaction scoping, row locking and retry helpers shared by the services.

from __future__ import annotations

import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    Stock debits do not rely on it; they use a conditional UPDATE instead.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1, session=None):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts).
    """
    session = session or db.session
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError):
            session.rollback()
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))


def run_in_transaction(func, *, session=None, attempts: int = 3, backoff_base: float = 0.1):
    """
    Run func(session) as one unit of work.

    The session handle is passed explicitly so every write inside func lands
    in the same transaction. Commits when func returns; rolls back on any
    exception (business errors included) and re-raises. Concurrency failures
    are retried from the start with a clean session.
    """
    session = session or db.session

    def _op():
        try:
            result = func(session)
            session.commit()
        except Exception:
            session.rollback()
            raise
        return result

    return run_with_retry(_op, attempts=attempts, backoff_base=backoff_base, session=session)
