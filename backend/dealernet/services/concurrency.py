# Overview: Service-layer operations for concurrency; transaction, locking and retry helpers.

from __future__ import annotations

import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    Correctness never depends on it alone: every mutation that must not
    race is also a conditional UPDATE whose matched-row count is checked.
    """
    return query.with_for_update()


def guarded_update(query, values: dict) -> int:
    """
    Run UPDATE ... WHERE <query filters> and return the matched row count.

    The WHERE clause carries the precondition (e.g. status == 'pending',
    stock >= n); a count of 0 means the precondition no longer holds.
    """
    return query.update(values, synchronize_session=False)


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB unit of work, rolling back on any failure.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts). Every other exception (including
    business-rule DomainErrors) is re-raised after the rollback.
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
        except Exception:
            db.session.rollback()
            raise
    if last_exc:
        raise last_exc
