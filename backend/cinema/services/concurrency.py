# Overview: Transaction helpers shared by the core services.

from __future__ import annotations

import time

from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import CinemaError, ConflictError, StorageError


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def run_with_retry(session, func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute func as one transaction on session.

    Any failure rolls the whole transaction back. OperationalError
    (deadlocks, lock timeouts) and StaleDataError (version_id conflicts)
    are retried with exponential backoff. Business errors propagate as-is;
    any other SQLAlchemy failure surfaces as StorageError.
    """
    for attempt in range(attempts):
        try:
            return func()
        except CinemaError:
            session.rollback()
            raise
        except StaleDataError as exc:
            session.rollback()
            if attempt >= attempts - 1:
                raise ConflictError("Record was modified concurrently, retry the request") from exc
        except OperationalError as exc:
            session.rollback()
            if attempt >= attempts - 1:
                raise StorageError("Database is busy, retry the request") from exc
        except SQLAlchemyError as exc:
            session.rollback()
            raise StorageError("Unexpected storage failure") from exc
        time.sleep(backoff_base * (2 ** attempt))
