# Overview: Locking and retry helpers for the check-then-decrement stock paths.

from __future__ import annotations

import logging
import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

logger = logging.getLogger(__name__)

# Lock waits/deadlocks (OperationalError) and version_id conflicts (StaleDataError)
RETRYABLE_ERRORS = (OperationalError, StaleDataError)


def lock_for_update(query):
    """
    Apply row-level locking to a query whose rows are about to be checked and changed.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; there the unit of work opens
    with BEGIN IMMEDIATE instead (see unit_of_work.run_in_transaction).
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Run a whole unit of work again when it lost a concurrency race.

    `func` must be self-contained (open its own session), since the failed
    attempt's session has already been rolled back and closed.
    """
    for attempt in range(attempts):
        try:
            return func()
        except RETRYABLE_ERRORS as exc:
            if attempt >= attempts - 1:
                raise
            delay = backoff_base * (2 ** attempt)
            logger.warning(
                "Retrying unit of work after %s (attempt %d/%d, sleeping %.2fs)",
                type(exc).__name__, attempt + 1, attempts, delay,
            )
            time.sleep(delay)
