# Overview: Transaction boundary for sales and stock movements.

from __future__ import annotations

import logging
from typing import Callable, TypeVar

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..validation import ValidationError
from .concurrency import run_with_retry
from .outcome import ErrorKind, OperationFailed, Outcome

"""
Unit-of-work invariants (authoritative)

- One call == one transaction: begin, run the work, commit or roll back.
- Commit only when the work returns normally with a successful result.
- Roll back when the work raises (the exception propagates afterwards) or
  returns a failed Outcome (which is returned unchanged).
- The session is closed on every path, including a failed rollback.
- Nested calls are not supported; the work receives the live session and
  must not open another unit of work.
"""

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DataStore:
    """
    Explicitly constructed handle to the data store.

    Built once by the app factory (or by tests) and passed to services; there
    is no module-level connection singleton.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    @classmethod
    def from_engine(cls, engine) -> "DataStore":
        # expire_on_commit=False keeps returned bills readable after the session closes
        return cls(sessionmaker(bind=engine, expire_on_commit=False))

    def open_session(self) -> Session:
        return self._session_factory()


def _begin(session: Session, *, immediate: bool) -> None:
    if immediate and session.get_bind().dialect.name == "sqlite":
        # SQLite has no row locks; take the write lock up front so that
        # check-then-decrement sequences cannot interleave.
        session.execute(text("BEGIN IMMEDIATE"))


def run_in_transaction(
    store: DataStore,
    work: Callable[[Session], T],
    *,
    immediate: bool = False,
    read_only: bool = False,
) -> T:
    session = store.open_session()
    try:
        _begin(session, immediate=immediate)
        result = work(session)
        if read_only:
            # detach first so returned objects keep their loaded state
            session.expunge_all()
            session.rollback()
        elif isinstance(result, Outcome) and not result.ok:
            session.rollback()
        else:
            session.commit()
        return result
    except BaseException:
        try:
            session.rollback()
        except SQLAlchemyError:
            logger.exception("Rollback failed")
        raise
    finally:
        session.close()


def transact(
    store: DataStore,
    work: Callable[[Session], Outcome[T]],
    *,
    immediate: bool = False,
    read_only: bool = False,
    attempts: int = 3,
) -> Outcome[T]:
    """
    Run `work` as one unit of work and fold every failure into an Outcome.

    - failed Outcome from the work          -> returned as-is (rolled back)
    - OperationFailed                        -> its Failure
    - ValidationError from value objects     -> INVALID_CONSTRUCTION
    - SQLAlchemy errors (after retries)      -> PERSISTENCE_FAILURE
    """
    try:
        return run_with_retry(
            lambda: run_in_transaction(store, work, immediate=immediate, read_only=read_only),
            attempts=attempts,
        )
    except OperationFailed as exc:
        return Outcome.from_failure(exc.failure)
    except ValidationError as exc:
        return Outcome.fail(ErrorKind.INVALID_CONSTRUCTION, str(exc))
    except SQLAlchemyError as exc:
        logger.exception("Unit of work failed")
        return Outcome.fail(
            ErrorKind.PERSISTENCE_FAILURE,
            "Failed to persist changes",
            error=type(exc).__name__,
        )
