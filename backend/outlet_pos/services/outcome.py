# Overview: Explicit success/failure results shared by the service layer.

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Generic, Optional, TypeVar

"""
Failure semantics (authoritative)

- Services return Outcome values; domain failures are NOT raised across the
  service boundary.
- A failed Outcome returned from inside a unit of work rolls that unit back
  (see unit_of_work.run_in_transaction).
- Validation errors raised by value objects and store errors raised by
  SQLAlchemy are converted to INVALID_CONSTRUCTION / PERSISTENCE_FAILURE at
  the unit-of-work edge, so callers see one wrapped failure.
"""

T = TypeVar("T")


class ErrorKind(str, enum.Enum):
    NOT_FOUND = "not_found"
    INSUFFICIENT_STOCK = "insufficient_stock"
    INSUFFICIENT_BATCH_STOCK = "insufficient_batch_stock"
    INVALID_CONSTRUCTION = "invalid_construction"
    INSUFFICIENT_CASH = "insufficient_cash"
    PAYMENT_DECLINED = "payment_declined"
    PERSISTENCE_FAILURE = "persistence_failure"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    message: str
    details: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"error": self.message, "kind": self.kind.value, "details": self.details}


class OperationFailed(Exception):
    """Raised by Outcome.unwrap() for callers that prefer exceptions (CLI, scripts)."""
    def __init__(self, failure: Failure):
        super().__init__(failure.message)
        self.failure = failure
        self.details = failure.details

    @property
    def kind(self) -> ErrorKind:
        return self.failure.kind


@dataclass(frozen=True)
class Outcome(Generic[T]):
    value: Optional[T] = None
    failure: Optional[Failure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, kind: ErrorKind, message: str, **details: Any) -> "Outcome[T]":
        return cls(failure=Failure(kind=kind, message=message, details=details))

    @classmethod
    def from_failure(cls, failure: Failure) -> "Outcome[T]":
        return cls(failure=failure)

    def unwrap(self) -> T:
        if self.failure is not None:
            raise OperationFailed(self.failure)
        return self.value
