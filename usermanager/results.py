"""Outcome values returned by :class:`~usermanager.store.UserStore` operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Categories of failure a store operation can report."""

    INVALID_ARGUMENT = "InvalidArgument"
    VALIDATION_FAILED = "ValidationFailed"
    NOT_FOUND = "NotFound"
    CONFLICT = "Conflict"
    FAULT = "Fault"


@dataclass(frozen=True)
class StoreError:
    kind: ErrorKind
    message: str
    field_errors: Dict[str, List[str]] = field(default_factory=dict)


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value or a :class:`StoreError`, never both."""

    value: Optional[T] = None
    error: Optional[StoreError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(
        cls,
        kind: ErrorKind,
        message: str,
        field_errors: Optional[Dict[str, List[str]]] = None,
    ) -> "Result[T]":
        return cls(error=StoreError(kind=kind, message=message, field_errors=dict(field_errors or {})))


__all__ = ["ErrorKind", "Result", "StoreError"]
