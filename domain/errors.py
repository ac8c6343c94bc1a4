"""
Domain: error kinds and operation results.

Every aggregate operation reports failure as a value: it returns a `Result`
holding either the produced value or a `SaleError`. Callers inspect
`result.error.kind` instead of relying on exceptions unwinding the stack.

`SaleError` is still an exception so that `Result.unwrap()` and invariant
checks on direct construction can raise it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    INVALID_ARGUMENT = "InvalidArgument"
    OUT_OF_RANGE = "OutOfRange"
    INVALID_STATE = "InvalidState"
    NOT_FOUND = "NotFound"
    CONFLICT = "Conflict"


class SaleError(Exception):
    """A failed sale operation, tagged with its semantic kind."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __repr__(self) -> str:
        return f"SaleError({self.kind.value}, {self.message!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SaleError):
            return NotImplemented
        return self.kind == other.kind and self.message == other.message

    def __hash__(self) -> int:
        return hash((self.kind, self.message))


def invalid_argument(message: str) -> SaleError:
    return SaleError(ErrorKind.INVALID_ARGUMENT, message)


def out_of_range(message: str) -> SaleError:
    return SaleError(ErrorKind.OUT_OF_RANGE, message)


def invalid_state(message: str) -> SaleError:
    return SaleError(ErrorKind.INVALID_STATE, message)


def not_found(message: str) -> SaleError:
    return SaleError(ErrorKind.NOT_FOUND, message)


def conflict(message: str) -> SaleError:
    return SaleError(ErrorKind.CONFLICT, message)


@dataclass(frozen=True, slots=True)
class Result(Generic[T]):
    """
    Outcome of a domain or service operation.

    Exactly one of `value` / `error` is meaningful: when `error` is None the
    operation succeeded (value may legitimately be None for operations that
    produce nothing).
    """

    value: Optional[T] = None
    error: Optional[SaleError] = None

    @staticmethod
    def success(value: Optional[T] = None) -> "Result[T]":
        return Result(value=value, error=None)

    @staticmethod
    def failure(error: SaleError) -> "Result[T]":
        return Result(value=None, error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> Optional[ErrorKind]:
        """Error kind of a failed result, None on success."""

        return self.error.kind if self.error is not None else None

    def unwrap(self) -> T:
        """Return the value, raising the carried SaleError on failure."""

        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


__all__ = [
    "ErrorKind",
    "SaleError",
    "Result",
    "invalid_argument",
    "out_of_range",
    "invalid_state",
    "not_found",
    "conflict",
]
