"""Library errors and structured descriptions of carried exceptions.

Two kinds of errors live here:
- Contract violations and the standardized ``where`` failure, raised by the library itself
- ErrorInfo: a frozen, serializable snapshot of any exception carried by a Failure
"""

from __future__ import annotations

import traceback
from enum import StrEnum
from functools import lru_cache
from typing import Self

from pydantic import BaseModel


class FallibleError(Exception):
    """Base class for errors raised by fallible itself."""


class ContractViolation(FallibleError, TypeError):
    """An invariant of Try was broken at the call site.

    Raised immediately, never carried: lifting ``None`` as an error, a bind
    callback returning something other than a Try, mutating an instance.
    """


class PredicateNotSatisfied(FallibleError, ValueError):
    """Standard error carried by ``where`` when the predicate rejects a value."""

    __slots__ = ("value",)

    def __init__(self, value: object = None, message: str = "Predicate not satisfied") -> None:
        self.value = value
        super().__init__(message)


class ErrorCode(StrEnum):
    """Coarse classification of carried exceptions."""
    PREDICATE_NOT_SATISFIED = "PREDICATE_NOT_SATISFIED"
    CONTRACT_VIOLATION = "CONTRACT_VIOLATION"
    ARITHMETIC = "ARITHMETIC"
    INVALID_VALUE = "INVALID_VALUE"
    NOT_FOUND = "NOT_FOUND"
    TIMEOUT = "TIMEOUT"
    IO = "IO"
    UNKNOWN = "UNKNOWN"


# Ordered most specific first; TimeoutError is an OSError and both library errors are TypeError/ValueError
_TYPE_CODES: tuple[tuple[type[BaseException], ErrorCode], ...] = (
    (PredicateNotSatisfied, ErrorCode.PREDICATE_NOT_SATISFIED),
    (ContractViolation, ErrorCode.CONTRACT_VIOLATION),
    (TimeoutError, ErrorCode.TIMEOUT),
    (ArithmeticError, ErrorCode.ARITHMETIC),
    (LookupError, ErrorCode.NOT_FOUND),
    (OSError, ErrorCode.IO),
    (ValueError, ErrorCode.INVALID_VALUE),
    (TypeError, ErrorCode.INVALID_VALUE),
)


@lru_cache(maxsize=256)
def _classify_cached(exc_type: type[BaseException]) -> ErrorCode:
    """Cached classification by exception type."""
    for kind, code in _TYPE_CODES:
        if issubclass(exc_type, kind):
            return code
    return ErrorCode.UNKNOWN


def classify_exception(exc: BaseException) -> ErrorCode:
    """Map exception to error code by its type."""
    return _classify_cached(type(exc))


class ErrorInfo(BaseModel):
    """Serializable description of a carried exception.

    Captures type, message, classification and (optionally) the formatted
    traceback, following the explicit ``__cause__`` or implicit ``__context__``
    chain so the causal history survives serialization.

    Example:
        >>> info = ErrorInfo.from_exception(ZeroDivisionError("division by zero"))
        >>> info.type, info.code
        ('ZeroDivisionError', <ErrorCode.ARITHMETIC: 'ARITHMETIC'>)
    """

    model_config = {"frozen": True}

    type: str
    message: str
    code: ErrorCode = ErrorCode.UNKNOWN
    details: str | None = None
    cause: ErrorInfo | None = None

    @classmethod
    def from_exception(cls, exc: BaseException, *, include_traceback: bool | None = None) -> Self:
        """Create from exception with auto-classification.

        Args:
            exc: Exception to describe
            include_traceback: Attach the formatted traceback; defaults to the
                ``include_traceback`` setting
        """
        if include_traceback is None:
            from .config import get_settings
            include_traceback = get_settings().include_traceback
        return cls._build(exc, include_traceback, set())

    @classmethod
    def _build(cls, exc: BaseException, include_traceback: bool, seen: set[int]) -> Self:
        seen.add(id(exc))
        chained = exc.__cause__ or (None if exc.__suppress_context__ else exc.__context__)
        details = "".join(traceback.format_tb(exc.__traceback__)) if include_traceback else ""
        return cls(
            type=type(exc).__name__,
            message=str(exc),
            code=classify_exception(exc),
            details=details or None,
            cause=cls._build(chained, include_traceback, seen) if chained is not None and id(chained) not in seen else None,
        )

    def render(self) -> str:
        """Format as a human-readable report, outermost error first."""
        parts = [f"{self.type}: {self.message} [{self.code}]" if self.message else f"{self.type} [{self.code}]"]
        if self.details:
            parts.append(f"\nTraceback:\n{self.details.rstrip()}")
        if self.cause:
            parts.append(f"\nCaused by: {self.cause.render()}")
        return "".join(parts)

    __str__ = render
