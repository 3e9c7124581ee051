"""Try monad: a value or the exception that prevented computing it.

Implements a closed tagged union with the combinators needed to compose
fallible operations without try/except at every call site:
- Construction: create (protected call), lift_value, lift_error
- Elimination: match, value (unsafe), error, deconstruct, error_as
- Composition: map, bind, recover, recover_with, tap, where
- Collections: sequence, traverse, collect

Capture discipline: operations that run user code to *produce* a result
(create, map, recover, recover_with) turn any raised ``Exception`` into a
Failure. bind trusts its callback to express failure through its own Try.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from functools import wraps
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Generic,
    NoReturn,
    ParamSpec,
    TypeVar,
    cast,
    final,
)

from .errors import ContractViolation, ErrorInfo, PredicateNotSatisfied
from .log import log_capture

if TYPE_CHECKING:
    from collections.abc import Iterable
    from types import TracebackType

T = TypeVar("T")  # Success type
U = TypeVar("U")  # Mapped success type
X = TypeVar("X", bound=BaseException)
P = ParamSpec("P")

logger = logging.getLogger("fallible.result")


class Variant(StrEnum):
    """Discriminant of a Try."""
    SUCCESS = "success"
    FAILURE = "failure"


@final
class Try(Generic[T]):
    """Closed sum type holding either a value (Success) or an exception (Failure).

    Instances are immutable and only built through the constructor functions
    or as outputs of combinators.

    Examples:
        >>> create(lambda: 10 / 2)
        Success(5.0)
        >>> create(lambda: 10 / 0).is_failure
        True
        >>> Success(5).map(lambda x: x * 2).match(lambda v: v, lambda e: -1)
        10

        Chaining without unwrapping:
        >>> def parse(s: str) -> Try[int]:
        ...     return create(lambda: int(s))
        >>>
        >>> Success("21").bind(parse).map(lambda n: n * 2).value
        42
    """

    __slots__ = ("_variant", "_payload", "_traceback")
    __match_args__ = ("variant", "_payload")

    _variant: Variant
    _payload: T | BaseException
    _traceback: TracebackType | None

    def __init__(self, variant: Variant, payload: T | BaseException) -> None:
        """Private constructor. Use lift_value(), lift_error() or create() instead."""
        try:
            variant = Variant(variant)
        except (ValueError, TypeError):
            raise ContractViolation(f"Unknown Try variant: {variant!r}") from None
        if variant is Variant.FAILURE:
            if payload is None:
                raise ContractViolation("Failure requires an exception, got None")
            if not isinstance(payload, BaseException):
                raise ContractViolation(f"Failure requires an exception instance, got {type(payload).__name__}")
        object.__setattr__(self, "_variant", variant)
        object.__setattr__(self, "_payload", payload)
        # Traceback as of lifting, replayed verbatim by `value`
        object.__setattr__(
            self, "_traceback", payload.__traceback__ if isinstance(payload, BaseException) else None,
        )

    def __init_subclass__(cls, **kwargs: Any) -> NoReturn:
        raise TypeError("Try is a closed type; Success and Failure are its only variants")

    def __setattr__(self, name: str, value: object) -> NoReturn:
        raise AttributeError(f"Try is immutable; cannot set {name!r}")

    def __delattr__(self, name: str) -> NoReturn:
        raise AttributeError(f"Try is immutable; cannot delete {name!r}")

    # ─────────────────────────────────────────────────────────────────
    # Variant Checks
    # ─────────────────────────────────────────────────────────────────

    @property
    def variant(self) -> Variant:
        """Which variant is active: Variant.SUCCESS or Variant.FAILURE."""
        return self._variant

    @property
    def is_success(self) -> bool:
        """True if this is a Success."""
        return self._variant is Variant.SUCCESS

    @property
    def is_failure(self) -> bool:
        """True if this is a Failure."""
        return self._variant is Variant.FAILURE

    # ─────────────────────────────────────────────────────────────────
    # Access & Elimination
    # ─────────────────────────────────────────────────────────────────

    @property
    def value(self) -> T:
        """The success value; on Failure, re-raise the carried exception.

        This is the unsafe exit from the algebra. The exception object itself
        is raised with the traceback it carried when lifted, so handlers see
        the original raise site.

        Raises:
            BaseException: The carried exception, if this is a Failure
        """
        if self._variant is Variant.SUCCESS:
            return cast(T, self._payload)
        self._reraise()

    def _reraise(self) -> NoReturn:
        error = cast(BaseException, self._payload)
        context = error.__context__
        try:
            raise error.with_traceback(self._traceback)
        finally:
            # Raising inside an except block rebinds __context__ to the handled exception
            error.__context__ = context
            del error

    @property
    def error(self) -> BaseException | None:
        """The carried exception, or None on Success. Never raises."""
        return cast(BaseException, self._payload) if self._variant is Variant.FAILURE else None

    def value_or(self, default: T) -> T:
        """Success value or ``default``."""
        return cast(T, self._payload) if self._variant is Variant.SUCCESS else default

    def deconstruct(self, default: T | None = None) -> tuple[T | None, BaseException | None]:
        """Split into ``(value, error)`` without raising.

        Success gives ``(value, None)``; Failure gives ``(default, error)``.

        Example:
            >>> value, error = create(lambda: int("x")).deconstruct(0)
            >>> value, type(error).__name__
            (0, 'ValueError')
        """
        if self._variant is Variant.SUCCESS:
            return (cast(T, self._payload), None)
        return (default, cast(BaseException, self._payload))

    def match(
        self,
        on_success: Callable[[T], U],
        on_failure: Callable[[BaseException], U],
    ) -> U:
        """Fold both variants into one result, invoking exactly one branch.

        Example:
            >>> create(lambda: 1 / 0).match(
            ...     lambda v: f"ok: {v}",
            ...     lambda e: f"failed: {type(e).__name__}",
            ... )
            'failed: ZeroDivisionError'
        """
        if self._variant is Variant.SUCCESS:
            return on_success(cast(T, self._payload))
        return on_failure(cast(BaseException, self._payload))

    def error_as(self, kind: type[X] | tuple[type[X], ...]) -> X | None:
        """Carried exception narrowed to ``kind``, else None. Never raises."""
        if self._variant is Variant.FAILURE and isinstance(self._payload, kind):
            return cast(X, self._payload)
        return None

    def error_info(self, *, include_traceback: bool | None = None) -> ErrorInfo | None:
        """Serializable description of the carried exception, or None on Success."""
        if self._variant is Variant.SUCCESS:
            return None
        return ErrorInfo.from_exception(cast(BaseException, self._payload), include_traceback=include_traceback)

    # ─────────────────────────────────────────────────────────────────
    # Composition
    # ─────────────────────────────────────────────────────────────────

    def map(self, f: Callable[[T], U]) -> Try[U]:
        """Apply ``f`` to the value; a raise from ``f`` becomes a Failure.

        Failure short-circuits unchanged and ``f`` is never invoked.
        """
        if self._variant is Variant.FAILURE:
            return cast(Try[U], self)
        value = cast(T, self._payload)
        return _capture("map", lambda: f(value))

    def bind(self, f: Callable[[T], Try[U]]) -> Try[U]:
        """Chain an operation that already returns a Try (monadic bind).

        ``f`` is trusted: its own raises propagate to the caller. Only
        protected calls it makes internally (create, map) are captured.

        Raises:
            ContractViolation: If ``f`` returns something other than a Try
        """
        if self._variant is Variant.FAILURE:
            return cast(Try[U], self)
        return _ensure_try("bind", f(cast(T, self._payload)))

    def recover(self, f: Callable[[BaseException], T]) -> Try[T]:
        """Turn a Failure into a Success with a fallback computed from the error.

        A raise from ``f`` yields a new Failure. Success passes through and
        ``f`` is never invoked.
        """
        if self._variant is Variant.SUCCESS:
            return self
        error = cast(BaseException, self._payload)
        return _capture("recover", lambda: f(error))

    def recover_with(self, f: Callable[[BaseException], Try[U]]) -> Try[T] | Try[U]:
        """Replace a Failure with the Try returned by ``f``.

        Unlike bind, a raise escaping ``f`` is captured into a new Failure.
        Success passes through and ``f`` is never invoked.

        Raises:
            ContractViolation: If ``f`` returns something other than a Try
        """
        if self._variant is Variant.SUCCESS:
            return self
        try:
            recovered = f(cast(BaseException, self._payload))
        except Exception as exc:
            log_capture(logger, "recover_with", exc)
            return Try(Variant.FAILURE, exc)
        return _ensure_try("recover_with", recovered)

    def tap(
        self,
        on_success: Callable[[T], object] | None = None,
        on_failure: Callable[[BaseException], object] | None = None,
    ) -> Try[T]:
        """Observe the active variant through a side effect, returning self.

        Callbacks are outside the protected algebra: their raises propagate.
        """
        if self._variant is Variant.SUCCESS:
            if on_success is not None:
                on_success(cast(T, self._payload))
        elif on_failure is not None:
            on_failure(cast(BaseException, self._payload))
        return self

    def where(self, predicate: Callable[[T], bool]) -> Try[T]:
        """Keep a Success only if ``predicate`` holds for its value.

        A rejected value becomes a Failure carrying PredicateNotSatisfied.
        Failure short-circuits and ``predicate`` is never invoked.
        """
        if self._variant is Variant.FAILURE:
            return self
        value = cast(T, self._payload)
        return self if predicate(value) else Try(Variant.FAILURE, PredicateNotSatisfied(value))

    # ─────────────────────────────────────────────────────────────────
    # Dunder Methods
    # ─────────────────────────────────────────────────────────────────

    def __bool__(self) -> bool:
        """True for Success, regardless of the value's own truthiness."""
        return self._variant is Variant.SUCCESS

    def __repr__(self) -> str:
        return f"{self._variant.title()}({self._payload!r})"

    def __str__(self) -> str:
        if self._variant is Variant.SUCCESS:
            return f"Success<{self._payload}>"
        return f"Failure<{_describe(cast(BaseException, self._payload))}>"

    def __eq__(self, other: object) -> bool:
        """Successes compare values, failures compare exception identity."""
        if not isinstance(other, Try):
            return NotImplemented
        if self._variant is not other._variant:
            return False
        if self._variant is Variant.FAILURE:
            return self._payload is other._payload
        if self._payload is other._payload:
            return True
        try:
            return bool(self._payload == other._payload)
        except Exception:
            # Raising or ambiguous __eq__ (e.g. arrays): identity was already checked
            return False

    def __hash__(self) -> int:
        if self._variant is Variant.FAILURE:
            return hash((Variant.FAILURE, id(self._payload)))
        return hash((Variant.SUCCESS, self._payload))

    def __copy__(self) -> Try[T]:
        return self

    def __deepcopy__(self, memo: dict[int, object]) -> Try[T]:
        return self

    def __reduce__(self) -> tuple[object, ...]:
        return (Try, (self._variant, self._payload))


# ═════════════════════════════════════════════════════════════════════════════
# Internal Helpers
# ═════════════════════════════════════════════════════════════════════════════


def _describe(error: BaseException) -> str:
    message = str(error)
    return f"{type(error).__name__}: {message}" if message else type(error).__name__


def _capture(operation: str, thunk: Callable[[], U]) -> Try[U]:
    """Run ``thunk`` under the capture discipline."""
    try:
        return Try(Variant.SUCCESS, thunk())
    except Exception as exc:
        log_capture(logger, operation, exc)
        return Try(Variant.FAILURE, exc)


def _ensure_try(operation: str, result: object) -> Try[Any]:
    if not isinstance(result, Try):
        raise ContractViolation(f"{operation} callback must return a Try, got {type(result).__name__}")
    return result


# ═════════════════════════════════════════════════════════════════════════════
# Constructor Functions
# ═════════════════════════════════════════════════════════════════════════════


def lift_value(value: T) -> Try[T]:
    """Wrap an already-known value as a Success. Never raises."""
    return Try(Variant.SUCCESS, value)


def lift_error(error: BaseException) -> Try[Any]:
    """Wrap an already-known exception as a Failure.

    Raises:
        ContractViolation: If ``error`` is None or not an exception instance
    """
    return Try(Variant.FAILURE, error)


def create(thunk: Callable[[], T]) -> Try[T]:
    """Invoke ``thunk`` and wrap its result, or the exception it raised.

    Example:
        >>> create(lambda: int("42"))
        Success(42)
        >>> create(lambda: int("x")).error_as(ValueError) is not None
        True
    """
    return _capture("create", thunk)


def Success(value: T) -> Try[T]:  # noqa: N802
    """Construct the Success variant. Alias of lift_value."""
    return Try(Variant.SUCCESS, value)


def Failure(error: BaseException) -> Try[Any]:  # noqa: N802
    """Construct the Failure variant. Alias of lift_error."""
    return Try(Variant.FAILURE, error)


def safe(fn: Callable[P, T]) -> Callable[P, Try[T]]:
    """Decorator: make ``fn`` return a Try instead of raising.

    Example:
        >>> @safe
        ... def ratio(a: int, b: int) -> float:
        ...     return a / b
        >>> ratio(1, 0).is_failure
        True
    """
    name = getattr(fn, "__qualname__", "safe")

    @wraps(fn)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> Try[T]:
        return _capture(name, lambda: fn(*args, **kwargs))
    return wrapper


# ═════════════════════════════════════════════════════════════════════════════
# Collection Operations
# ═════════════════════════════════════════════════════════════════════════════


def sequence(results: Iterable[Try[T]]) -> Try[list[T]]:
    """Turn many Trys into one Try of a list, failing on the first Failure.

    Example:
        >>> sequence([Success(1), Success(2)])
        Success([1, 2])
    """
    values: list[T] = []
    for result in results:
        if result.is_failure:
            return cast(Try[list[T]], result)
        values.append(cast(T, result._payload))
    return Try(Variant.SUCCESS, values)


def traverse(items: Iterable[T], f: Callable[[T], Try[U]]) -> Try[list[U]]:
    """Apply ``f`` to each item and sequence the results.

    Items are consumed lazily: ``f`` is not called past the first Failure.
    """
    return sequence(_ensure_try("traverse", f(item)) for item in items)


def collect(results: Iterable[Try[T]]) -> Try[list[T]]:
    """Like sequence, but gather every Failure instead of stopping at the first.

    A single failure is returned as-is; several are combined into an
    ExceptionGroup (or BaseExceptionGroup when any is not an Exception).
    """
    values: list[T] = []
    failures: list[Try[T]] = []
    for result in results:
        if result.is_success:
            values.append(cast(T, result._payload))
        else:
            failures.append(result)
    if not failures:
        return Try(Variant.SUCCESS, values)
    if len(failures) == 1:
        return cast(Try[list[T]], failures[0])
    errors = [cast(BaseException, f._payload) for f in failures]
    return Try(Variant.FAILURE, BaseExceptionGroup(f"{len(errors)} operations failed", errors))
