"""Comprehension sugar over Try.

Query-style helpers (select, select_many, where) and generator-based ``do``
notation for linear multi-step pipelines: feed each success into the next
fallible step, short-circuit on the first failure. Everything here is built
from Try.map, Try.bind and Try.where; ``do`` unrolls the bind chain into a loop.

Example:
    >>> from fallible import create, do
    >>>
    >>> @do
    ... def total(a: str, b: str):
    ...     x = yield create(lambda: int(a))
    ...     y = yield create(lambda: int(b))
    ...     return x + y
    >>>
    >>> total("1", "2")
    Success(3)
    >>> total("1", "two").is_failure
    True
"""

from __future__ import annotations

from functools import wraps
from typing import TYPE_CHECKING, Any, Callable, ParamSpec, TypeVar, cast, overload

from .errors import ContractViolation
from .result import Try, lift_value

if TYPE_CHECKING:
    from collections.abc import Generator

T = TypeVar("T")
U = TypeVar("U")
V = TypeVar("V")
R = TypeVar("R")
P = ParamSpec("P")


def select(source: Try[T], project: Callable[[T], U]) -> Try[U]:
    """Project the success value. Same as ``source.map(project)``."""
    return source.map(project)


@overload
def select_many(source: Try[T], project: Callable[[T], Try[U]]) -> Try[U]: ...
@overload
def select_many(source: Try[T], project: Callable[[T], Try[U]], selector: Callable[[T, U], V]) -> Try[V]: ...


def select_many(
    source: Try[T],
    project: Callable[[T], Try[U]],
    selector: Callable[[T, U], V] | None = None,
) -> Try[U] | Try[V]:
    """Bind ``project`` and optionally combine both values with ``selector``.

    ``select_many(x, f, g)`` is ``x.bind(lambda a: f(a).map(lambda b: g(a, b)))``:
    ``project`` is trusted like any bind callback, ``selector`` runs under map's
    capture.
    """
    if selector is None:
        return source.bind(project)
    combine = selector
    return source.bind(lambda a: project(a).map(lambda b: combine(a, b)))


def where(source: Try[T], predicate: Callable[[T], bool]) -> Try[T]:
    """Filter the success value. Same as ``source.where(predicate)``."""
    return source.where(predicate)


def do(func: Callable[P, Generator[Try[Any], Any, R]]) -> Callable[P, Try[R]]:
    """Decorator: run a generator as a chain of binds.

    Each yielded Try is bound; its value is sent back into the generator. The
    first Failure ends the chain (the generator is closed) and becomes the
    result. The generator's return value is wrapped as a Success.

    Raises inside the generator body propagate, as with bind.

    Raises:
        ContractViolation: If the generator yields something other than a Try
    """
    @wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> Try[R]:
        gen = func(*args, **kwargs)
        sent: Any = None
        try:
            # Iterative bind: one stack frame however many steps the block takes
            while True:
                try:
                    yielded = gen.send(sent)
                except StopIteration as stop:
                    return lift_value(stop.value)
                if not isinstance(yielded, Try):
                    raise ContractViolation(f"do-block must yield Try values, got {type(yielded).__name__}")
                if yielded.is_failure:
                    return cast(Try[R], yielded)
                sent = yielded.value
        finally:
            gen.close()
    return wrapper
