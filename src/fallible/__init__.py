"""fallible - a Try type for composing operations that can raise.

A ``Try[T]`` holds either a computed value (Success) or the exception that
prevented computing it (Failure). Build one with a protected call or a lift,
chain combinators without unwrapping, and finish with a total ``match`` or the
explicit, re-raising ``value``.

Example:
    >>> from fallible import Try, create, lift_value
    >>>
    >>> def parse(s: str) -> Try[int]:
    ...     return create(lambda: int(s))
    >>>
    >>> result = (
    ...     parse("10")
    ...     .map(lambda n: 100 / n)
    ...     .where(lambda x: x > 1)
    ...     .recover_with(lambda err: lift_value(0.0))
    ... )
    >>> result
    Success(10.0)
    >>> parse("ten").match(lambda v: v, lambda e: type(e).__name__)
    'ValueError'
"""

from .comprehension import do, select, select_many, where
from .config import FallibleSettings, LoggingSettings, clear_settings_cache, get_settings
from .errors import (
    ContractViolation,
    ErrorCode,
    ErrorInfo,
    FallibleError,
    PredicateNotSatisfied,
    classify_exception,
)
from .log import JsonFormatter, configure_logging, get_logger, reset_logging
from .result import (
    Failure,
    Success,
    Try,
    Variant,
    collect,
    create,
    lift_error,
    lift_value,
    safe,
    sequence,
    traverse,
)

__all__ = [
    # Core type
    "Try", "Variant", "Success", "Failure",
    # Construction
    "create", "lift_value", "lift_error", "safe",
    # Collection ops
    "sequence", "traverse", "collect",
    # Comprehension sugar
    "select", "select_many", "where", "do",
    # Errors
    "FallibleError", "ContractViolation", "PredicateNotSatisfied",
    "ErrorCode", "ErrorInfo", "classify_exception",
    # Configuration & logging
    "FallibleSettings", "LoggingSettings", "get_settings", "clear_settings_cache",
    "configure_logging", "reset_logging", "get_logger", "JsonFormatter",
]
