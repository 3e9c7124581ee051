"""Tests for library errors, classification and ErrorInfo."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from fallible import (
    ContractViolation,
    ErrorCode,
    ErrorInfo,
    FallibleError,
    PredicateNotSatisfied,
    Success,
    classify_exception,
    clear_settings_cache,
    create,
    lift_error,
)


def _wrapped_failure() -> None:
    try:
        int("x")
    except ValueError as exc:
        raise RuntimeError("could not load config") from exc


# ═════════════════════════════════════════════════════════════════════════════
# Exception Hierarchy
# ═════════════════════════════════════════════════════════════════════════════


def test_library_errors_share_base() -> None:
    """Library errors derive from FallibleError and a matching builtin."""
    assert issubclass(ContractViolation, FallibleError)
    assert issubclass(ContractViolation, TypeError)
    assert issubclass(PredicateNotSatisfied, FallibleError)
    assert issubclass(PredicateNotSatisfied, ValueError)


def test_predicate_not_satisfied_defaults() -> None:
    """The standard message is used unless overridden."""
    assert str(PredicateNotSatisfied(3)) == "Predicate not satisfied"
    assert str(PredicateNotSatisfied(3, "too small")) == "too small"
    assert PredicateNotSatisfied(3).value == 3


@pytest.mark.parametrize(
    ("exc", "code"),
    [
        (ZeroDivisionError(), ErrorCode.ARITHMETIC),
        (KeyError("k"), ErrorCode.NOT_FOUND),
        (IndexError(), ErrorCode.NOT_FOUND),
        (TimeoutError(), ErrorCode.TIMEOUT),
        (FileNotFoundError(), ErrorCode.IO),
        (ValueError(), ErrorCode.INVALID_VALUE),
        (TypeError(), ErrorCode.INVALID_VALUE),
        (PredicateNotSatisfied(1), ErrorCode.PREDICATE_NOT_SATISFIED),
        (ContractViolation(), ErrorCode.CONTRACT_VIOLATION),
        (RuntimeError(), ErrorCode.UNKNOWN),
    ],
)
def test_classify_exception(exc: BaseException, code: ErrorCode) -> None:
    """Exceptions map to the most specific code for their type."""
    assert classify_exception(exc) is code


# ═════════════════════════════════════════════════════════════════════════════
# ErrorInfo
# ═════════════════════════════════════════════════════════════════════════════


def test_error_info_basic_fields() -> None:
    """ErrorInfo records type, message and code."""
    info = ErrorInfo.from_exception(ZeroDivisionError("division by zero"))

    assert info.type == "ZeroDivisionError"
    assert info.message == "division by zero"
    assert info.code is ErrorCode.ARITHMETIC
    assert info.details is None  # never raised, so no traceback
    assert info.cause is None


def test_error_info_traceback_toggle() -> None:
    """Tracebacks are included by default and can be switched off."""
    def explode() -> int:
        raise RuntimeError("boom")

    error = create(explode).error
    assert error is not None

    with_tb = ErrorInfo.from_exception(error)
    without_tb = ErrorInfo.from_exception(error, include_traceback=False)

    assert with_tb.details is not None and "explode" in with_tb.details
    assert without_tb.details is None


def test_error_info_traceback_setting(monkeypatch: pytest.MonkeyPatch) -> None:
    """FALLIBLE_INCLUDE_TRACEBACK sets the default."""
    monkeypatch.setenv("FALLIBLE_INCLUDE_TRACEBACK", "false")
    clear_settings_cache()

    info = create(lambda: 1 / 0).error_info()

    assert info is not None
    assert info.details is None


def test_error_info_follows_cause_chain() -> None:
    """Explicit causes are described recursively."""
    info = create(_wrapped_failure).error_info()

    assert info is not None
    assert info.type == "RuntimeError"
    assert info.cause is not None
    assert info.cause.type == "ValueError"
    assert info.cause.code is ErrorCode.INVALID_VALUE
    assert "Caused by: ValueError" in info.render()


def test_error_info_follows_implicit_context() -> None:
    """An exception raised while handling another keeps it as cause."""
    def handler() -> None:
        try:
            {}["missing"]
        except KeyError:
            raise OSError("fallback read failed")

    info = create(handler).error_info(include_traceback=False)

    assert info is not None
    assert info.code is ErrorCode.IO
    assert info.cause is not None and info.cause.code is ErrorCode.NOT_FOUND


def test_error_info_handles_context_cycles() -> None:
    """Cyclic context chains terminate."""
    a, b = ValueError("a"), KeyError("b")
    a.__context__, b.__context__ = b, a

    info = ErrorInfo.from_exception(a, include_traceback=False)

    assert info.cause is not None
    assert info.cause.cause is None


def test_error_info_is_frozen_and_serializable() -> None:
    """ErrorInfo is immutable and round-trips through JSON."""
    info = lift_error(KeyError("k")).error_info(include_traceback=False)
    assert info is not None

    with pytest.raises(ValidationError):
        info.message = "changed"  # type: ignore[misc]
    assert ErrorInfo.model_validate_json(info.model_dump_json()) == info


def test_error_info_on_success() -> None:
    """A Success has no error description."""
    assert Success(1).error_info() is None


def test_render_without_message() -> None:
    """Messageless exceptions render just their type and code."""
    info = ErrorInfo.from_exception(StopIteration(), include_traceback=False)

    assert info.render() == "StopIteration [UNKNOWN]"
