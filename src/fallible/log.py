"""Logging integration for fallible.

The library logs through stdlib loggers under the ``fallible`` namespace and
installs no output on import. Applications opt in with ``configure_logging``:

    >>> from fallible.log import configure_logging
    >>> configure_logging(format="json", level="DEBUG")  # or FALLIBLE_LOG_* env vars

With ``FALLIBLE_LOG_CAPTURES=true`` every exception captured into a Failure is
logged at DEBUG on ``fallible.result``.
"""

from __future__ import annotations

import logging
import sys
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Literal

import orjson

from .config import get_settings

if TYPE_CHECKING:
    from typing import TextIO

ROOT_LOGGER = "fallible"

_root = logging.getLogger(ROOT_LOGGER)
_root.addHandler(logging.NullHandler())

# Handler installed by configure_logging, replaced on reconfiguration
_handler: logging.Handler | None = None

# LogRecord attributes that are not user-supplied `extra` fields
_RESERVED = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


def get_logger(name: str) -> logging.Logger:
    """Get a logger inside the fallible namespace."""
    return logging.getLogger(name if name.startswith(ROOT_LOGGER) else f"{ROOT_LOGGER}.{name}")


class JsonFormatter(logging.Formatter):
    """JSON Lines output for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "event": record.getMessage(),
            **{k: v for k, v in vars(record).items() if k not in _RESERVED},
        }
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return orjson.dumps(entry, default=repr, option=orjson.OPT_NON_STR_KEYS).decode()


_TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(
    format: Literal["text", "json"] | None = None,  # noqa: A002 - matches LoggingSettings.format
    level: str | None = None,
    *,
    stream: TextIO | None = None,
) -> logging.Handler:
    """Install a single handler on the ``fallible`` logger.

    Args:
        format: "text" (human) or "json" (machine); defaults to settings
        level: Logger level name; defaults to settings
        stream: Output stream (stderr by default)

    Returns:
        The installed handler
    """
    global _handler
    cfg = get_settings().logging
    fmt, lvl = format or cfg.format, (level or cfg.level).upper()

    handler = logging.StreamHandler(stream or sys.stderr)
    match fmt:
        case "text": handler.setFormatter(logging.Formatter(_TEXT_FORMAT))
        case "json": handler.setFormatter(JsonFormatter())
        case _: raise ValueError(f"Unknown format: {fmt}. Use 'text' or 'json'")

    if _handler is not None:
        _root.removeHandler(_handler)
    _root.addHandler(handler)
    _root.setLevel(getattr(logging, lvl, logging.WARNING))
    _handler = handler
    return handler


def reset_logging() -> None:
    """Remove the handler installed by configure_logging."""
    global _handler
    if _handler is not None:
        _root.removeHandler(_handler)
        _handler = None
    _root.setLevel(logging.NOTSET)


def log_capture(logger: logging.Logger, operation: str, exc: BaseException) -> None:
    """Record an exception captured into a Failure, if capture logging is enabled.

    Never raises: it runs inside the handlers that capture exceptions.
    """
    if not logger.isEnabledFor(logging.DEBUG):
        return
    try:
        enabled = get_settings().logging.captures
    except Exception:
        # Settings that fail to load leave capture logging off
        return
    if enabled:
        logger.debug(
            "%s captured %s: %s", operation, type(exc).__name__, exc,
            extra={"operation": operation, "error_type": type(exc).__name__},
        )
