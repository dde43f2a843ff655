"""
Structured logging for the OfferHub SDK.

All SDK loggers live under the ``offerhub`` logger tree. The SDK never
installs handlers on import; applications call :func:`configure_logging`
(or attach their own handlers) to see output.

Context is attached per call with ``extra={...}``; the keys used across
the SDK are ``method``, ``tx_hash``, ``state`` and ``attempt``.

Example:
    >>> from offerhub.utils.logging import configure_logging, get_logger
    >>> configure_logging("DEBUG")
    >>> get_logger(__name__).info("Submitted", extra={"tx_hash": "ab12..."})
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from typing import Any, Dict, Optional, TextIO, Union

ROOT_LOGGER_NAME = "offerhub"

# Attributes every LogRecord carries; anything else came from ``extra``.
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime"}

_context: ContextVar[Dict[str, Any]] = ContextVar("offerhub_log_context", default={})


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _RESERVED_ATTRS}


class _ContextFilter(logging.Filter):
    """Copies the active :class:`LogContext` fields onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _context.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


class TextFormatter(logging.Formatter):
    """Plain formatter that appends ``extra`` fields as ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extra = _extra_fields(record)
        if extra:
            line += " | " + " ".join(f"{k}={v}" for k, v in sorted(extra.items()))
        return line


class JSONFormatter(logging.Formatter):
    """One JSON object per record, ``extra`` fields merged at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        data: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        data.update(_extra_fields(record))
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data, default=str)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger inside the ``offerhub`` tree.

    Args:
        name: Logger name (usually ``__name__``)

    Returns:
        Logger instance
    """
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def configure_logging(
    level: Union[int, str] = logging.INFO,
    *,
    json_format: bool = False,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Attach a single stream handler to the ``offerhub`` logger.

    Calling this again replaces the handler it installed previously.

    Args:
        level: Logging level (name or number)
        json_format: Emit JSON lines instead of plain text
        stream: Output stream (defaults to stderr)

    Returns:
        The configured root SDK logger
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(root.handlers):
        if getattr(handler, "_offerhub_handler", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler._offerhub_handler = True  # type: ignore[attr-defined]
    handler.addFilter(_ContextFilter())
    if json_format:
        handler.setFormatter(JSONFormatter(datefmt="%Y-%m-%dT%H:%M:%S"))
    else:
        handler.setFormatter(
            TextFormatter(
                "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )

    root.addHandler(handler)
    set_level(level)
    return root


def set_level(level: Union[int, str]) -> None:
    """Set the level of the ``offerhub`` logger tree."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logging.getLogger(ROOT_LOGGER_NAME).setLevel(level)


def disable_logging() -> None:
    """Silence every SDK logger until the level is set again."""
    logging.getLogger(ROOT_LOGGER_NAME).setLevel(logging.CRITICAL + 1)


def enable_debug() -> logging.Logger:
    """Shortcut for ``configure_logging("DEBUG")``."""
    return configure_logging(logging.DEBUG)


class LogContext:
    """
    Bind fields to every SDK log record emitted inside a block.

    Example:
        >>> with LogContext(method="add_claim"):
        ...     await client.add_claim(...)
    """

    def __init__(self, **fields: Any) -> None:
        self._fields = fields
        self._token = None

    def __enter__(self) -> "LogContext":
        merged = dict(_context.get())
        merged.update(self._fields)
        self._token = _context.set(merged)
        return self

    def __exit__(self, *exc: Any) -> None:
        if self._token is not None:
            _context.reset(self._token)
            self._token = None
