"""
Logging configuration for relative-deps.

Provides two output styles:
- Simple: ``[relative-deps] message`` lines for interactive use
- JSON: one object per line for CI log collection

Usage:
    from relative_deps.logging_config import setup_logging, get_logger

    setup_logging()  # Call once at startup
    logger = get_logger(__name__)
    logger.info("message", extra={"dependency": "foo"})
"""

from __future__ import annotations

import logging
import sys
from datetime import UTC, datetime
from typing import Any

import orjson

LOG_PREFIX = "[relative-deps]"

# LogRecord attributes that are never treated as extras
_RESERVED_ATTRS: frozenset[str] = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "message",
        "taskName",
    }
)

_LEVEL_TAGS: dict[int, str] = {
    logging.WARNING: "[WARN]",
    logging.ERROR: "[ERROR]",
    logging.CRITICAL: "[ERROR]",
}


def _collect_extra(record: logging.LogRecord) -> dict[str, Any]:
    """Return user-supplied ``extra`` fields attached to a record."""
    return {k: v for k, v in record.__dict__.items() if k not in _RESERVED_ATTRS}


def _scalar(value: Any) -> Any:
    if isinstance(value, (int, float, bool, str, type(None))):
        return value
    return str(value)


class JsonFormatter(logging.Formatter):
    """JSON log formatter for structured logging.

    Output format:
    {"ts":"2024-01-01T00:00:00.000+00:00","level":"INFO","logger":"module","msg":"...", ...}
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_dict: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }

        # Add location for warnings and errors
        if record.levelno >= logging.WARNING:
            log_dict["file"] = record.filename
            log_dict["line"] = record.lineno

        if record.exc_info:
            log_dict["exc"] = self.formatException(record.exc_info)

        for key, value in _collect_extra(record).items():
            log_dict[key] = _scalar(value)

        return orjson.dumps(log_dict).decode()


class SimpleFormatter(logging.Formatter):
    """Human-readable formatter.

    INFO and below render as ``[relative-deps] message``; warnings and errors
    get a ``[WARN]``/``[ERROR]`` tag. Extras are appended as ``key=value``.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as human-readable string."""
        tag = _LEVEL_TAGS.get(record.levelno, "")
        if record.levelno == logging.DEBUG:
            tag = "[DEBUG]"
        base = f"{LOG_PREFIX}{tag} {record.getMessage()}"

        extra = _collect_extra(record)
        if extra:
            extra_str = " ".join(f"{k}={_scalar(v)}" for k, v in extra.items())
            base = f"{base} | {extra_str}"

        if record.exc_info:
            base = f"{base}\n{self.formatException(record.exc_info)}"

        return base


def setup_logging(
    *,
    level: int | str = logging.INFO,
    json_format: bool = False,
    stream: Any = None,
) -> None:
    """Configure logging for the application.

    Call once at application startup.

    Args:
        level: Log level (default INFO).
        json_format: Use JSON formatter (default False).
        stream: Output stream (default stderr).
    """
    if stream is None:
        stream = sys.stderr

    handler = logging.StreamHandler(stream)
    formatter = JsonFormatter() if json_format else SimpleFormatter()
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)

    # Remove existing handlers to avoid duplicates
    root.handlers.clear()
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Logger name (typically __name__).

    Returns:
        Logger instance.
    """
    return logging.getLogger(name)
