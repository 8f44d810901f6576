"""
Structured JSON logging for the route orchestrator.

Every record is written as one JSON object per line. Records emitted while
a route operation runs carry that operation's name and a correlation ID,
so the platform calls, job polls, and orphan deletions of one ``map`` or
``delete`` can be grouped after the fact. Both values live in context
variables and are therefore inherited by tasks spawned for concurrent
per-route work.

Bearer tokens and similar credentials never reach the output: any key in
``extra_data`` whose name mentions a token, secret, password, or
authorization is masked, at any nesting depth.
"""

import json
import logging
import sys
import uuid
from collections.abc import Iterable
from contextvars import ContextVar
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")
operation_var: ContextVar[str] = ContextVar("operation", default="")

REDACTED = "***REDACTED***"

# Loggers that are chatty at INFO and below.
DEFAULT_QUIET_LOGGERS = ("asyncio", "httpx", "httpcore", "uvicorn.access")


def generate_correlation_id() -> str:
    """Generate a new 12-character correlation ID."""
    return uuid.uuid4().hex[:12]


def bind_operation(operation: str) -> str:
    """Start a traced operation in the current context.

    Sets a fresh correlation ID and the operation name. Tasks created
    afterwards inherit both.

    Returns:
        The new correlation ID.
    """
    cid = generate_correlation_id()
    correlation_id_var.set(cid)
    operation_var.set(operation)
    return cid


def _is_sensitive(key: str) -> bool:
    lowered = key.lower()
    return any(marker in lowered for marker in ("token", "secret", "password", "authorization"))


def redact(value: Any) -> Any:
    """Return ``value`` with every sensitive mapping key masked."""
    if isinstance(value, dict):
        return {
            key: REDACTED if _is_sensitive(str(key)) else redact(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [redact(item) for item in value]
    return value


class StructuredJsonFormatter(logging.Formatter):
    """Serialise log records as single-line JSON objects.

    Fields: ``timestamp``, ``level``, ``logger``, ``module``, ``function``,
    ``message``; ``correlation_id`` and ``operation`` when an operation is
    bound; ``data`` from ``extra_data``; ``exception`` when one is attached.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "message": record.getMessage(),
        }

        for field, var in (("correlation_id", correlation_id_var), ("operation", operation_var)):
            value = var.get()
            if value:
                entry[field] = value

        extra_data = getattr(record, "extra_data", None)
        if isinstance(extra_data, dict):
            entry["data"] = redact(extra_data)

        if record.exc_info and record.exc_info[1] is not None:
            exc = record.exc_info[1]
            entry["exception"] = {"type": type(exc).__name__, "message": str(exc)}
            error_code = getattr(exc, "error_code", None)
            if error_code:
                entry["exception"]["error_code"] = error_code

        return json.dumps(entry, default=str)


class StructuredLoggerAdapter(logging.LoggerAdapter):  # type: ignore[type-arg]
    """Logger adapter that hands the per-call ``extra`` to the record.

    The stock adapter replaces ``extra`` with its own mapping, which would
    drop the ``extra_data`` the formatter serialises.
    """

    def process(  # type: ignore[override]
        self, msg: str, kwargs: dict[str, Any]
    ) -> tuple[str, dict[str, Any]]:
        return msg, kwargs


def get_structured_logger(name: str) -> StructuredLoggerAdapter:
    """Get a structured logger for a module.

    Args:
        name: Module name (typically ``__name__``).
    """
    return StructuredLoggerAdapter(logging.getLogger(name), {})


def setup_logging(
    level: str = "INFO",
    log_dir: str | None = None,
    log_file: str = "route-orchestrator.log",
    quiet_loggers: Iterable[str] = DEFAULT_QUIET_LOGGERS,
) -> None:
    """Configure structured JSON logging on the root logger.

    Call this once at application startup.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_dir: Directory for the log file. If ``None`` or empty, only
            stderr receives output.
        log_file: Log file name within ``log_dir``.
        quiet_loggers: Third-party loggers capped at WARNING.
    """
    formatter = StructuredJsonFormatter()
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if log_dir:
        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(directory / log_file, encoding="utf-8"))

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for name in quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)
