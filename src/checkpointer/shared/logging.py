"""
Structured logging for Checkpointer.

Helpers that record API calls and operation outcomes with context
attached as ``extra`` fields, plus a logger factory that writes rich
console output and JSON lines to an optional file.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

from checkpointer.shared.errors import CheckpointerError, ErrorContext


class StructuredFormatter(logging.Formatter):
    """Formatter that renders each record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(
                record.created,
                tz=timezone.utc,
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for field in ("error_code", "context", "operation", "duration_ms", "result_info"):
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


def _create_rich_console() -> Console:
    """Create the Rich console used by the console handler."""
    custom_theme = Theme(
        {
            "logging.level.debug": "cyan",
            "logging.level.info": "green",
            "logging.level.warning": "yellow",
            "logging.level.error": "red bold",
            "logging.level.critical": "red bold reverse",
            "log.time": "dim cyan",
        }
    )
    return Console(theme=custom_theme, stderr=True)


def setup_structured_logger(
    name: str = "checkpointer",
    level: str = "INFO",
    log_file: str | None = None,
    *,
    use_rich_console: bool = True,
) -> logging.Logger:
    """Configure and return the package logger.

    Args:
        name: Logger name (default: "checkpointer")
        level: Log level name (default: "INFO")
        log_file: Optional path of a JSON-lines log file
        use_rich_console: Use RichHandler for console output instead of JSON

    Returns:
        The configured logger
    """
    logger = logging.getLogger(name)

    if logger.handlers:
        logger.handlers.clear()

    log_level = getattr(logging, level.upper())
    logger.setLevel(log_level)

    if use_rich_console:
        handler: logging.Handler = RichHandler(
            console=_create_rich_console(),
            show_time=True,
            show_level=True,
            show_path=False,
            markup=False,
            rich_tracebacks=True,
            log_time_format="[%H:%M:%S]",
        )
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(StructuredFormatter())
    handler.setLevel(log_level)
    logger.addHandler(handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(StructuredFormatter())
        logger.addHandler(file_handler)

    logger.propagate = False

    return logger


def _context_to_dict(context: dict[str, Any] | ErrorContext | None) -> dict[str, Any]:
    if context is None:
        return {}
    if isinstance(context, ErrorContext):
        return context.safe_dict()
    return dict(context)


def log_operation_start(
    logger: logging.Logger,
    operation: str,
    context: dict[str, Any] | ErrorContext | None = None,
) -> None:
    logger.debug(
        "Starting operation '%s'",
        operation,
        extra={
            "operation": operation,
            "context": _context_to_dict(context),
        },
    )


def log_operation_error(
    logger: logging.Logger,
    error: CheckpointerError,
    operation: str | None = None,
    additional_context: dict[str, Any] | ErrorContext | None = None,
) -> None:
    """Record a CheckpointerError with its context.

    Args:
        logger: Logger instance
        error: The error to record
        operation: Operation name, defaults to the error context's operation
        additional_context: Extra context merged over the error's own
    """
    context_dict = error.context.safe_dict() if error.context else {}
    context_dict.update(_context_to_dict(additional_context))

    logger.error(
        error.message,
        extra={
            "error_code": error.code.name,
            "context": context_dict,
            "operation": operation or (error.context.operation if error.context else None),
        },
        exc_info=error.original_error is not None,
    )


def log_operation_success(
    logger: logging.Logger,
    operation: str,
    duration_ms: float,
    result_info: dict[str, Any] | None = None,
    context: dict[str, Any] | ErrorContext | None = None,
) -> None:
    """Record a successful operation at debug level."""
    logger.debug(
        "Operation '%s' completed successfully",
        operation,
        extra={
            "operation": operation,
            "duration_ms": duration_ms,
            "result_info": result_info or {},
            "context": _context_to_dict(context),
        },
    )


def log_api_call(
    logger: logging.Logger,
    endpoint: str,
    method: str = "GET",
    status_code: int | None = None,
    duration_ms: float | None = None,
    context: dict[str, Any] | None = None,
) -> None:
    """Record one HTTP call.

    Successful calls are logged at debug level, failed ones at warning so
    that a caller handling the error decides whether it is worth more.
    """
    api_context: dict[str, Any] = {
        "endpoint": endpoint,
        "method": method,
    }

    if status_code is not None:
        api_context["status_code"] = status_code
    if duration_ms is not None:
        api_context["duration_ms"] = round(duration_ms, 2)
    if context:
        api_context.update(context)

    level = logging.DEBUG
    message = f"{method} {endpoint}"

    if status_code is not None:
        if status_code >= 400:
            level = logging.WARNING
            message += f" failed with status {status_code}"
        else:
            message += f" succeeded with status {status_code}"

    logger.log(
        level,
        message,
        extra={
            "operation": "api_call",
            "context": api_context,
        },
    )
