"""Structured logging for Taskhub.

structlog does the event emission; the stdlib root logger only owns the
handler (stdout or a size-rotated file), so library loggers such as
uvicorn and SQLAlchemy end up in the same stream.

Every event carries the request's correlation id (when one is set by
RequestLoggingMiddleware) and whatever was bound with
``bind_request_context``, typically the authenticated user id. Ids, enum
members and datetimes are rendered as plain strings so JSON lines stay
grep-able:

    >>> setup_logging(LoggingConfig(format="json"))
    >>> get_logger(__name__).info("task_status_changed", to_status=TaskStatus.done)
    {"to_status": "done", "event": "task_status_changed", ...}
"""

from __future__ import annotations

import contextvars
import enum
import logging
import logging.handlers
import sys
import uuid
from datetime import date, datetime
from typing import Any

import structlog

from taskhub.config import LoggingConfig

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "taskhub_correlation_id", default=None
)

# Loggers that are chatty at INFO/DEBUG and add nothing the request log
# does not already say. They are raised to WARNING unless Taskhub itself
# runs at DEBUG.
NOISY_LOGGERS = ("uvicorn.access", "aiosqlite", "sqlalchemy.engine", "asyncio")


def set_correlation_id(correlation_id: str | None) -> None:
    _correlation_id.set(correlation_id)


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def add_correlation_id(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """structlog processor stamping the current correlation id, if any."""
    correlation_id = _correlation_id.get()
    if correlation_id is not None:
        event_dict["correlation_id"] = correlation_id
    return event_dict


def _plain(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def plain_values(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """structlog processor turning enums, UUIDs and datetimes into strings."""
    for key, value in event_dict.items():
        if isinstance(value, (list, tuple, set, frozenset)):
            event_dict[key] = [_plain(v) for v in value]
        else:
            event_dict[key] = _plain(value)
    return event_dict


def bind_request_context(user_id: str, **extra: Any) -> None:
    """Attach the authenticated user (and extras) to later events in this context."""
    structlog.contextvars.bind_contextvars(user_id=user_id, **extra)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()


def _build_handler(config: LoggingConfig) -> logging.Handler:
    if config.file is None:
        return logging.StreamHandler(sys.stdout)

    config.file.parent.mkdir(parents=True, exist_ok=True)
    return logging.handlers.RotatingFileHandler(
        filename=config.file,
        maxBytes=config.rotation_size_mb * 1024 * 1024,
        backupCount=config.retention_count,
        encoding="utf-8",
    )


def _is_terminal(handler: logging.Handler) -> bool:
    if isinstance(handler, logging.FileHandler):
        return False
    stream = getattr(handler, "stream", None)
    return bool(stream is not None and stream.isatty())


def setup_logging(config: LoggingConfig) -> None:
    """Configure the stdlib root handler and the structlog pipeline.

    Safe to call more than once; each call replaces the previous handler.

    Args:
        config: The ``[logging]`` section of TaskhubConfig.
    """
    level = logging.getLevelName(config.level)

    handler = _build_handler(config)
    handler.setLevel(level)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    quiet_level = logging.DEBUG if level == logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)

    renderer: Any
    if config.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=_is_terminal(handler))

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_correlation_id,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            plain_values,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
