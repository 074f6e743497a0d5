"""Structured logging configuration using structlog."""

import logging
import os
import sys
from typing import Any

import structlog


def configure_logging(
    level: str | None = None,
    json_format: bool | None = None,
    service_name: str = "reviewflow",
) -> None:
    """
    Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL). Defaults to LOG_LEVEL.
        json_format: If True, output JSON; if False, colored console output. Defaults to LOG_JSON.
        service_name: Name of the service bound into every log entry
    """
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    if json_format is None:
        json_format = os.getenv("LOG_JSON", "true").lower() == "true"

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level),
    )

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_format:
        processors = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(service=service_name)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def bind_request_context(request_id: str, user_id: str | None = None, **kwargs: Any) -> None:
    """Bind request context to all subsequent log entries."""
    context = {"request_id": request_id}
    if user_id:
        context["user_id"] = user_id
    context.update(kwargs)
    structlog.contextvars.bind_contextvars(**context)


def clear_request_context() -> None:
    """Drop per-request keys, keeping the service binding."""
    structlog.contextvars.unbind_contextvars("request_id", "user_id", "method", "path")
