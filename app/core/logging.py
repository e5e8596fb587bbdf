"""
Structured logging configuration using structlog.

Logging patterns used across the service:
- Structured key/value logging for log analysis
- Request-scoped context (request_id, user_id) through contextvars
- Console output in development, JSON everywhere else
"""

import sys
import logging
from typing import Any

import structlog
from structlog.stdlib import LoggerFactory, add_logger_name
from structlog.processors import (
    TimeStamper,
    add_log_level,
    JSONRenderer,
    StackInfoRenderer,
    format_exc_info,
)

from app.core.config import get_settings


def configure_logging() -> None:
    """
    Configure structured logging for the application.

    Standard library logging is routed to stdout at LOG_LEVEL and structlog
    renders on top of it, so third-party loggers (uvicorn, sqlalchemy,
    apscheduler) end up in the same stream.
    """
    settings = get_settings()

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.LOG_LEVEL.upper()),
    )

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        TimeStamper(fmt="ISO"),
        add_log_level,
        add_logger_name,
        StackInfoRenderer(),
        format_exc_info,
    ]

    if settings.ENVIRONMENT == "development" and settings.LOG_FORMAT != "json":
        renderer = structlog.dev.ConsoleRenderer(colors=True)
    else:
        renderer = JSONRenderer()

    structlog.configure(
        processors=[*shared_processors, renderer],
        context_class=dict,
        logger_factory=LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str, **initial_values: Any) -> structlog.BoundLogger:
    """
    Get a structured logger with optional initial context values.

    Args:
        name: Logger name (typically __name__)
        **initial_values: Initial context values to bind to the logger

    Returns:
        Configured structlog logger
    """
    logger = structlog.get_logger(name)

    if initial_values:
        logger = logger.bind(**initial_values)

    return logger


class LoggingContext:
    """
    Context manager for temporary logging context.

    Usage:
        with LoggingContext(request_id="123", user_id="456"):
            logger.info("Processing request")
            # All logs within this context will include request_id and user_id
    """

    def __init__(self, **context: Any):
        self.context = context
        self.tokens = None

    def __enter__(self) -> "LoggingContext":
        self.tokens = structlog.contextvars.bind_contextvars(**self.context)
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        structlog.contextvars.reset_contextvars(**self.tokens)


def bind_log_context(**context: Any) -> None:
    """Add keys to the current request's logging context."""
    structlog.contextvars.bind_contextvars(**context)
