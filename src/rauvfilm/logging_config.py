"""Logging configuration."""

import logging
import sys
import uuid
from contextlib import contextmanager
from typing import Any, Iterator

import structlog

from rauvfilm.settings import settings


def add_service_context(logger: Any, method_name: str, event_dict: dict) -> dict:
    """Tag every event with the service name and environment."""
    event_dict.setdefault("service", "rauvfilm")
    event_dict.setdefault("env", settings.env)
    return event_dict


def configure_logging() -> None:
    """Configure structured logging."""

    # Configure processors based on format
    if settings.log_format == "json":
        processors = [
            structlog.contextvars.merge_contextvars,
            add_service_context,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
            structlog.dev.ConsoleRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(settings.log_level)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    # Also configure standard logging for third-party libraries
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level),
    )


def bind_request_context(method: str, path: str, request_id: str | None = None) -> str:
    """Start a fresh log context for one HTTP request.

    Returns:
        The request ID bound to every event logged while handling it
    """
    request_id = request_id or uuid.uuid4().hex[:12]
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id, method=method, path=path)
    return request_id


@contextmanager
def reservation_context(reservation_id: int | None, **extra: Any) -> Iterator[None]:
    """Bind a reservation ID to every event logged inside the block."""
    with structlog.contextvars.bound_contextvars(reservation_id=reservation_id, **extra):
        yield


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a logger instance."""
    return structlog.get_logger(name)
