"""
Structured logging for tenantry.

Manifesto:
    A data-access core runs inside somebody else's process. Its logs must be
    machine-readable, carry the tenant/unit/request coordinates of the work
    that produced them, and never leak credentials.

    - **Structures:** JSON output for log aggregation, console for development
    - **Correlates:** request_id, tenant_id, unit_id propagate via contextvars
    - **Quiet by default:** connection and transaction events log at DEBUG

Architecture:
    ::

        configure_logging(level="INFO", json_format=None, service="tenantry")
            ↓
        structlog processor chain:
            1. merge_contextvars      (request_id / tenant_id / unit_id)
            2. TimeStamper(iso)
            3. add_log_level (logger name bound by get_logger)
            4. _add_service_metadata
            5. JSONRenderer  or  ConsoleRenderer

Examples:
    >>> from tenantry.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", json_format=False)
    >>> logger = get_logger(__name__)
    >>> logger.info("migration.applied", migration="0001_create_users", scope="core")

Tags:
    logging, structlog, observability, json-logging, tenantry
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_SERVICE_NAME = "tenantry"


def _add_service_metadata(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add service-level metadata to all logs."""
    event_dict.setdefault("service.name", _SERVICE_NAME)
    return event_dict


def _elasticsearch_compatible(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Make field names Elasticsearch/ECS compatible."""
    if "timestamp" in event_dict:
        event_dict["@timestamp"] = event_dict.pop("timestamp")
    if "level" in event_dict:
        event_dict["log.level"] = event_dict.pop("level")
    return event_dict


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "tenantry",
    add_timestamp: bool = True,
) -> None:
    """Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: True for JSON, False for console, None for auto (JSON if not tty)
        service: Service name to include in logs
        add_timestamp: Include ISO timestamp in logs
    """
    global _SERVICE_NAME
    _SERVICE_NAME = service

    if json_format is None:
        json_format = not sys.stdout.isatty()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _add_service_metadata,
    ]

    if add_timestamp:
        shared_processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_format:
        shared_processors.append(_elasticsearch_compatible)
        shared_processors.append(structlog.processors.format_exc_info)
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )

    # Driver and SQLAlchemy loggers go through stdlib logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper()),
    )


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger (usually ``get_logger(__name__)``)."""
    if name is None:
        return structlog.get_logger()
    # PrintLogger has no .name, so the name also travels as a bound value
    return structlog.get_logger(name, logger_name=name)


def bind_context(**kwargs: Any) -> None:
    """Bind context to include in all subsequent logs of this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove specific keys from logging context."""
    structlog.contextvars.unbind_contextvars(*keys)


def bound_context(**kwargs: Any) -> Any:
    """Bind context for a ``with`` block, restoring previous values on exit."""
    return structlog.contextvars.bound_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context."""
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Context manager for scoped logging context.

    Example:
        with LogContext(scope="tenant", migration="0001_create_users"):
            logger.info("migration.started")
        # Context cleared here
    """

    def __init__(self, **kwargs: Any):
        self._context = kwargs

    def __enter__(self) -> LogContext:
        bind_context(**self._context)
        return self

    def __exit__(self, *args: Any) -> None:
        unbind_context(*self._context.keys())


__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "bound_context",
    "clear_context",
    "LogContext",
]
