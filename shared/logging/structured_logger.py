"""Structured logging configuration using structlog.

Every entry carries the service name and environment. Inside a request it
also carries the correlation ID and, when the request is traced, the trace
and span IDs. Secrets passed as log keys (passwords, tokens) are
redacted before rendering.
"""

import logging
import sys
from typing import Any, Dict, Optional

import structlog
from opentelemetry import trace
from structlog.types import EventDict, Processor

REDACTED = "[REDACTED]"

# Log keys whose values must never be rendered
SECRET_KEYS = frozenset({
    "password",
    "new_password",
    "password_hash",
    "token",
    "access_token",
    "refresh_token",
    "authorization",
    "jwt_secret_key",
})

# Chatty third-party loggers kept at WARNING unless DEBUG is requested
NOISY_LOGGERS = ("passlib", "uvicorn.access", "aiohttp.access")

_service_context: Dict[str, str] = {"service": "practice-api", "environment": "development"}


def add_service_context(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """Stamp service name and environment on the entry."""
    for key, value in _service_context.items():
        event_dict.setdefault(key, value)
    return event_dict


def add_trace_context(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """Add the active OpenTelemetry trace and span IDs to the entry."""
    span_context = trace.get_current_span().get_span_context()
    if span_context.is_valid:
        event_dict["trace_id"] = format(span_context.trace_id, "032x")
        event_dict["span_id"] = format(span_context.span_id, "016x")
    return event_dict


def redact_secrets(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """Replace the values of secret-bearing keys."""
    for key in event_dict.keys() & SECRET_KEYS:
        event_dict[key] = REDACTED
    return event_dict


def configure_logging(
    log_level: str = "INFO",
    json_logs: bool = True,
    service_name: Optional[str] = None,
    environment: Optional[str] = None,
) -> None:
    """Configure structured logging for the API or the smoke CLI.

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: JSON lines when True, console rendering otherwise
        service_name: Stamped on every entry as ``service``
        environment: Stamped on every entry as ``environment``
    """
    if service_name:
        _service_context["service"] = service_name
    if environment:
        _service_context["environment"] = environment

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        add_service_context,
        add_trace_context,
        redact_secrets,
    ]
    processors.append(
        structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    level = getattr(logging, log_level.upper())
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level, force=True)
    if level > logging.DEBUG:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(max(level, logging.WARNING))


def bind_context(**kwargs: Any) -> None:
    """Bind key-value pairs to every entry logged in the current context.

    Example:
        >>> bind_context(correlation_id="3f9a1c2b")
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove keys bound with :func:`bind_context`."""
    structlog.contextvars.unbind_contextvars(*keys)
