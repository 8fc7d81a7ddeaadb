"""Structured logging module using structlog."""

from .structured_logger import (
    REDACTED,
    SECRET_KEYS,
    bind_context,
    configure_logging,
    redact_secrets,
    unbind_context,
)

__all__ = [
    "REDACTED",
    "SECRET_KEYS",
    "bind_context",
    "configure_logging",
    "redact_secrets",
    "unbind_context",
]
