"""Distributed tracing module using OpenTelemetry."""

from .otel_config import (
    TracingMixin,
    configure_tracing,
    create_exporter,
    current_trace_id,
    get_tracer,
    traced,
)

__all__ = [
    "TracingMixin",
    "configure_tracing",
    "create_exporter",
    "current_trace_id",
    "get_tracer",
    "traced",
]
