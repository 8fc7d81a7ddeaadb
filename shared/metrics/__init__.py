"""Metrics module using Prometheus."""

from .prometheus_metrics import (
    ApiMetrics,
    SmokeMetrics,
    get_metrics_handler,
)

__all__ = [
    "ApiMetrics",
    "SmokeMetrics",
    "get_metrics_handler",
]
