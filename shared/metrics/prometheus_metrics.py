"""Prometheus metrics definitions and helpers.

Provides metric definitions for the practice management API and the smoke
runners. Each application instance registers its metrics on its own
registry so several apps (tests, smoke servers) can live in one process.
"""

from typing import Callable, Optional

from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    generate_latest,
    CollectorRegistry,
)


class ApiMetrics:
    """HTTP and domain metrics of the API service."""

    def __init__(self, registry: Optional[CollectorRegistry] = None) -> None:
        """Initialize API metrics.

        Args:
            registry: Prometheus registry to use (a fresh one when omitted)
        """
        self.registry = registry or CollectorRegistry()

        self.http_requests_total = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status"],
            registry=self.registry,
        )

        self.http_request_duration_seconds = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            buckets=[0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
            registry=self.registry,
        )

        self.http_requests_in_progress = Gauge(
            "http_requests_in_progress",
            "HTTP requests currently in progress",
            ["method", "endpoint"],
            registry=self.registry,
        )

        # Feature record writes
        self.feature_operations = Counter(
            "feature_operations_total",
            "Feature record operations",
            ["feature", "operation"],
            registry=self.registry,
        )

        self.compliance_records_created = Counter(
            "compliance_records_created_total",
            "Compliance records created",
            ["kind"],
            registry=self.registry,
        )

        # Authentication outcomes
        self.auth_events = Counter(
            "auth_events_total",
            "Authentication events",
            ["event", "outcome"],
            registry=self.registry,
        )

        self.access_denied = Counter(
            "access_denied_total",
            "Requests rejected by role checks",
            ["feature", "action"],
            registry=self.registry,
        )

        self.registered_users = Gauge(
            "registered_users",
            "Number of user accounts",
            registry=self.registry,
        )


class SmokeMetrics:
    """Smoke runner metrics, pushed into a registry per run."""

    def __init__(self, registry: Optional[CollectorRegistry] = None) -> None:
        self.registry = registry or CollectorRegistry()

        self.checks_total = Counter(
            "smoke_checks_total",
            "Endpoint checks performed",
            ["agent", "outcome"],
            registry=self.registry,
        )

        self.check_duration_seconds = Histogram(
            "smoke_check_duration_seconds",
            "Endpoint check response time",
            ["agent"],
            buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0],
            registry=self.registry,
        )

        self.success_rate = Gauge(
            "smoke_success_rate",
            "Fraction of successful checks in the last run",
            registry=self.registry,
        )


def get_metrics_handler(registry: CollectorRegistry) -> Callable[[], bytes]:
    """Get metrics handler for HTTP endpoint.

    Returns:
        Function that generates Prometheus metrics output
    """

    def metrics_handler() -> bytes:
        return generate_latest(registry)

    return metrics_handler
