"""
Integration tests for request tracing.

Tests cover:
- Correlation IDs taken from the request span
- Caller-supplied correlation IDs
- Service spans nested in the request trace
- Tracing disabled
"""

import re

from fastapi.testclient import TestClient
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from practice_api.src.main import create_app

TRACE_ID = re.compile(r"^[0-9a-f]{32}$")
UUID = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$")


class TestCorrelationIds:
    """Test the X-Correlation-ID response header."""

    def test_correlation_id_is_the_trace_id(self, client):
        response = client.get("/api/features")

        assert TRACE_ID.match(response.headers["X-Correlation-ID"])

    def test_each_request_gets_its_own_trace(self, client):
        first = client.get("/api/features").headers["X-Correlation-ID"]
        second = client.get("/api/features").headers["X-Correlation-ID"]

        assert first != second

    def test_caller_correlation_id_is_kept(self, client):
        response = client.get("/api/features", headers={"X-Correlation-ID": "case-intake-42"})

        assert response.headers["X-Correlation-ID"] == "case-intake-42"

    def test_tracing_disabled(self, settings):
        app = create_app(settings.model_copy(update={"tracing_enabled": False}))

        with TestClient(app) as client:
            response = client.get("/api/features")

        assert app.state.services.tracer_provider is None
        assert UUID.match(response.headers["X-Correlation-ID"])


class TestServiceSpans:
    """Test spans recorded while serving requests."""

    def test_login_span_is_part_of_the_request_trace(self, settings):
        app = create_app(settings.model_copy(update={"tracing_sample_rate": 1.0}))
        exporter = InMemorySpanExporter()
        app.state.services.tracer_provider.add_span_processor(SimpleSpanProcessor(exporter))

        with TestClient(app) as client:
            response = client.post("/api/auth/login", json={"username": "ghost", "password": "SecurePass123!"})

        assert response.status_code == 401
        spans = exporter.get_finished_spans()
        names = [span.name for span in spans]
        assert "auth.authenticate_user" in names
        assert any(name.startswith("POST /api/auth/login") for name in names)

        login_span = next(span for span in spans if span.name == "auth.authenticate_user")
        assert format(login_span.context.trace_id, "032x") == response.headers["X-Correlation-ID"]

    def test_health_checks_are_not_traced(self, settings):
        app = create_app(settings.model_copy(update={"tracing_sample_rate": 1.0}))
        exporter = InMemorySpanExporter()
        app.state.services.tracer_provider.add_span_processor(SimpleSpanProcessor(exporter))

        with TestClient(app) as client:
            response = client.get("/health")

        assert response.status_code == 200
        assert exporter.get_finished_spans() == ()
