"""
Unit tests for OpenTelemetry tracing setup.

Tests cover:
- Tracer provider resource and sampling
- Exporter selection
- Active trace ID lookup
- Service spans from the traced decorator
- Trace context in log entries
"""

import pytest
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.trace.export import ConsoleSpanExporter
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import StatusCode

from shared.logging.structured_logger import add_trace_context
from shared.tracing import TracingMixin, configure_tracing, create_exporter, current_trace_id, traced


@pytest.fixture
def exporter() -> InMemorySpanExporter:
    return InMemorySpanExporter()


@pytest.fixture
def provider(exporter):
    provider = configure_tracing(
        service_name="practice-api",
        service_version="2.1.0",
        environment="test",
        exporter=exporter,
        set_global=False,
    )
    yield provider
    provider.shutdown()


class ReportService(TracingMixin):
    def __init__(self, tracer_provider):
        self.tracer_provider = tracer_provider

    @traced("reports.generate")
    async def generate(self, name: str) -> str:
        return f"report:{name}"

    @traced()
    async def fail(self) -> None:
        raise ValueError("no data for period")


# ============================================================================
# PROVIDER CONFIGURATION
# ============================================================================


class TestConfigureTracing:
    """Test tracer provider construction."""

    def test_resource_attributes(self, provider):
        attributes = provider.resource.attributes

        assert attributes["service.name"] == "practice-api"
        assert attributes["service.version"] == "2.1.0"
        assert attributes["deployment.environment"] == "test"
        assert attributes["service.namespace"] == "legal-practice"

    def test_sampling_rate(self):
        provider = configure_tracing("practice-api", sampling_rate=0.25, set_global=False)

        assert "0.25" in provider.sampler.get_description()

    def test_unsampled_spans_keep_a_trace_id(self, exporter):
        provider = configure_tracing("practice-api", exporter=exporter, sampling_rate=0.0, set_global=False)

        with provider.get_tracer("test").start_as_current_span("request"):
            trace_id = current_trace_id()

        provider.force_flush()
        assert trace_id is not None
        assert exporter.get_finished_spans() == ()

    @pytest.mark.parametrize("kind,expected", [
        ("otlp", OTLPSpanExporter),
        ("console", ConsoleSpanExporter),
    ])
    def test_create_exporter(self, kind, expected):
        assert isinstance(create_exporter(kind, "http://collector:4318/v1/traces"), expected)

    def test_no_exporter(self):
        assert create_exporter("none") is None


# ============================================================================
# TRACE IDS
# ============================================================================


class TestCurrentTraceId:
    """Test trace ID lookup."""

    def test_outside_a_span(self):
        assert current_trace_id() is None

    def test_inside_a_span(self, provider):
        with provider.get_tracer("test").start_as_current_span("request") as span:
            trace_id = current_trace_id()

        assert trace_id == format(span.get_span_context().trace_id, "032x")
        assert len(trace_id) == 32

    def test_log_entries_carry_trace_context(self, provider):
        with provider.get_tracer("test").start_as_current_span("request") as span:
            event = add_trace_context(None, "info", {"event": "x"})

        context = span.get_span_context()
        assert event["trace_id"] == format(context.trace_id, "032x")
        assert event["span_id"] == format(context.span_id, "016x")

    def test_log_entries_outside_a_span(self):
        assert add_trace_context(None, "info", {"event": "x"}) == {"event": "x"}


# ============================================================================
# SERVICE SPANS
# ============================================================================


class TestTraced:
    """Test the traced decorator."""

    async def test_span_per_call(self, provider, exporter):
        result = await ReportService(provider).generate("quarterly")

        provider.force_flush()
        spans = exporter.get_finished_spans()

        assert result == "report:quarterly"
        assert [span.name for span in spans] == ["reports.generate"]
        assert spans[0].status.status_code == StatusCode.OK
        assert spans[0].attributes["code.function"] == "generate"

    async def test_exception_is_recorded(self, provider, exporter):
        with pytest.raises(ValueError, match="no data for period"):
            await ReportService(provider).fail()

        provider.force_flush()
        span = exporter.get_finished_spans()[0]

        assert span.name == "ReportService.fail"
        assert span.status.status_code == StatusCode.ERROR
        assert span.status.description == "no data for period"
        assert [event.name for event in span.events] == ["exception"]

    async def test_nested_under_the_active_span(self, provider, exporter):
        with provider.get_tracer("test").start_as_current_span("request") as parent:
            await ReportService(provider).generate("annual")

        provider.force_flush()
        child = next(span for span in exporter.get_finished_spans() if span.name == "reports.generate")

        assert child.parent.span_id == parent.get_span_context().span_id
