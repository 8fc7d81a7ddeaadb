"""OpenTelemetry configuration for distributed tracing.

Provides FastAPI request spans, service spans and OTLP export. The trace ID
of the active span doubles as the request correlation ID.
"""

import functools
from typing import Any, Awaitable, Callable, Optional, TypeVar

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter, SpanExporter
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased
from opentelemetry.trace import Status, StatusCode

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def create_exporter(kind: str, endpoint: Optional[str] = None) -> Optional[SpanExporter]:
    """Build the span exporter named by ``kind`` (otlp, console or none)."""
    if kind == "otlp":
        return OTLPSpanExporter(endpoint=endpoint)
    if kind == "console":
        return ConsoleSpanExporter()
    return None


def configure_tracing(
    service_name: str,
    service_version: str = "1.0.0",
    environment: str = "development",
    exporter: Optional[SpanExporter] = None,
    sampling_rate: float = 1.0,
    set_global: bool = True,
) -> TracerProvider:
    """Configure OpenTelemetry tracing for the service.

    Args:
        service_name: Name of the service (e.g., "Legal Practice Management API")
        service_version: Reported as ``service.version``
        environment: Reported as ``deployment.environment``
        exporter: Where finished spans go; spans are only kept in context when None
        sampling_rate: Sampling rate for new traces (0.0 to 1.0)
        set_global: Install as the global tracer provider if none is installed yet

    Returns:
        Configured TracerProvider
    """
    resource = Resource.create(
        {
            "service.name": service_name,
            "service.namespace": "legal-practice",
            "service.version": service_version,
            "deployment.environment": environment,
        }
    )

    # Incoming sampled traces stay sampled
    provider = TracerProvider(
        resource=resource,
        sampler=ParentBased(TraceIdRatioBased(sampling_rate)),
    )

    if exporter is not None:
        provider.add_span_processor(BatchSpanProcessor(exporter))

    # The global provider can only be installed once per process
    if set_global and isinstance(trace.get_tracer_provider(), trace.ProxyTracerProvider):
        trace.set_tracer_provider(provider)

    return provider


def get_tracer(name: str, tracer_provider: Optional[TracerProvider] = None) -> trace.Tracer:
    """Get a tracer from ``tracer_provider``, or from the global provider."""
    return trace.get_tracer(name, tracer_provider=tracer_provider)


def current_trace_id() -> Optional[str]:
    """Hex trace ID of the active span, or None outside a trace."""
    span_context = trace.get_current_span().get_span_context()
    if not span_context.is_valid:
        return None
    return format(span_context.trace_id, "032x")


class TracingMixin:
    """Mixin giving services a tracer bound to their own provider."""

    tracer_provider: Optional[TracerProvider] = None

    @property
    def tracer(self) -> trace.Tracer:
        return get_tracer(self.__class__.__module__, self.tracer_provider)


def traced(span_name: Optional[str] = None) -> Callable[[F], F]:
    """Decorator running an async method inside a span.

    The tracer comes from the instance when it is a :class:`TracingMixin`,
    otherwise from the global provider. Exceptions are recorded on the span
    and re-raised.

    Example:
        >>> class ReportService(TracingMixin):
        ...     @traced("reports.generate")
        ...     async def generate(self): ...
    """

    def decorator(func: F) -> F:
        name = span_name or func.__qualname__

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            owner = args[0] if args else None
            if isinstance(owner, TracingMixin):
                tracer = owner.tracer
            else:
                tracer = get_tracer(func.__module__)

            with tracer.start_as_current_span(name, record_exception=False, set_status_on_exception=False) as span:
                span.set_attribute("code.function", func.__name__)
                span.set_attribute("code.namespace", func.__module__)
                try:
                    result = await func(*args, **kwargs)
                except Exception as exc:
                    span.record_exception(exc)
                    span.set_status(Status(StatusCode.ERROR, str(exc)))
                    raise
                span.set_status(Status(StatusCode.OK))
                return result

        return wrapper  # type: ignore

    return decorator
