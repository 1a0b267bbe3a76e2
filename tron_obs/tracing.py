"""
Distributed Tracing Setup (OpenTelemetry).

Engine code opens ``tool.execute`` and ``tool.composite`` spans through
``get_tracer``. They are no-ops until ``setup_tracing`` installs a provider.
"""

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, SpanExporter

from tron_config.settings import Settings

SERVICE_VERSION = "0.1.0"


def build_tracer_provider(settings: Settings, exporter: SpanExporter | None = None) -> TracerProvider:
    """Tracer provider exporting to ``exporter`` (OTLP/gRPC by default)."""
    resource = Resource.create(
        {
            "service.name": settings.OTEL_SERVICE_NAME,
            "service.version": SERVICE_VERSION,
            "deployment.environment": settings.ENVIRONMENT,
        }
    )
    if exporter is None:
        exporter = OTLPSpanExporter(endpoint=settings.OTEL_EXPORTER_OTLP_ENDPOINT)

    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(exporter))
    return provider


def setup_tracing(settings: Settings, exporter: SpanExporter | None = None) -> bool:
    """
    Install the global tracer provider when tracing is enabled.

    Exports: OTLP (Jaeger/Tempo/Collector)

    Returns:
        True if a tracer provider was installed
    """
    if not settings.OTEL_TRACES_ENABLED:
        return False

    trace.set_tracer_provider(build_tracer_provider(settings, exporter))
    return True


def get_tracer(name: str) -> trace.Tracer:
    """Get tracer for an engine component."""
    return trace.get_tracer(name)
