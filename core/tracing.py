import os

import structlog
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
)

log = structlog.get_logger(__name__)


def tracing_disabled() -> bool:
    return os.getenv("DISABLE_TRACING", "").lower() in {"1", "true", "yes"}


def init_tracer(
    service_name: str = "token-sender-service",
    endpoint: str | None = None,
    environment: str = "development",
) -> TracerProvider:
    """Install a tracer provider for the service.

    Spans go to the OTLP collector at ``endpoint``. With ``DISABLE_TRACING``
    set they are written to stdout instead.
    """
    provider = TracerProvider(
        resource=Resource.create(
            {"service.name": service_name, "deployment.environment": environment}
        )
    )

    if tracing_disabled():
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))
    else:
        try:
            exporter = OTLPSpanExporter(endpoint=endpoint)
        except Exception as exc:  # pragma: no cover
            log.warning("tracing.exporter_unavailable", endpoint=endpoint, error=str(exc))
            exporter = ConsoleSpanExporter()
        provider.add_span_processor(BatchSpanProcessor(exporter))

    trace.set_tracer_provider(provider)
    log.info("tracing.initialized", service_name=service_name, exporter_endpoint=endpoint)
    return provider
