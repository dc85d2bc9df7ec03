"""OpenTelemetry integration for pipexec.

Descriptors only depend on the ``opentelemetry-api`` tracer contract and
default to a no-op tracer. ``configure_tracing`` builds an SDK provider with
an exporter for applications that want the spans exported.
"""

from __future__ import annotations

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter, SpanExporter
from opentelemetry.trace import Span, Tracer, format_span_id, format_trace_id

from pipexec.config.models import TracingConfig
from pipexec.exceptions import TracingSetupError
from pipexec.logging import get_logger

TRACER_NAME = "pipexec"

# Environment entries injected into every child so it can join the trace
TRACE_ID_ENV = "TRACE_ID"
SPAN_ID_ENV = "SPAN_ID"

logger = get_logger(__name__)


def default_tracer() -> Tracer:
    """Return the tracer descriptors use when none is configured."""
    return trace.NoOpTracer()


def get_tracer(provider: trace.TracerProvider | None = None) -> Tracer:
    """Return the pipexec tracer from ``provider`` (the global provider by default)."""
    if provider is None:
        return trace.get_tracer(TRACER_NAME)
    return provider.get_tracer(TRACER_NAME)


def configure_tracing(config: TracingConfig, *, set_global: bool = False) -> TracerProvider:
    """Build an SDK tracer provider for ``config``.

    Parameters
    ----------
    config : TracingConfig
        Exporter and resource settings
    set_global : bool, default=False
        Also install the provider as the global OpenTelemetry provider

    Raises
    ------
    TracingSetupError
        If the configured exporter package is not installed
    """
    resource = Resource.create({
        "service.name": config.service_name,
        "service.version": config.service_version,
    })
    provider = TracerProvider(resource=resource)

    exporter = _build_exporter(config)
    if exporter is not None:
        provider.add_span_processor(BatchSpanProcessor(exporter))

    if set_global:
        trace.set_tracer_provider(provider)

    logger.debug(
        "Tracing configured with {exporter} exporter for {service}",
        exporter=config.exporter,
        service=config.service_name,
    )
    return provider


def _build_exporter(config: TracingConfig) -> SpanExporter | None:
    if config.exporter == "none":
        return None
    if config.exporter == "console":
        return ConsoleSpanExporter()

    kwargs: dict = {"headers": config.otlp_headers or None}
    if config.otlp_endpoint:
        kwargs["endpoint"] = config.otlp_endpoint

    if config.otlp_protocol == "grpc":
        try:
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
                OTLPSpanExporter as OTLPSpanExporterGrpc,
            )
        except ImportError as e:
            raise TracingSetupError(
                "Missing OTLP gRPC trace exporter. "
                "Install opentelemetry-exporter-otlp-proto-grpc."
            ) from e
        return OTLPSpanExporterGrpc(**kwargs)

    try:
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import (
            OTLPSpanExporter as OTLPSpanExporterHttp,
        )
    except ImportError as e:
        raise TracingSetupError(
            "Missing OTLP HTTP trace exporter. Install opentelemetry-exporter-otlp-proto-http."
        ) from e
    return OTLPSpanExporterHttp(**kwargs)


def trace_env(span: Span) -> list[str]:
    """Return the ``TRACE_ID``/``SPAN_ID`` environment entries for ``span``.

    Invalid (no-op) spans yield all-zero identifiers.
    """
    span_context = span.get_span_context()
    return [
        f"{TRACE_ID_ENV}={format_trace_id(span_context.trace_id)}",
        f"{SPAN_ID_ENV}={format_span_id(span_context.span_id)}",
    ]
