from __future__ import annotations

from fastapi import FastAPI
from loguru import logger
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from library_api.core.config import SERVICE_NAME, Settings


def init_otel(app: FastAPI, app_settings: Settings) -> bool:
    """Instrument ``app`` with OpenTelemetry when enabled. Returns whether it did."""
    if not app_settings.otel_enabled:
        return False

    resource = Resource.create(
        {
            "service.name": SERVICE_NAME,
            "service.version": app_settings.app_version,
            "deployment.environment": app_settings.app_env,
        }
    )
    provider = TracerProvider(resource=resource)

    # OTEL_EXPORTER_OTLP_* env vars still apply when no endpoint is configured.
    endpoint = app_settings.otel_otlp_endpoint
    exporter = OTLPSpanExporter(endpoint=endpoint) if endpoint else OTLPSpanExporter()

    provider.add_span_processor(BatchSpanProcessor(exporter))
    # The global provider can only be set once per process; the app is
    # instrumented against its own provider either way.
    trace.set_tracer_provider(provider)

    FastAPIInstrumentor.instrument_app(app, tracer_provider=provider, excluded_urls="health")
    logger.bind(otlp_endpoint=endpoint).info("OpenTelemetry tracing enabled")
    return True
