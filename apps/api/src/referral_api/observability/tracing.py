from __future__ import annotations

import os
from typing import Dict

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter, SpanExporter

_PROVIDER: TracerProvider | None = None


def _parse_headers(raw: str | None) -> Dict[str, str] | None:
    if not raw:
        return None
    pairs = (item.split("=", 1) for item in raw.split(",") if "=" in item)
    return {key.strip(): value.strip() for key, value in pairs}


def _build_exporter() -> SpanExporter | None:
    endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    if endpoint:
        return OTLPSpanExporter(endpoint=endpoint, headers=_parse_headers(os.getenv("OTEL_EXPORTER_OTLP_HEADERS")))
    if os.getenv("OTEL_TRACES_CONSOLE", "").lower() in {"1", "true", "yes"}:
        return ConsoleSpanExporter()
    return None


def configure_tracing(
    app: FastAPI,
    *,
    service_name: str,
    service_version: str,
    environment: str,
) -> None:
    """Install the tracer provider once and instrument the given app."""

    global _PROVIDER

    if _PROVIDER is None:
        _PROVIDER = TracerProvider(
            resource=Resource.create(
                {
                    "service.name": service_name,
                    "service.version": service_version,
                    "deployment.environment": environment,
                }
            )
        )
        exporter = _build_exporter()
        if exporter is not None:
            _PROVIDER.add_span_processor(BatchSpanProcessor(exporter))
        trace.set_tracer_provider(_PROVIDER)

    FastAPIInstrumentor.instrument_app(app, tracer_provider=_PROVIDER)


__all__ = ["configure_tracing"]
