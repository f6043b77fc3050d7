"""OpenTelemetry wiring and span helpers for ticket operations.

Spans are always opened. Without an installed provider they are no-ops, so
services never need to know whether tracing is enabled.
"""

from __future__ import annotations

from contextlib import contextmanager
from enum import Enum
from typing import Any, Iterator

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import Span, Tracer

from helpdesk.core.config import Settings
from helpdesk.domain.models import Actor

INSTRUMENTATION_NAME = "helpdesk"


def exporter_headers(raw: str | None) -> dict[str, str]:
    """Parse ``k=v,k2=v2`` into exporter headers, ignoring malformed pairs."""

    pairs = (item.partition("=") for item in (raw or "").split(","))
    return {key.strip(): value.strip() for key, sep, value in pairs if sep and key.strip()}


def build_tracer_provider(settings: Settings) -> TracerProvider | None:
    if not settings.otel_enabled:
        return None

    exporter = OTLPSpanExporter(
        endpoint=settings.otel_exporter_otlp_endpoint,
        headers=exporter_headers(settings.otel_exporter_otlp_headers) or None,
    )
    resource = Resource.create(
        {SERVICE_NAME: settings.otel_service_name, "deployment.environment": settings.environment}
    )
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(exporter))
    return provider


def install_tracer_provider(settings: Settings) -> TracerProvider | None:
    """Make the OTLP provider global when tracing is enabled."""

    provider = build_tracer_provider(settings)
    if provider is not None:
        trace.set_tracer_provider(provider)
    return provider


def shutdown_tracer_provider(provider: TracerProvider | None) -> None:
    if provider is not None:
        provider.shutdown()


def get_tracer(provider: trace.TracerProvider | None = None) -> Tracer:
    return trace.get_tracer(INSTRUMENTATION_NAME, tracer_provider=provider)


@contextmanager
def operation_span(tracer: Tracer, name: str, actor: Actor | None = None, **attributes: Any) -> Iterator[Span]:
    """Open ``name`` as the current span, tagged with the actor and ``helpdesk.*`` attributes.

    ``None`` values are skipped. Exceptions escaping the block are recorded on
    the span before propagating.
    """

    with tracer.start_as_current_span(name) as span:
        if actor is not None:
            span.set_attribute("helpdesk.actor.id", actor.id)
            span.set_attribute("helpdesk.actor.role", actor.role.value)
        annotate(span, **attributes)
        yield span


def annotate(span: Span, **attributes: Any) -> None:
    for key, value in attributes.items():
        if value is None:
            continue
        if isinstance(value, Enum):
            value = value.value
        span.set_attribute(f"helpdesk.{key}", value)
