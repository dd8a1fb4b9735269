"""
configplus - OpenTelemetry Tracing Module

Spans are opened around every bind+validate call. Without a configured
provider OpenTelemetry hands out no-op tracers, so the library never forces
an exporter on its host.

Patterns Applied:
- One-time configure_tracing() at startup
- Minimal manual instrumentation (one span per ConfigManager.get)
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import ConsoleSpanExporter, SimpleSpanProcessor

from configplus import __version__

# Module-level flag for one-time configuration
_configured: bool = False

SERVICE_NAME = "configplus"

SPAN_GET = "configplus.get"

# Span attribute keys
ATTR_SECTION_PATH = "configplus.section_path"
ATTR_ENVIRONMENT = "configplus.environment"
ATTR_TARGET_TYPE = "configplus.target_type"
ATTR_IS_VALID = "configplus.is_valid"


def configure_tracing(console_export: bool = True) -> None:
    """Install a TracerProvider for configplus spans.

    Call once at startup; later calls are no-ops.

    Args:
        console_export: Export spans to the console (for development)
    """
    global _configured

    if _configured:
        return

    provider = TracerProvider(
        resource=Resource.create(
            {"service.name": SERVICE_NAME, "service.version": __version__}
        )
    )
    if console_export:
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))
    trace.set_tracer_provider(provider)

    _configured = True


def get_tracer(name: str) -> Any:
    return trace.get_tracer(name)


@contextmanager
def section_span(
    tracer: Any,
    section_path: str,
    target_type: str,
    environment: str | None = None,
) -> Iterator[Any]:
    """Open a "configplus.get" span carrying the section attributes.

    Args:
        tracer: Tracer to start the span on
        section_path: Section requested by the caller
        target_type: Name of the model the section is bound onto
        environment: Requested environment overlay, if any

    Yields:
        The active span; the caller records ATTR_IS_VALID on it
    """
    with tracer.start_as_current_span(SPAN_GET) as span:
        span.set_attribute(ATTR_SECTION_PATH, section_path)
        span.set_attribute(ATTR_TARGET_TYPE, target_type)
        if environment:
            span.set_attribute(ATTR_ENVIRONMENT, environment)
        yield span
