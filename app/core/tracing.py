"""
OpenTelemetry tracing for the ReMember Me service.

Tracing is opt-in (OTEL_ENABLED=true). When enabled, incoming FastAPI
requests and outgoing httpx calls (OAuth, Google Calendar) are traced, and
feature code can open custom spans through `get_tracer`.

Environment Variables:
    OTEL_ENABLED: "true" to enable tracing (default: false)
    OTEL_SERVICE_NAME: Override service name (default: remember-me-service)
"""

import logging
import os
from typing import Optional

from opentelemetry import trace
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.trace import Tracer

logger = logging.getLogger("ReMember.Tracing")

DEFAULT_SERVICE_NAME = "remember-me-service"

_tracer_provider: Optional[TracerProvider] = None
_is_initialized = False


def is_tracing_enabled() -> bool:
    return os.getenv("OTEL_ENABLED", "false").lower() == "true"


def setup_tracing(service_name: Optional[str] = None) -> Optional[TracerProvider]:
    """
    Install a TracerProvider exporting spans to the console.

    Returns None (and does nothing) when tracing is disabled.
    """
    global _tracer_provider, _is_initialized

    if _is_initialized:
        return _tracer_provider

    _is_initialized = True
    if not is_tracing_enabled():
        logger.info("OpenTelemetry tracing is disabled (set OTEL_ENABLED=true to enable)")
        return None

    effective_service_name = service_name or os.getenv("OTEL_SERVICE_NAME") or DEFAULT_SERVICE_NAME
    _tracer_provider = TracerProvider(resource=Resource.create({SERVICE_NAME: effective_service_name}))
    _tracer_provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
    trace.set_tracer_provider(_tracer_provider)

    logger.info("OpenTelemetry tracing initialized for service: %s", effective_service_name)
    return _tracer_provider


def get_tracer(name: str) -> Tracer:
    """Tracer for custom spans; a no-op tracer when tracing is disabled."""
    return trace.get_tracer(name)


def instrument_app(app) -> None:
    """Trace every incoming HTTP request of the FastAPI app."""
    if not is_tracing_enabled():
        return
    FastAPIInstrumentor.instrument_app(app)
    logger.info("FastAPI instrumentation enabled")


def instrument_httpx() -> None:
    """Trace outbound httpx calls (OAuth token endpoints, Calendar API)."""
    if not is_tracing_enabled():
        return
    HTTPXClientInstrumentor().instrument()
    logger.info("httpx instrumentation enabled")


def shutdown_tracing() -> None:
    """Flush remaining spans and reset tracing state."""
    global _tracer_provider, _is_initialized

    if _tracer_provider is not None:
        _tracer_provider.shutdown()
        logger.info("OpenTelemetry tracing shut down")

    _tracer_provider = None
    _is_initialized = False


def get_current_trace_id() -> Optional[str]:
    """Hex trace id of the active span, or None outside a valid span."""
    span_context = trace.get_current_span().get_span_context()
    if not span_context.is_valid:
        return None
    return format(span_context.trace_id, "032x")
