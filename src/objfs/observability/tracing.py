"""OpenTelemetry setup for objfs spans.

Environment Variables:
    OBJFS_OTEL_ENABLED: Set to "1" to emit ``objfs.vfs.*`` spans (default: disabled)
    OBJFS_OTEL_SERVICE_NAME: ``service.name`` resource attribute (default: "objfs")
    OBJFS_OTEL_EXPORTER: "otlp" (default) or "memory" to keep spans in-process
    OBJFS_OTEL_EXPORTER_OTLP_ENDPOINT: OTLP collector endpoint (optional)

Only the spans produced by ``objfs.tracing.traced_fs_operation`` are
configured here; their attributes never carry raw paths, keys or content.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from opentelemetry.sdk.trace import ReadableSpan
    from opentelemetry.sdk.trace.export import SpanExporter

logger = logging.getLogger(__name__)

TRACER_NAME = "objfs.vfs"
DEFAULT_SERVICE_NAME = "objfs"

OBJFS_OTEL_ENABLED_ENV = "OBJFS_OTEL_ENABLED"
OBJFS_OTEL_SERVICE_NAME_ENV = "OBJFS_OTEL_SERVICE_NAME"
OBJFS_OTEL_EXPORTER_ENV = "OBJFS_OTEL_EXPORTER"
OBJFS_OTEL_ENDPOINT_ENV = "OBJFS_OTEL_EXPORTER_OTLP_ENDPOINT"

_configured: bool = False
_memory_exporter: Any = None


def is_tracing_enabled() -> bool:
    return os.environ.get(OBJFS_OTEL_ENABLED_ENV, "").strip().lower() in ("1", "true", "yes")


def get_tracer() -> Any:
    """Tracer used for filesystem operation spans."""
    from opentelemetry import trace

    return trace.get_tracer(TRACER_NAME)


def exporter_from_env() -> SpanExporter:
    """Build the span exporter named by OBJFS_OTEL_EXPORTER."""
    global _memory_exporter

    kind = os.environ.get(OBJFS_OTEL_EXPORTER_ENV, "otlp").strip().lower()
    if kind == "memory":
        from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

        if _memory_exporter is None:
            _memory_exporter = InMemorySpanExporter()
        return _memory_exporter  # type: ignore[no-any-return]

    from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

    endpoint = os.environ.get(OBJFS_OTEL_ENDPOINT_ENV, "").strip()
    return OTLPSpanExporter(endpoint=endpoint) if endpoint else OTLPSpanExporter()


def configure_tracing(exporter: SpanExporter | None = None) -> bool:
    """Install a tracer provider for objfs spans when OBJFS_OTEL_ENABLED is set.

    Idempotent. The global provider cannot be replaced once installed, so a
    later call keeps the first exporter.

    Args:
        exporter: Exporter to use instead of the one named by the environment.

    Returns:
        True if spans will be exported, False when tracing is disabled.
    """
    global _configured

    if not is_tracing_enabled():
        logger.debug("objfs tracing disabled (%s not set)", OBJFS_OTEL_ENABLED_ENV)
        return False
    if _configured:
        return True

    from opentelemetry import trace
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor, SimpleSpanProcessor

    exporter = exporter or exporter_from_env()
    service_name = os.environ.get(OBJFS_OTEL_SERVICE_NAME_ENV, "").strip() or DEFAULT_SERVICE_NAME

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    if exporter is _memory_exporter:
        provider.add_span_processor(SimpleSpanProcessor(exporter))
    else:
        provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)
    _configured = True

    logger.info(
        "objfs tracing configured: service=%s, exporter=%s",
        service_name,
        type(exporter).__name__,
    )
    return True


def get_test_spans() -> list[ReadableSpan]:
    """Spans captured by the in-memory exporter (OBJFS_OTEL_EXPORTER=memory)."""
    if _memory_exporter is None:
        return []
    return list(_memory_exporter.get_finished_spans())


def reset_tracing() -> None:
    """Clear captured spans (for testing)."""
    if _memory_exporter is not None:
        _memory_exporter.clear()
