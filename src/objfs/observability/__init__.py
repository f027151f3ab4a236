"""objfs observability module.

Provides OpenTelemetry tracing configuration.
"""

from objfs.observability.tracing import configure_tracing, get_tracer, is_tracing_enabled

__all__ = ["configure_tracing", "get_tracer", "is_tracing_enabled"]
