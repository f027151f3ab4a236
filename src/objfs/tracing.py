"""OpenTelemetry spans for filesystem operations.

Span attributes are limited to safe values:
    - Never export raw virtual paths or store keys (only their SHA256)
    - No credentials or object content in any attribute
"""

from __future__ import annotations

import functools
import hashlib
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar, cast

from objfs.observability.tracing import get_tracer, is_tracing_enabled

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def _path_sha256(path: str) -> str:
    return hashlib.sha256(path.encode("utf-8")).hexdigest()


def traced_fs_operation(operation: str) -> Callable[[F], F]:
    """Decorator to trace a filesystem coroutine with OpenTelemetry.

    The first argument after ``self`` is taken as the virtual path.

    Args:
        operation: Operation name (e.g., "list", "read", "copy").

    Returns:
        Decorated coroutine function that emits spans when tracing is enabled.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
            if not is_tracing_enabled():
                return await func(self, *args, **kwargs)

            path = str(args[0]) if args else str(kwargs.get("path", kwargs.get("source", "")))

            with get_tracer().start_as_current_span(f"objfs.vfs.{operation}") as span:
                span.set_attribute("objfs.operation", operation)
                span.set_attribute("objfs.path_sha256", _path_sha256(path))
                span.set_attribute("objfs.backend", getattr(self, "backend_name", "unknown"))

                try:
                    result = await func(self, *args, **kwargs)
                except Exception as e:
                    span.set_attribute("error", True)
                    span.set_attribute("error.type", type(e).__name__)
                    raise

                _add_result_attributes(span, result)
                return result

        return cast(F, wrapper)

    return decorator


def _add_result_attributes(span: Any, result: Any) -> None:
    """Add result-based attributes to span safely."""
    try:
        if isinstance(result, list):
            span.set_attribute("objfs.entry_count", len(result))
        elif isinstance(result, bool):
            span.set_attribute("objfs.exists", result)
    except Exception as e:
        logger.debug("Failed to add result attributes to span: %s", e)
