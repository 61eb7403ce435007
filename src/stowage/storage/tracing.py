"""OpenTelemetry tracing for FileStore operations.

Span attributes never contain raw paths or file names: each path argument
is exported as its SHA256 digest for correlation only.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar, cast

from stowage.observability.tracing import get_tracer, is_tracing_enabled, path_digest

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def traced_storage_operation(
    operation: str,
    path_args: tuple[str, ...] = ("path",),
) -> Callable[[F], F]:
    """Decorator to trace async FileStore operations with OpenTelemetry.

    Args:
        operation: Operation name (e.g., "move", "delete", "exists").
        path_args: Names given to the leading positional path arguments,
            used as attribute suffixes (``stowage.<name>_sha256``).

    Returns:
        Decorated coroutine function that emits a span when tracing is enabled.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
            if not is_tracing_enabled():
                return await func(self, *args, **kwargs)

            tracer = get_tracer("stowage.file_store")
            with tracer.start_as_current_span(f"stowage.file_store.{operation}") as span:
                span.set_attribute("storage.backend", getattr(self, "backend_name", "unknown"))
                for name, value in zip(path_args, args):
                    span.set_attribute(f"stowage.{name}_sha256", path_digest(str(value)))
                if "overwrite" in kwargs:
                    span.set_attribute("stowage.overwrite", bool(kwargs["overwrite"]))

                try:
                    result = await func(self, *args, **kwargs)
                except Exception as e:
                    span.set_attribute("error", True)
                    span.set_attribute("error.type", type(e).__name__)
                    raise

                if isinstance(result, bool):
                    span.set_attribute(f"stowage.{operation}_result", result)
                return result

        return cast(F, wrapper)

    return decorator
