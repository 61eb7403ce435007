"""OpenTelemetry tracing setup for Stowage.

Tracing is opt-in. Instrumented code always goes through ``get_tracer``;
until a provider is installed the OpenTelemetry API hands out no-op
tracers, so uploads behave the same with tracing on or off.

Environment Variables:
    STOWAGE_OTEL_ENABLED: "1" turns tracing on (default: off)
    STOWAGE_REQUIRE_OTEL: "1" makes setup failures raise TracingConfigError
    STOWAGE_OTEL_SERVICE_NAME: ``service.name`` resource value (default: "stowage")
    STOWAGE_OTEL_EXPORTER: "otlp" or "console" (default: "otlp")
    STOWAGE_OTEL_EXPORTER_OTLP_ENDPOINT: OTLP/HTTP collector URL (optional)
    STOWAGE_OTEL_TEST_CAPTURE: "1" records spans in memory for assertions

Span attributes never contain file names or filesystem paths; a path is
identified by its SHA256 digest only.
"""

from __future__ import annotations

import hashlib
import logging
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from opentelemetry import trace

if TYPE_CHECKING:
    from opentelemetry.sdk.trace import ReadableSpan, SpanProcessor, TracerProvider

logger = logging.getLogger(__name__)

OTEL_ENABLED_ENV = "STOWAGE_OTEL_ENABLED"
OTEL_TEST_CAPTURE_ENV = "STOWAGE_OTEL_TEST_CAPTURE"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})

_provider: TracerProvider | None = None
_configured = False
_memory_exporter: Any = None


class TracingConfigError(Exception):
    """Tracing was required (STOWAGE_REQUIRE_OTEL=1) but could not be set up."""


def _get_env_bool(key: str, default: bool = False) -> bool:
    raw = os.environ.get(key, "").strip().lower()
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    return default


def _get_env_str(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip() or default


@dataclass(frozen=True)
class TracingSettings:
    """Process-level tracing options, read from ``STOWAGE_*`` variables."""

    enabled: bool = False
    required: bool = False
    test_capture: bool = False
    service_name: str = "stowage"
    exporter: str = "otlp"
    endpoint: str = ""

    @classmethod
    def from_env(cls) -> TracingSettings:
        return cls(
            enabled=_get_env_bool(OTEL_ENABLED_ENV),
            required=_get_env_bool("STOWAGE_REQUIRE_OTEL"),
            test_capture=_get_env_bool(OTEL_TEST_CAPTURE_ENV),
            service_name=_get_env_str("STOWAGE_OTEL_SERVICE_NAME", "stowage"),
            exporter=_get_env_str("STOWAGE_OTEL_EXPORTER", "otlp").lower(),
            endpoint=_get_env_str("STOWAGE_OTEL_EXPORTER_OTLP_ENDPOINT"),
        )

    @property
    def exporter_label(self) -> str:
        return "in-memory" if self.test_capture else self.exporter


def is_tracing_enabled() -> bool:
    """Return True when STOWAGE_OTEL_ENABLED is set."""
    return _get_env_bool(OTEL_ENABLED_ENV)


def path_digest(path: str) -> str:
    """Return the SHA256 hex digest that stands in for ``path`` in spans."""
    return hashlib.sha256(path.encode("utf-8")).hexdigest()


def get_tracer(name: str) -> trace.Tracer:
    """Return a tracer from whichever provider is installed (possibly no-op)."""
    return trace.get_tracer(name)


def _build_span_processor(settings: TracingSettings) -> SpanProcessor:
    global _memory_exporter

    from opentelemetry.sdk.trace.export import BatchSpanProcessor, SimpleSpanProcessor

    if settings.test_capture:
        from opentelemetry.sdk.trace.export.in_memory_span_exporter import (
            InMemorySpanExporter,
        )

        _memory_exporter = InMemorySpanExporter()
        return SimpleSpanProcessor(_memory_exporter)

    if settings.exporter == "console":
        from opentelemetry.sdk.trace.export import ConsoleSpanExporter

        return SimpleSpanProcessor(ConsoleSpanExporter())

    from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter

    if settings.endpoint:
        return BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.endpoint))
    return BatchSpanProcessor(OTLPSpanExporter())


def configure_tracing(settings: TracingSettings | None = None) -> bool:
    """Install a TracerProvider according to ``settings``.

    Calling this again after a successful setup is a no-op, since the
    global provider can only be set once per process.

    Args:
        settings: Tracing options; read from the environment when omitted.

    Returns:
        True if spans are being recorded, False if tracing is off or
        setup failed without being required.

    Raises:
        TracingConfigError: Setup failed and ``settings.required`` is set.
    """
    global _provider, _configured

    settings = settings or TracingSettings.from_env()

    if not settings.enabled:
        _configured = True
        logger.debug("Tracing disabled; set %s=1 to enable", OTEL_ENABLED_ENV)
        return False

    if settings.test_capture and _memory_exporter is not None:
        return True
    if _configured and _provider is not None:
        return True
    _configured = True

    try:
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider

        provider = TracerProvider(
            resource=Resource.create({"service.name": settings.service_name})
        )
        provider.add_span_processor(_build_span_processor(settings))
        trace.set_tracer_provider(provider)
        _provider = provider
    except Exception as e:
        logger.error("Stowage tracing setup failed: %s", e)
        if settings.required:
            raise TracingConfigError(f"Tracing is required but setup failed: {e}") from e
        return False

    logger.info(
        "Stowage tracing enabled (service=%s, exporter=%s)",
        settings.service_name,
        settings.exporter_label,
    )
    return True


def get_test_spans() -> list[ReadableSpan]:
    """Return spans recorded by the in-memory exporter.

    Empty unless tracing was configured with STOWAGE_OTEL_TEST_CAPTURE=1.
    """
    if _memory_exporter is None:
        return []
    return list(_memory_exporter.get_finished_spans())


def clear_test_spans() -> None:
    """Drop every span recorded by the in-memory exporter."""
    if _memory_exporter is not None:
        _memory_exporter.clear()


def reset_tracing() -> None:
    """Forget configuration state between tests.

    The provider itself stays installed (OpenTelemetry refuses to replace
    it), so only the captured spans are dropped.
    """
    global _configured

    clear_test_spans()
    _configured = False
