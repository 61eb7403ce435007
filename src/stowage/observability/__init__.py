"""Stowage observability: OpenTelemetry tracing setup."""

from stowage.observability.tracing import (
    TracingConfigError,
    TracingSettings,
    configure_tracing,
    is_tracing_enabled,
)

__all__ = ["TracingConfigError", "TracingSettings", "configure_tracing", "is_tracing_enabled"]
