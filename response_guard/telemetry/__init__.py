"""Telemetry package - OpenTelemetry metrics and tracing for guarded calls."""

from .runtime import get_tracer, meter
from .metrics import (
    record_validation_metrics,
    sync_in_async_denied_total,
    validation_latency_ms,
    validation_total,
    violation_total,
)

__all__ = [
    "get_tracer",
    "meter",
    "record_validation_metrics",
    "sync_in_async_denied_total",
    "validation_latency_ms",
    "validation_total",
    "violation_total",
]
