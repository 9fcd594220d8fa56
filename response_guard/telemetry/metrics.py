# Copyright (c) 2025 Artoo Corporation
# Licensed under the Business Source License 1.1 (see LICENSE).
# Change Date: 2029-09-08  •  Change License: LGPL-3.0-or-later

"""Metric instrument definitions for response validation."""

from __future__ import annotations

import logging
import time

from .runtime import meter

logger = logging.getLogger(__name__)

validation_total = meter.create_counter(
    name="response_guard.validation.total",
    description="Counts guarded calls partitioned by outcome (valid, invalid, passthrough, error).",
    unit="1",
)

violation_total = meter.create_counter(
    name="response_guard.violation.total",
    description="Counts response elements that failed validation.",
    unit="1",
)

validation_latency_ms = meter.create_histogram(
    name="response_guard.validation.latency.ms",
    description="Time spent instantiating and validating a response, excluding the wrapped call.",
    unit="ms",
)

sync_in_async_denied_total = meter.create_counter(
    name="response_guard.sync_in_async.denied.total",
    description="Counts guarded sync operations refused because an event loop was running (strict mode).",
    unit="1",
)


def record_validation_metrics(
    operation: str,
    status: str,
    started_at: float,
    *,
    invalid_count: int = 0,
) -> None:
    """Record latency and outcome metrics for one guarded call.

    Args:
        operation: Name of the guarded operation
        status: "valid", "invalid", "passthrough" or "error"
        started_at: Timestamp from time.perf_counter() when validation started
        invalid_count: Number of elements that failed validation
    """
    try:
        duration_ms = (time.perf_counter() - started_at) * 1000.0
        attributes = {"operation": operation, "status": status}
        validation_latency_ms.record(duration_ms, attributes)
        validation_total.add(1, attributes)
        if invalid_count:
            violation_total.add(invalid_count, {"operation": operation})
    except Exception:
        # Telemetry must never interfere with user code
        logger.debug("Failed to record metrics for '%s'", operation, exc_info=True)


__all__ = [
    "validation_total",
    "violation_total",
    "validation_latency_ms",
    "sync_in_async_denied_total",
    "record_validation_metrics",
]
