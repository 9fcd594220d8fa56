# Copyright (c) 2025 Artoo Corporation
# Licensed under the Business Source License 1.1 (see LICENSE).
# Change Date: 2029-09-08  •  Change License: LGPL-3.0-or-later

"""Process-wide OpenTelemetry handles.

Only the OpenTelemetry *API* is used here. Without an SDK configured by the
host application every instrument is a no-op.
"""

from __future__ import annotations

from opentelemetry import metrics, trace

INSTRUMENTATION_NAME = "response_guard"

meter = metrics.get_meter(INSTRUMENTATION_NAME)


def get_tracer(name: str = INSTRUMENTATION_NAME):
    """Return a tracer from the globally configured tracer provider."""
    return trace.get_tracer(name)


__all__ = ["INSTRUMENTATION_NAME", "meter", "get_tracer"]
