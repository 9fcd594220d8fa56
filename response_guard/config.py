"""Environment-driven defaults for guards.

Explicit keyword arguments to :func:`response_guard.validate_response` always
win over the values read here.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

PASSTHROUGH_ENV = "RESPONSE_GUARD_PASSTHROUGH"
STRICT_SYNC_ENV = "RESPONSE_GUARD_STRICT_SYNC"

# Any falsy return value skips validation (legacy behaviour)
PASSTHROUGH_FALSY = "falsy"
# Only ``None`` skips validation
PASSTHROUGH_ABSENT = "absent"

PASSTHROUGH_MODES = (PASSTHROUGH_FALSY, PASSTHROUGH_ABSENT)


def resolve_passthrough(mode: Optional[str] = None) -> str:
    """Return the effective short-circuit mode.

    Falls back to ``RESPONSE_GUARD_PASSTHROUGH`` and then to ``"falsy"``.
    """
    source = "argument"
    if mode is None:
        mode = os.getenv(PASSTHROUGH_ENV, "") or PASSTHROUGH_FALSY
        source = PASSTHROUGH_ENV

    normalized = str(mode).strip().lower()
    if normalized not in PASSTHROUGH_MODES:
        logger.error("Invalid passthrough mode %r (from %s)", mode, source)
        raise ConfigurationError(
            f"Invalid passthrough mode {mode!r}; expected one of {list(PASSTHROUGH_MODES)}"
        )
    return normalized


def resolve_strict_sync(strict: Optional[bool] = None) -> bool:
    """Return whether guarded sync operations must refuse to run inside an event loop."""
    if strict is not None:
        return bool(strict)
    return os.getenv(STRICT_SYNC_ENV, "0").strip().lower() not in ("", "0", "false", "no")


def should_passthrough(value, mode: str) -> bool:
    """Return True when *value* skips instantiation and validation under *mode*."""
    if mode == PASSTHROUGH_ABSENT:
        return value is None
    return not value


__all__ = [
    "PASSTHROUGH_ENV",
    "STRICT_SYNC_ENV",
    "PASSTHROUGH_FALSY",
    "PASSTHROUGH_ABSENT",
    "PASSTHROUGH_MODES",
    "resolve_passthrough",
    "resolve_strict_sync",
    "should_passthrough",
]
