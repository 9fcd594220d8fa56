"""Pytest fixtures & test doubles for the response_guard test-suite.

Counting doubles for the Instantiator and Validator protocols let tests assert
not only what the guard returned but whether the backend was touched at all.
"""
from __future__ import annotations

from typing import Any, List, Optional

import pytest

from response_guard.validation import PydanticInstantiator, PydanticValidator, ViolationRecord


# ---------------------------------------------------------------------------
# 1. Counting doubles around the real pydantic backend
# ---------------------------------------------------------------------------


class CountingInstantiator:
    """Delegates to the pydantic instantiator and records every call."""

    def __init__(self):
        self.calls: List[Any] = []
        self._inner = PydanticInstantiator()

    def instantiate(self, shape, value):
        self.calls.append(value)
        return self._inner.instantiate(shape, value)


class CountingValidator:
    """Delegates to the pydantic validator and records every call."""

    def __init__(self):
        self.calls: List[Any] = []
        self.options_seen: List[Optional[Any]] = []
        self._inner = PydanticValidator()

    async def validate(self, instance, options=None) -> List[ViolationRecord]:
        self.calls.append(instance)
        self.options_seen.append(options)
        return await self._inner.validate(instance, options)


@pytest.fixture()
def counting_instantiator() -> CountingInstantiator:
    return CountingInstantiator()


@pytest.fixture()
def counting_validator() -> CountingValidator:
    return CountingValidator()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):  # noqa: D401
    """Keep the developer's shell environment out of guard defaults."""
    monkeypatch.delenv("RESPONSE_GUARD_PASSTHROUGH", raising=False)
    monkeypatch.delenv("RESPONSE_GUARD_STRICT_SYNC", raising=False)
    yield


@pytest.fixture(autouse=True)
def _silence_logging(caplog):  # noqa: D401
    """Reduce noise – most tests assert behaviour, not log output."""
    caplog.set_level("WARNING")
    yield


# ---------------------------------------------------------------------------
# 2. anyio backend selection – ensure tests run only with asyncio backend
# ---------------------------------------------------------------------------

@pytest.fixture()
def anyio_backend():  # noqa: D401
    """Force *anyio* tests to use the standard asyncio backend only."""
    return "asyncio"
