# Copyright (c) 2025 Artoo Corporation
# Licensed under the Business Source License 1.1 (see LICENSE).
# Change Date: 2029-09-08  •  Change License: LGPL-3.0-or-later

"""Per-call response validation pipeline.

Processing order for one guarded call:
1. Short-circuit: a passthrough value (falsy, or ``None`` in absent mode) is
   returned as-is without touching the backend
2. Instantiation: the raw value becomes one instance or a list of instances
3. Validation: every instance is validated concurrently; results keep the
   position of their element
4. Decision: any non-empty violation list raises ``ValidationFailure``,
   otherwise the instantiated value is returned
"""

from __future__ import annotations

import inspect
import logging
import time
from typing import Any, List, Mapping, Optional, Sequence

import anyio

from ..config import should_passthrough
from ..exceptions import ValidationFailure
from ..telemetry import get_tracer, record_validation_metrics
from ..validation.base import Instantiator, Validator, ViolationRecord

logger = logging.getLogger(__name__)


async def _run_validator(
    validator: Validator, instance: Any, options: Optional[Mapping[str, Any]]
) -> List[ViolationRecord]:
    result = validator.validate(instance, options)
    if inspect.isawaitable(result):
        result = await result
    return list(result or [])


async def validate_all(
    instances: Sequence[Any],
    validator: Validator,
    options: Optional[Mapping[str, Any]] = None,
) -> List[List[ViolationRecord]]:
    """Validate *instances* concurrently and return the non-empty violation lists.

    The returned lists follow the order of *instances*, whatever order the
    validations finish in. Valid instances have no entry.
    """
    results: List[Optional[List[ViolationRecord]]] = [None] * len(instances)

    async def _validate_at(index: int, instance: Any) -> None:
        results[index] = await _run_validator(validator, instance, options)

    try:
        async with anyio.create_task_group() as tg:
            for index, instance in enumerate(instances):
                tg.start_soon(_validate_at, index, instance)
    except BaseExceptionGroup as group:
        # Surface a lone validator fault as itself, not wrapped in a group
        if len(group.exceptions) == 1:
            raise group.exceptions[0] from None
        raise

    return [errors for errors in results if errors]


async def guard_response(
    operation: str,
    value: Any,
    *,
    shape: Any,
    options: Optional[Mapping[str, Any]],
    instantiator: Instantiator,
    validator: Validator,
    passthrough: str,
) -> Any:
    """Instantiate and validate *value* returned by *operation* against *shape*.

    Returns:
        The instantiated value (single instance or list, matching *value*),
        or *value* itself when it is a passthrough value

    Raises:
        ValidationFailure: If any element fails validation
    """
    started_at = time.perf_counter()

    if should_passthrough(value, passthrough):
        logger.debug("Skipping validation of '%s': passthrough value %r", operation, value)
        record_validation_metrics(operation, "passthrough", started_at)
        return value

    with get_tracer().start_as_current_span(
        f"response_guard.validate:{operation}",
        attributes={"response_guard.operation": operation},
    ) as span:
        try:
            instance = instantiator.instantiate(shape, value)
            is_collection = isinstance(instance, (list, tuple))
            instances = list(instance) if is_collection else [instance]
            span.set_attribute("response_guard.cardinality", "collection" if is_collection else "single")
            span.set_attribute("response_guard.element_count", len(instances))

            violations = await validate_all(instances, validator, options)
        except Exception:
            record_validation_metrics(operation, "error", started_at)
            raise

        span.set_attribute("response_guard.valid", not violations)
        if violations:
            logger.warning(
                "Response of '%s' failed validation: %d of %d element(s) invalid",
                operation,
                len(violations),
                len(instances),
            )
            record_validation_metrics(operation, "invalid", started_at, invalid_count=len(violations))
            raise ValidationFailure(operation, violations)

    logger.debug("Response of '%s' passed validation (%d element(s))", operation, len(instances))
    record_validation_metrics(operation, "valid", started_at)
    return instance


__all__ = [
    "guard_response",
    "validate_all",
]
