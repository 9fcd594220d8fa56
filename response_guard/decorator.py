# Copyright (c) 2025 Artoo Corporation
# Licensed under the Business Source License 1.1 (see LICENSE).
# Change Date: 2029-09-08  •  Change License: LGPL-3.0-or-later

# response_guard/decorator.py

import anyio
import functools
import inspect
import asyncio
import types
from typing import Callable, Optional, Any, Mapping
import concurrent.futures as _cf
import contextvars as _ctxvars

from .config import resolve_passthrough, resolve_strict_sync
from .exceptions import ConfigurationError, ResponseGuardError, ValidationFailure
import logging

from .runtime import guard_response
from .telemetry import sync_in_async_denied_total
from .validation import Instantiator, PydanticInstantiator, PydanticValidator, Validator

logger = logging.getLogger(__name__)

# Sentinel object to detect if a parameter was provided by the user
_sentinel = object()


def _operation_name(func: Callable) -> str:
    """Return ``module.qualname`` for functions, partials and callable objects."""
    target = func
    while isinstance(target, functools.partial):
        target = target.func
    qualname = getattr(target, "__qualname__", None) or type(target).__qualname__
    module = getattr(target, "__module__", None) or type(target).__module__
    return f"{module}.{qualname}"


def _is_async_callable(func: Callable) -> bool:
    """True for coroutine functions, partials of them and objects with ``async def __call__``."""
    return inspect.iscoroutinefunction(func) or inspect.iscoroutinefunction(
        getattr(func, "__call__", None)
    )


def validate_response(
    shape: Any,
    options: Optional[Mapping[str, Any]] = None,
    *,
    instantiator: Optional[Instantiator] = None,
    validator: Optional[Validator] = None,
    name: Optional[str] = None,
    passthrough: Optional[str] = None,
    on_failure: Any = _sentinel,
    strict: Optional[bool] = None,
):
    """
    Guard the return value of a function against a declared shape.

    The returned guard wraps a function so that whatever it returns is
    instantiated as *shape* and validated before it reaches the caller. A
    single object comes back as a single instance, a list as a list of the
    same length and order. If any element is invalid a
    :class:`~response_guard.exceptions.ValidationFailure` is raised carrying
    the violations of every invalid element.

    :param shape: The expected response type (a pydantic model with the
                  default backend).
    :param options: Optional. Validator options, passed through untouched
                    (``strict``, ``skip_missing_properties`` and ``context``
                    for the pydantic backend).
    :param instantiator: Optional. Replaces the pydantic instantiator.
    :param validator: Optional. Replaces the pydantic validator.
    :param name: Optional. Operation name used in errors, logs and telemetry.
                 Defaults to the function's module and qualified name.
    :param passthrough: Optional. ``"falsy"`` (default) returns any falsy
                        value unvalidated, ``"absent"`` only ``None``.
                        Defaults to ``RESPONSE_GUARD_PASSTHROUGH``.
    :param on_failure: Optional. If provided, determines the behaviour when
                       validation fails. A callable is invoked (with the
                       ``ValidationFailure`` if it accepts it) and its result
                       returned; any other value is returned directly. If not
                       provided, the ``ValidationFailure`` is raised. Pass a
                       plain function, method or lambda: builtins and classes
                       such as ``list`` are called with the failure as their
                       argument, so wrap them (``lambda: []``).
    :param strict: Optional. Sync functions only: refuse to run inside a
                   running event loop instead of off-loading validation to a
                   worker thread. Defaults to ``RESPONSE_GUARD_STRICT_SYNC``.

    Any callable returning an awaitable is guarded as an async operation:
    ``async def`` functions, ``functools.partial`` objects over them, objects
    with an ``async def __call__`` and plain functions returning a coroutine.

    .. code-block:: python

        from pydantic import BaseModel
        from response_guard import validate_response

        class Cat(BaseModel):
            id: int
            name: str

        class CatService:
            @validate_response(Cat)
            async def find_all(self):
                return [{"id": 1, "name": "Tom"}]

            # Report instead of raising
            @validate_response(Cat, on_failure=lambda failure: failure.to_dict())
            async def find_one(self, cat_id): ...
    """
    if shape is None:
        raise ConfigurationError("validate_response() requires a shape to validate against")

    effective_passthrough = resolve_passthrough(passthrough)
    effective_strict = resolve_strict_sync(strict)
    effective_instantiator = instantiator if instantiator is not None else PydanticInstantiator()
    effective_validator = validator if validator is not None else PydanticValidator()
    # Private read-only copy: callers cannot change it later, validators cannot mutate it
    frozen_options = types.MappingProxyType(dict(options)) if options is not None else None

    def decorator(func: Callable):
        operation = name
        if operation is None:
            operation = _operation_name(func)

        async def run_pipeline(result):
            """Validate *result*, routing failures through ``on_failure``."""
            try:
                return await guard_response(
                    operation,
                    result,
                    shape=shape,
                    options=frozen_options,
                    instantiator=effective_instantiator,
                    validator=effective_validator,
                    passthrough=effective_passthrough,
                )
            except ValidationFailure as failure:
                return await _handle_validation_failure(failure)

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs):
            """Wrapper for synchronous functions."""
            result = func(*args, **kwargs)

            # Plain callables that hand back a coroutine are async operations too
            if inspect.isawaitable(result):
                return _await_then_guard(result)

            # Detect if an event loop is already running in this thread.
            try:
                asyncio.get_running_loop()
            except RuntimeError:
                # No loop → run inline (fast path)
                return anyio.run(run_pipeline, result)

            if effective_strict:
                sync_in_async_denied_total.add(1, {"operation": operation})
                raise ResponseGuardError(
                    f"Cannot validate the response of sync function '{operation}' from a running "
                    f"event loop (strict mode). Set strict=False or unset RESPONSE_GUARD_STRICT_SYNC to auto-thread."
                )

            # Auto-thread: validate inside a private event loop on a worker thread
            # and block until it finishes. Copy contextvars so validator context
            # propagates across threads.
            _ctx = _ctxvars.copy_context()
            with _cf.ThreadPoolExecutor(max_workers=1) as _exec:
                _future = _exec.submit(lambda: _ctx.run(asyncio.run, run_pipeline(result)))
                return _future.result()

        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            """Wrapper for asynchronous functions."""
            result = await func(*args, **kwargs)
            return await run_pipeline(result)

        async def _await_then_guard(awaitable):
            return await run_pipeline(await awaitable)

        async def _handle_validation_failure(failure: ValidationFailure):
            """Executes the user-supplied `on_failure` handler or raises by default."""

            if on_failure is _sentinel:
                raise failure

            logger.debug("Applying on_failure handler for '%s'", failure.operation)

            # Static value supplied (e.g. None/[])
            if not callable(on_failure):
                return on_failure

            # Callable path – support async or sync, with or without the failure arg.
            try:
                takes_failure = bool(inspect.signature(on_failure).parameters)
            except (TypeError, ValueError):
                takes_failure = True

            outcome = on_failure(failure) if takes_failure else on_failure()
            if inspect.isawaitable(outcome):
                outcome = await outcome
            return outcome

        # Choose the appropriate wrapper based on whether the decorated function is sync or async
        if _is_async_callable(func):
            wrapper = async_wrapper
        else:
            wrapper = sync_wrapper

        # Attach the shape and operation name for introspection
        wrapper.__response_shape__ = shape
        wrapper.__response_guard_name__ = operation
        return wrapper

    return decorator


# Functional spelling for explicit composition: make_guard(Cat)(fetch_cats)
make_guard = validate_response


__all__ = ["validate_response", "make_guard"]
