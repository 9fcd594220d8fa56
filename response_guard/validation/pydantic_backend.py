"""Default instantiator/validator pair built on pydantic v2 models.

Instantiation is best-effort and never raises. Data that validates comes back
as a fully typed instance (nested models built, lax coercion applied). Data
that does not falls back to ``model_construct``, recursing into nested model
fields, so wrong values are kept verbatim for the error report.

Either way the instance remembers the input it was built from, and validation
re-runs the model against that original input. Model configuration such as
``extra="forbid"``, validation aliases and ``mode="before"`` validators
therefore sees exactly what the wrapped operation returned. Instances that did
not come from the instantiator are validated from their own field values.

Violations are reported as :class:`ViolationRecord` objects, one per top-level
property, with nested locations as ``children``.

Recognized validation options:

``strict``
    Run pydantic in strict mode (no ``"1"`` -> ``1`` coercion).
``skip_missing_properties``
    Ignore missing fields; only present values are checked.
``context``
    Mapping handed to model validators as ``info.context``.
"""

from __future__ import annotations

import dataclasses
import types
import typing
from collections.abc import Mapping, Sequence
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ValidationError

from .base import ValidationOptions, ViolationRecord

UNKNOWN_VALUE = "unknown_value"
UNKNOWN_VALUE_MESSAGE = "an unknown value was passed to the validate function"

# Instance __dict__ key holding the input an instance was built from.
# Leading underscore keeps it out of iteration, dumps, repr and equality.
SOURCE_KEY = "_response_guard_source"

_MISSING = object()


def _is_collection(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _is_model_type(shape: Any) -> bool:
    return isinstance(shape, type) and issubclass(shape, BaseModel)


def _as_mapping(value: Any) -> Optional[Mapping]:
    """Return *value* as a mapping of field data, or None if it has no fields."""
    if isinstance(value, Mapping):
        return value
    if isinstance(value, BaseModel):
        return dict(value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
    return None


def _input_keys(name: str, info) -> List[str]:
    keys = [name]
    if info.alias:
        keys.append(info.alias)
    aliases = info.validation_alias
    if isinstance(aliases, AliasChoices):
        keys.extend(choice for choice in aliases.choices if isinstance(choice, str))
    elif isinstance(aliases, str):
        keys.append(aliases)
    return keys


class PydanticInstantiator:
    """Best-effort conversion of plain data into pydantic model instances."""

    def instantiate(self, shape: Any, value: Any) -> Any:
        if _is_collection(value):
            return [self._instantiate_one(shape, item) for item in value]
        return self._instantiate_one(shape, value)

    def _instantiate_one(self, shape: Any, value: Any) -> Any:
        if isinstance(shape, type) and isinstance(value, shape):
            return value
        if not _is_model_type(shape):
            return value

        data = _as_mapping(value)
        if data is None:
            # Not convertible; the validator reports it as an unknown value.
            return value

        instance = self._build(shape, data)
        instance.__dict__[SOURCE_KEY] = data
        return instance

    def _build(self, shape: Any, data: Mapping) -> Any:
        try:
            return shape.model_validate(data)
        except ValidationError:
            return self._construct(shape, data)

    def _construct(self, shape: Any, data: Mapping) -> Any:
        """``model_construct`` with nested model fields built recursively."""
        annotations = {}
        for name, info in shape.model_fields.items():
            for key in _input_keys(name, info):
                annotations.setdefault(key, info.annotation)

        values = {}
        for key, item in data.items():
            key = str(key)
            annotation = annotations.get(key)
            values[key] = self._coerce(annotation, item) if annotation is not None else item
        return shape.model_construct(**values)

    def _coerce(self, annotation: Any, value: Any) -> Any:
        if _is_model_type(annotation):
            data = _as_mapping(value)
            if data is None or isinstance(value, annotation):
                return value
            return self._build(annotation, data)

        origin = typing.get_origin(annotation)
        args = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
        if not args:
            return value

        if origin in (typing.Union, types.UnionType):
            for arg in args:
                if _is_model_type(arg) and _as_mapping(value) is not None:
                    return self._coerce(arg, value)
            return value

        if isinstance(origin, type) and issubclass(origin, Sequence) and _is_collection(value):
            return [self._coerce(args[0], item) for item in value]
        return value


class PydanticValidator:
    """Validate a model instance by re-running its pydantic validators."""

    async def validate(
        self, instance: Any, options: Optional[ValidationOptions] = None
    ) -> List[ViolationRecord]:
        opts = options or {}

        if not isinstance(instance, BaseModel):
            return [
                ViolationRecord(
                    property="",
                    value=instance,
                    constraints={UNKNOWN_VALUE: UNKNOWN_VALUE_MESSAGE},
                    target=instance,
                )
            ]

        model = type(instance)
        data = instance.__dict__.pop(SOURCE_KEY, _MISSING)
        by_name = None
        if data is _MISSING:
            data = _field_data(instance)
            by_name = True

        try:
            model.model_validate(
                data,
                strict=opts.get("strict"),
                context=opts.get("context"),
                by_name=by_name,
            )
        except ValidationError as exc:
            errors = exc.errors(include_url=False)
        else:
            return []

        if opts.get("skip_missing_properties"):
            errors = [err for err in errors if err.get("type") != "missing"]

        return _build_records(errors, data, target=instance)


def _field_data(instance: BaseModel) -> Dict[str, Any]:
    """Return the field and extra values of an instance keyed by field name."""
    return dict(instance)


def _lookup(container: Any, key: str) -> Any:
    if isinstance(container, Mapping):
        return container.get(key)
    if isinstance(container, Sequence) and not isinstance(container, (str, bytes)):
        try:
            return container[int(key)]
        except (ValueError, IndexError):
            return None
    return getattr(container, key, None)


def _build_records(errors: List[Dict[str, Any]], data: Any, *, target: Any = None) -> List[ViolationRecord]:
    """Group pydantic errors by their first location segment, recursing into the rest."""
    grouped: Dict[str, List[Dict[str, Any]]] = {}
    for err in errors:
        loc = tuple(err.get("loc") or ())
        head = str(loc[0]) if loc else ""
        grouped.setdefault(head, []).append({**err, "loc": loc[1:]})

    records = []
    for prop, prop_errors in grouped.items():
        value = _lookup(data, prop) if prop else data
        constraints = {err["type"]: err["msg"] for err in prop_errors if not err["loc"]}
        nested = [err for err in prop_errors if err["loc"]]
        children = tuple(_build_records(nested, value)) if nested else ()
        records.append(
            ViolationRecord(
                property=prop,
                value=value,
                constraints=constraints,
                children=children,
                target=target,
            )
        )
    return records


__all__ = [
    "PydanticInstantiator",
    "PydanticValidator",
    "UNKNOWN_VALUE",
    "UNKNOWN_VALUE_MESSAGE",
]
