"""Shared validation primitives: violation records and backend protocols."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import (
    Any,
    Awaitable,
    Dict,
    List,
    Mapping,
    Optional,
    Protocol,
    Tuple,
    Union,
    runtime_checkable,
)


@dataclass(frozen=True)
class ViolationRecord:
    """Which constraints one property of an instance failed.

    ``constraints`` maps a constraint name (e.g. ``"int_parsing"``) to a
    human-readable message. Nested objects report their own failures through
    ``children``. ``target`` is the validated instance and is only set on
    top-level records.
    """

    property: str
    value: Any = None
    constraints: Dict[str, str] = field(default_factory=dict)
    children: Tuple["ViolationRecord", ...] = ()
    target: Any = field(default=None, repr=False, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-friendly representation (``target`` omitted)."""
        data: Dict[str, Any] = {
            "property": self.property,
            "value": self.value,
            "constraints": dict(self.constraints),
        }
        if self.children:
            data["children"] = [child.to_dict() for child in self.children]
        return data

    def format(self, parent_path: str = "") -> str:
        path = f"{parent_path}.{self.property}" if parent_path else self.property
        lines = []
        if self.constraints:
            failed = ", ".join(self.constraints)
            lines.append(f" - property {path or '<root>'} has failed the following constraints: {failed}")
        for child in self.children:
            text = child.format(path)
            if text:
                lines.append(text)
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.format()


ValidationOptions = Mapping[str, Any]


@runtime_checkable
class Instantiator(Protocol):
    """Turns a raw value into instance(s) of a shape.

    Must be total: on data it cannot convert it returns its best effort and
    leaves the complaint to the validator. A list/tuple input yields a list (or
    tuple) of the same length and order; any other input yields a single value.
    """

    def instantiate(self, shape: Any, value: Any) -> Union[Any, List[Any]]:
        ...


@runtime_checkable
class Validator(Protocol):
    """Checks one instance and reports every violation (empty list when valid)."""

    def validate(
        self, instance: Any, options: Optional[ValidationOptions] = None
    ) -> Union[Awaitable[List[ViolationRecord]], List[ViolationRecord]]:
        ...


__all__ = [
    "ViolationRecord",
    "ValidationOptions",
    "Instantiator",
    "Validator",
]
