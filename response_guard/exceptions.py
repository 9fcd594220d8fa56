# Copyright (c) 2025 Artoo Corporation
# Licensed under the Business Source License 1.1 (see LICENSE).
# Change Date: 2029-09-08  •  Change License: LGPL-3.0-or-later

"""Exception hierarchy for response_guard."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Sequence

if TYPE_CHECKING:
    from .validation.base import ViolationRecord


class ResponseGuardError(Exception):
    """Base class for every error raised by response_guard."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(ResponseGuardError):
    """Raised when a guard is constructed with invalid arguments or environment."""


class ValidationFailure(ResponseGuardError):
    """Raised when a guarded operation returns data that does not match its shape.

    This is a boundary-level fault: the caller did nothing wrong, the service
    produced a response that breaks its own contract. ``status_code`` is 500 so
    web frameworks can map it straight to an internal server error.

    ``violations`` holds one list of :class:`ViolationRecord` per invalid
    element of the response, in the order the elements were returned. Valid
    elements have no entry.
    """

    status_code = 500

    def __init__(self, operation: str, violations: Sequence[Sequence["ViolationRecord"]]):
        self.operation = operation
        self.violations: List[List["ViolationRecord"]] = [list(v) for v in violations]
        count = len(self.violations)
        noun = "element" if count == 1 else "elements"
        super().__init__(
            f"Response of '{operation}' failed validation ({count} invalid {noun})"
        )

    def __reduce__(self):
        return (type(self), (self.operation, self.violations))

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-friendly error body carrying every violation."""
        return {
            "status_code": self.status_code,
            "error": "Internal Server Error",
            "operation": self.operation,
            "message": [[record.to_dict() for record in element] for element in self.violations],
        }

    def __str__(self) -> str:
        lines = [self.message]
        for index, element in enumerate(self.violations):
            lines.append(f"invalid element #{index}:")
            for record in element:
                lines.append(str(record).rstrip("\n"))
        return "\n".join(lines)


__all__ = [
    "ResponseGuardError",
    "ConfigurationError",
    "ValidationFailure",
]
