"""Runtime helpers used by the response guard decorator."""

from .pipeline import guard_response, validate_all

__all__ = [
    "guard_response",
    "validate_all",
]
