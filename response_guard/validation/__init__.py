"""Validation package - backend protocols and the default pydantic backend.

The guard only talks to the :class:`Instantiator` and :class:`Validator`
protocols. Any object with matching methods can replace the pydantic backend.
"""

from .base import Instantiator, ValidationOptions, Validator, ViolationRecord
from .pydantic_backend import PydanticInstantiator, PydanticValidator

__all__ = [
    "Instantiator",
    "Validator",
    "ValidationOptions",
    "ViolationRecord",
    "PydanticInstantiator",
    "PydanticValidator",
]
