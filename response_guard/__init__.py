# Copyright (c) 2025 Artoo Corporation
# Licensed under the Business Source License 1.1 (see LICENSE).
# Change Date: 2029-09-08  •  Change License: LGPL-3.0-or-later

"""response_guard: validate what your async services return before it leaves them."""

from .decorator import make_guard, validate_response
from .exceptions import ConfigurationError, ResponseGuardError, ValidationFailure
from .validation import (
    Instantiator,
    PydanticInstantiator,
    PydanticValidator,
    Validator,
    ViolationRecord,
)

__version__ = "0.1.0"

__all__ = [
    "validate_response",
    "make_guard",
    "ResponseGuardError",
    "ConfigurationError",
    "ValidationFailure",
    "Instantiator",
    "Validator",
    "ViolationRecord",
    "PydanticInstantiator",
    "PydanticValidator",
]
