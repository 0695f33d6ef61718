"""Core shared kernel.

This module provides foundational utilities used across all architectural layers:
- Result types for railway-oriented programming
- Base error classes for domain-level error handling

The core module has NO dependencies on other application layers.
"""

from accessgate.core.enums import ErrorCode
from accessgate.core.errors import (
    DomainError,
    NotFoundError,
    RepositoryUnavailableError,
)
from accessgate.core.result import Failure, Result, Success

__all__ = [
    "DomainError",
    "ErrorCode",
    "Failure",
    "NotFoundError",
    "RepositoryUnavailableError",
    "Result",
    "Success",
]
