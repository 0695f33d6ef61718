"""Core errors package.

Usage:
    from accessgate.core.errors import DomainError, NotFoundError
"""

from accessgate.core.errors.common_errors import (
    NotFoundError,
    RepositoryUnavailableError,
)
from accessgate.core.errors.domain_error import DomainError

__all__ = [
    "DomainError",
    "NotFoundError",
    "RepositoryUnavailableError",
]
