"""Infrastructure errors package.

Usage:
    from accessgate.infrastructure.errors import CacheError
"""

from accessgate.infrastructure.errors.infrastructure_error import (
    CacheError,
    InfrastructureError,
)

__all__ = [
    "CacheError",
    "InfrastructureError",
]
