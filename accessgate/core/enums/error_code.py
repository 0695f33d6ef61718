"""Domain-level error codes (machine-readable).

Error codes follow ENTITY_ACTION_REASON naming convention.
"""

from enum import Enum


class ErrorCode(Enum):
    """Domain-level error codes (machine-readable)."""

    # Resource errors
    ROLE_NOT_FOUND = "role_not_found"
    MENU_NOT_FOUND = "menu_not_found"

    # Repository port failures
    REPOSITORY_UNAVAILABLE = "repository_unavailable"
    REPOSITORY_TIMEOUT = "repository_timeout"

    # Shared cache tier failures
    CACHE_UNAVAILABLE = "cache_unavailable"
    CACHE_DECODE_FAILED = "cache_decode_failed"
