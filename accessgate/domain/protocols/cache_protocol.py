"""Cache protocol for the shared (cross-process) cache tier.

Infrastructure adapters (Redis) implement this protocol. The permission
cache uses it as an optional second tier below its in-process entries.

Architecture:
- Protocol-based - uses structural typing
- All operations return Result types
- Fail-open strategy: cache failures never break authorization
"""

from typing import Protocol

from accessgate.core.errors import DomainError
from accessgate.core.result import Result


class CacheProtocol(Protocol):
    """Shared cache tier - string values with optional TTL."""

    async def get(self, key: str) -> Result[str | None, DomainError]:
        """Get value from cache.

        Args:
            key: Cache key.

        Returns:
            Result with value if found, None if not found, or CacheError.
        """
        ...

    async def set(
        self,
        key: str,
        value: str,
        ttl: int | None = None,
    ) -> Result[None, DomainError]:
        """Set value in cache.

        Args:
            key: Cache key.
            value: Value to cache (string).
            ttl: Time to live in seconds (None = no expiration).

        Returns:
            Result with None on success, or CacheError.
        """
        ...

    async def delete(self, key: str) -> Result[bool, DomainError]:
        """Delete key from cache.

        Args:
            key: Cache key to delete.

        Returns:
            Result with True if key was deleted, False if it didn't exist,
            or CacheError.
        """
        ...

    async def delete_pattern(self, pattern: str) -> Result[int, DomainError]:
        """Delete all keys matching pattern.

        Args:
            pattern: Glob-style pattern (e.g., "accessgate:permissions:user:42:*").

        Returns:
            Result with number of keys deleted, or CacheError.
        """
        ...

    async def ping(self) -> Result[bool, DomainError]:
        """Check cache connectivity (health check).

        Returns:
            Result with True if cache is reachable, or CacheError.
        """
        ...
