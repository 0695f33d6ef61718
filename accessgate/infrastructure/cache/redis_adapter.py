"""Redis adapter implementing CacheProtocol.

Shared cache tier for resolved permission views. Several processes serving
the same users read each other's resolutions from here; each process still
keeps its own single-flight in-process tier on top.

Architecture:
- Implements CacheProtocol without inheritance (structural typing)
- Maps Redis exceptions to CacheError
- Returns Result types for all operations
- Fail-open strategy: callers treat any Failure as a miss
"""

from redis.asyncio import Redis
from redis.exceptions import RedisError

from accessgate.core.enums import ErrorCode
from accessgate.core.result import Failure, Result, Success
from accessgate.infrastructure.enums import InfrastructureErrorCode
from accessgate.infrastructure.errors import CacheError

# Keys deleted per DEL round-trip during pattern deletes
DELETE_BATCH_SIZE = 500


class RedisAdapter:
    """Redis implementation of CacheProtocol.

    Note: Does NOT inherit from CacheProtocol (uses structural typing).

    Attributes:
        _redis: Async Redis client instance.
    """

    def __init__(self, redis_client: Redis) -> None:
        """Initialize Redis adapter.

        Args:
            redis_client: Async Redis client instance.
        """
        self._redis = redis_client

    async def get(self, key: str) -> Result[str | None, CacheError]:
        """Get value from Redis.

        Args:
            key: Cache key.

        Returns:
            Result with value if found, None if not found, or CacheError.
        """
        try:
            value = await self._redis.get(key)
            if value is None:
                return Success(value=None)
            decoded = value.decode("utf-8") if isinstance(value, bytes) else value
            return Success(value=decoded)
        except RedisError as e:
            return Failure(
                error=CacheError(
                    code=ErrorCode.CACHE_UNAVAILABLE,
                    infrastructure_code=InfrastructureErrorCode.CACHE_GET_ERROR,
                    message=f"Failed to get key '{key}' from cache",
                    details={"key": key, "error": str(e)},
                )
            )
        except Exception as e:
            return Failure(
                error=CacheError(
                    code=ErrorCode.CACHE_UNAVAILABLE,
                    infrastructure_code=InfrastructureErrorCode.CACHE_GET_ERROR,
                    message=f"Unexpected error getting key '{key}'",
                    details={"key": key, "error": str(e), "type": type(e).__name__},
                )
            )

    async def set(
        self,
        key: str,
        value: str,
        ttl: int | None = None,
    ) -> Result[None, CacheError]:
        """Set value in Redis.

        Args:
            key: Cache key.
            value: Value to cache.
            ttl: Time to live in seconds (None = no expiration).

        Returns:
            Result with None on success, or CacheError.
        """
        try:
            if ttl is not None:
                await self._redis.setex(key, ttl, value)
            else:
                await self._redis.set(key, value)
            return Success(value=None)
        except RedisError as e:
            return Failure(
                error=CacheError(
                    code=ErrorCode.CACHE_UNAVAILABLE,
                    infrastructure_code=InfrastructureErrorCode.CACHE_SET_ERROR,
                    message=f"Failed to set key '{key}' in cache",
                    details={"key": key, "ttl": ttl, "error": str(e)},
                )
            )
        except Exception as e:
            return Failure(
                error=CacheError(
                    code=ErrorCode.CACHE_UNAVAILABLE,
                    infrastructure_code=InfrastructureErrorCode.CACHE_SET_ERROR,
                    message=f"Unexpected error setting key '{key}'",
                    details={"key": key, "error": str(e), "type": type(e).__name__},
                )
            )

    async def delete(self, key: str) -> Result[bool, CacheError]:
        """Delete key from Redis.

        Args:
            key: Cache key to delete.

        Returns:
            Result with True if deleted, False if key didn't exist, or CacheError.
        """
        try:
            deleted_count = await self._redis.delete(key)
            return Success(value=deleted_count > 0)
        except RedisError as e:
            return Failure(
                error=CacheError(
                    code=ErrorCode.CACHE_UNAVAILABLE,
                    infrastructure_code=InfrastructureErrorCode.CACHE_DELETE_ERROR,
                    message=f"Failed to delete key '{key}' from cache",
                    details={"key": key, "error": str(e)},
                )
            )
        except Exception as e:
            return Failure(
                error=CacheError(
                    code=ErrorCode.CACHE_UNAVAILABLE,
                    infrastructure_code=InfrastructureErrorCode.CACHE_DELETE_ERROR,
                    message=f"Unexpected error deleting key '{key}'",
                    details={"key": key, "error": str(e), "type": type(e).__name__},
                )
            )

    async def delete_pattern(self, pattern: str) -> Result[int, CacheError]:
        """Delete all keys matching a glob pattern.

        Uses SCAN (never KEYS) so large keyspaces do not block Redis.

        Args:
            pattern: Glob-style pattern.

        Returns:
            Result with number of keys deleted, or CacheError.
        """
        try:
            deleted = 0
            batch: list[bytes | str] = []
            async for key in self._redis.scan_iter(match=pattern, count=DELETE_BATCH_SIZE):
                batch.append(key)
                if len(batch) >= DELETE_BATCH_SIZE:
                    deleted += await self._redis.delete(*batch)
                    batch = []
            if batch:
                deleted += await self._redis.delete(*batch)
            return Success(value=deleted)
        except RedisError as e:
            return Failure(
                error=CacheError(
                    code=ErrorCode.CACHE_UNAVAILABLE,
                    infrastructure_code=InfrastructureErrorCode.CACHE_DELETE_ERROR,
                    message=f"Failed to delete pattern '{pattern}'",
                    details={"pattern": pattern, "error": str(e)},
                )
            )
        except Exception as e:
            return Failure(
                error=CacheError(
                    code=ErrorCode.CACHE_UNAVAILABLE,
                    infrastructure_code=InfrastructureErrorCode.CACHE_DELETE_ERROR,
                    message=f"Unexpected error deleting pattern '{pattern}'",
                    details={
                        "pattern": pattern,
                        "error": str(e),
                        "type": type(e).__name__,
                    },
                )
            )

    async def ping(self) -> Result[bool, CacheError]:
        """Check Redis connectivity (health check).

        Returns:
            Result with True if Redis is reachable, or CacheError.
        """
        try:
            await self._redis.ping()  # type: ignore[misc]
            return Success(value=True)
        except RedisError as e:
            return Failure(
                error=CacheError(
                    code=ErrorCode.CACHE_UNAVAILABLE,
                    infrastructure_code=InfrastructureErrorCode.CACHE_CONNECTION_ERROR,
                    message="Redis health check failed",
                    details={"error": str(e)},
                )
            )
        except Exception as e:
            return Failure(
                error=CacheError(
                    code=ErrorCode.CACHE_UNAVAILABLE,
                    infrastructure_code=InfrastructureErrorCode.CACHE_CONNECTION_ERROR,
                    message="Unexpected error during Redis health check",
                    details={"error": str(e), "type": type(e).__name__},
                )
            )
