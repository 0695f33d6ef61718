"""Single-flight permission cache (implements PermissionCacheProtocol).

In-process store of resolved access-control views keyed by
(scope, subject id, kind), with TTL expiry, explicit invalidation and
per-key single-flight computation.

Single-flight:
    The first caller that misses a key starts one computation task and
    registers it under that key; callers arriving while it runs await the
    same task (through asyncio.shield, so a caller giving up does not
    abort the shared work). There is no global lock: unrelated keys never
    wait on each other.

Consistency:
    Invalidation drops entries AND detaches in-flight computations for the
    affected keys. A detached computation still answers the callers that
    were already waiting, but its result is never stored, so every call
    made after invalidate() returns sees data read after the invalidation.
    Entries are replaced whole (immutable values), never mutated in place.

Role fan-out (staleness bound):
    invalidate_role() eagerly evicts every holder found through the
    users_with_role lookup. If that lookup fails or exceeds the compute
    timeout, all user-scoped entries are evicted. Invalidations the
    caller never issues are bounded by the entry TTL (Settings.*_ttl_seconds).

Shared tier:
    With a CacheProtocol store configured, a miss consults it inside the
    single flight before computing, and fresh results are written back.
    Shared-tier failures fail open (logged, treated as a miss).
    Invalidation drops local entries on both sides of the shared delete:
    a lookup racing the delete may refill a key from the old shared value,
    and the second drop discards it before invalidate() returns.
"""

import asyncio
import functools
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from accessgate.core.config import Settings
from accessgate.core.enums import ErrorCode
from accessgate.core.errors import DomainError, RepositoryUnavailableError
from accessgate.core.result import Failure, Result, Success
from accessgate.domain.enums import KeyScope, ResultKind
from accessgate.domain.protocols.cache_metrics_protocol import CacheMetricsProtocol
from accessgate.domain.protocols.cache_protocol import CacheProtocol
from accessgate.domain.protocols.logger_protocol import LoggerProtocol
from accessgate.infrastructure.cache import result_codec
from accessgate.infrastructure.cache.cache_keys import CacheKey, CacheKeys

T = TypeVar("T")

UsersWithRole = Callable[[int], Awaitable[Result[list[int], DomainError]]]


@dataclass(frozen=True, slots=True)
class _Entry:
    """Cached value with its lifetime."""

    value: Any
    created_at: float
    expires_at: float


class PermissionCache:
    """In-process single-flight cache of resolved views.

    Attributes:
        _entries: key -> live entry (insertion order = age order).
        _flights: key -> computation task currently filling that key.
    """

    def __init__(
        self,
        *,
        settings: Settings,
        logger: LoggerProtocol,
        metrics: CacheMetricsProtocol,
        users_with_role: UsersWithRole,
        shared: CacheProtocol | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize cache.

        Args:
            settings: TTLs, size bound, compute timeout and key prefix.
            logger: Structured logger.
            metrics: Hit/miss/error counters per (scope, kind).
            users_with_role: Lookup used for role invalidation fan-out.
            shared: Optional shared tier (Redis).
            clock: Monotonic clock in seconds.
        """
        self._settings = settings
        self._logger = logger
        self._metrics = metrics
        self._users_with_role = users_with_role
        self._shared = shared
        self._clock = clock
        self._keys = CacheKeys(prefix=settings.cache_key_prefix)
        self._entries: dict[CacheKey, _Entry] = {}
        self._flights: dict[CacheKey, asyncio.Task[Any]] = {}

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    async def get_or_compute(
        self,
        scope: KeyScope,
        subject_id: int,
        kind: ResultKind,
        compute: Callable[[], Awaitable[Result[T, DomainError]]],
    ) -> Result[T, DomainError]:
        """Return the cached value or compute it once (single-flight).

        Args:
            scope: USER or ROLE.
            subject_id: User or role id.
            kind: Result kind.
            compute: Resolver call producing the value on a miss.

        Returns:
            Cached or freshly computed Success, or the computation's Failure
            (failures are never cached). A computation exceeding the
            configured timeout yields Failure(RepositoryUnavailableError).

        Raises:
            Exception: Whatever compute raised, re-raised in every waiter.
        """
        key = CacheKey(scope, subject_id, kind)
        entry = self._live_entry(key)
        if entry is not None:
            self._metrics.record_hit(scope, kind)
            return Success(value=entry.value)

        flight = self._flights.get(key)
        if flight is None:
            self._metrics.record_miss(scope, kind)
            flight = asyncio.create_task(
                self._fill(key, compute),
                name=f"accessgate-fill:{self._keys.render(key)}",
            )
            self._flights[key] = flight
            flight.add_done_callback(functools.partial(self._flight_done, key))
        else:
            self._logger.debug(
                "cache_flight_joined",
                scope=scope.value,
                subject_id=subject_id,
                kind=kind.value,
            )
        return await asyncio.shield(flight)

    def contains(self, scope: KeyScope, subject_id: int, kind: ResultKind) -> bool:
        """Check for a live (non-expired) entry.

        Args:
            scope: USER or ROLE.
            subject_id: User or role id.
            kind: Result kind.

        Returns:
            bool: True if a fresh entry exists.
        """
        return self._live_entry(CacheKey(scope, subject_id, kind)) is not None

    # ------------------------------------------------------------------
    # Invalidation
    # ------------------------------------------------------------------

    async def invalidate(self, user_id: int) -> int:
        """Drop every entry of a user across all result kinds.

        MUST be called by the administrative layer after changing the
        user's role assignments.

        Args:
            user_id: User identifier.

        Returns:
            int: Number of in-process entries removed.
        """
        removed = await self._evict(
            self._subject(KeyScope.USER, user_id),
            self._keys.subject_pattern(KeyScope.USER, user_id),
        )
        self._logger.info("cache_invalidated", user_id=user_id, entries=removed)
        return removed

    async def invalidate_role(self, role_id: int) -> int:
        """Drop a role's entries and those of every user holding it.

        MUST be called by the administrative layer after changing a role's
        permissions, menus or active flag, or deleting it.

        Args:
            role_id: Role identifier.

        Returns:
            int: Number of in-process entries removed.
        """
        removed = await self._evict(
            self._subject(KeyScope.ROLE, role_id),
            self._keys.subject_pattern(KeyScope.ROLE, role_id),
        )

        try:
            async with asyncio.timeout(self._settings.compute_timeout_seconds):
                result = await self._users_with_role(role_id)
        except TimeoutError:
            result = Failure(
                error=RepositoryUnavailableError(
                    code=ErrorCode.REPOSITORY_TIMEOUT,
                    message=(
                        f"Holder lookup for role {role_id} timed out after "
                        f"{self._settings.compute_timeout_seconds}s"
                    ),
                    operation="get_users_with_role",
                    details={"role_id": role_id},
                )
            )

        match result:
            case Success(value=user_ids):
                holders = set(user_ids)
                for user_id in holders:
                    removed += await self._evict(
                        self._subject(KeyScope.USER, user_id),
                        self._keys.subject_pattern(KeyScope.USER, user_id),
                    )
                self._logger.info(
                    "role_cache_invalidated",
                    role_id=role_id,
                    users=len(holders),
                    entries=removed,
                )
            case Failure(error=error):
                # Holders unknown: evict every user-scoped entry
                removed += await self._evict(
                    lambda key: key.scope is KeyScope.USER,
                    self._keys.scope_pattern(KeyScope.USER),
                )
                self._logger.warning(
                    "role_fanout_failed",
                    role_id=role_id,
                    error_code=error.code.value,
                    entries=removed,
                )
        return removed

    async def invalidate_kind(self, kind: ResultKind) -> int:
        """Drop every entry of one result kind (all users and roles).

        Used after menu structure changes, which affect every menu forest.

        Args:
            kind: Result kind to drop.

        Returns:
            int: Number of in-process entries removed.
        """
        removed = await self._evict(
            lambda key: key.kind is kind, self._keys.kind_pattern(kind)
        )
        self._logger.info("cache_kind_invalidated", kind=kind.value, entries=removed)
        return removed

    async def clear(self) -> int:
        """Drop every entry.

        Returns:
            int: Number of in-process entries removed.
        """
        removed = await self._evict(lambda key: True, self._keys.all_pattern())
        self._logger.info("cache_cleared", entries=removed)
        return removed

    def sweep_expired(self) -> int:
        """Remove expired entries.

        Called before evicting live entries when the cache is full.

        Returns:
            int: Number of entries removed.
        """
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
        for key in expired:
            del self._entries[key]
        if expired:
            self._logger.debug("cache_swept", entries=len(expired))
        return len(expired)

    def statistics(self) -> dict[str, Any]:
        """Entry counts and hit/miss statistics.

        Returns:
            dict: Current sizes plus the metrics snapshot (overall counters,
            "scopes" and "kinds" breakdowns).
        """
        return {
            "total_entries": len(self._entries),
            "user_entries": sum(
                1 for key in self._entries if key.scope is KeyScope.USER
            ),
            "role_entries": sum(
                1 for key in self._entries if key.scope is KeyScope.ROLE
            ),
            "in_flight": len(self._flights),
            "max_entries": self._settings.cache_max_entries,
            **self._metrics.snapshot(),
        }


    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _fill(
        self,
        key: CacheKey,
        compute: Callable[[], Awaitable[Result[Any, DomainError]]],
    ) -> Result[Any, DomainError]:
        """Body of a single-flight task: load, then store if still current."""
        this_flight = asyncio.current_task()
        from_shared = False
        try:
            async with asyncio.timeout(self._settings.compute_timeout_seconds):
                result = await self._read_shared(key)
                if result is None:
                    result = await compute()
                else:
                    from_shared = True
        except TimeoutError:
            result = Failure(
                error=RepositoryUnavailableError(
                    code=ErrorCode.REPOSITORY_TIMEOUT,
                    message=(
                        f"Resolution of {key.kind.value} timed out after "
                        f"{self._settings.compute_timeout_seconds}s"
                    ),
                    operation=f"resolve_{key.kind.value}",
                    details={"scope": key.scope.value, "subject_id": key.subject_id},
                )
            )

        if isinstance(result, Failure):
            self._metrics.record_error(key.scope, key.kind)
            return result

        if not from_shared:
            await self._write_shared(key, result.value)
        if self._flights.get(key) is this_flight:
            self._store(key, result.value)
        elif not from_shared:
            # Invalidated while computing: the shared copy may predate it
            await self._delete_shared(self._keys.render(key))
        return result

    def _flight_done(self, key: CacheKey, task: asyncio.Task[Any]) -> None:
        if self._flights.get(key) is task:
            del self._flights[key]
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self._metrics.record_error(key.scope, key.kind)
            self._logger.error(
                "cache_compute_failed",
                error=error if isinstance(error, Exception) else None,
                scope=key.scope.value,
                subject_id=key.subject_id,
                kind=key.kind.value,
            )

    def _live_entry(self, key: CacheKey) -> _Entry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            del self._entries[key]
            return None
        return entry

    def _ttl(self, key: CacheKey) -> int:
        return self._settings.ttl_for(key.kind, role_scoped=key.scope is KeyScope.ROLE)

    def _store(self, key: CacheKey, value: Any) -> None:
        self._entries.pop(key, None)
        if len(self._entries) >= self._settings.cache_max_entries:
            self.sweep_expired()
        while len(self._entries) >= self._settings.cache_max_entries:
            oldest = next(iter(self._entries))
            del self._entries[oldest]
        now = self._clock()
        self._entries[key] = _Entry(
            value=value, created_at=now, expires_at=now + self._ttl(key)
        )

    @staticmethod
    def _subject(scope: KeyScope, subject_id: int) -> Callable[[CacheKey], bool]:
        return lambda key: key.scope is scope and key.subject_id == subject_id

    async def _evict(
        self, predicate: Callable[[CacheKey], bool], pattern: str
    ) -> int:
        """Drop matching entries and flights around the shared-tier delete.

        Lookups running during the delete may refill keys from the old
        shared value; the second drop removes them. Returns the count of
        the first drop.
        """
        removed = self._drop_where(predicate)
        if self._shared is not None:
            await self._delete_shared(pattern)
            self._drop_where(predicate)
        return removed

    def _drop_where(self, predicate: Callable[[CacheKey], bool]) -> int:
        doomed = [key for key in self._entries if predicate(key)]
        for key in doomed:
            del self._entries[key]
        for key in [key for key in self._flights if predicate(key)]:
            del self._flights[key]
        return len(doomed)

    async def _read_shared(self, key: CacheKey) -> Result[Any, DomainError] | None:
        if self._shared is None:
            return None
        result = await self._shared.get(self._keys.render(key))
        match result:
            case Success(value=None):
                return None
            case Success(value=raw):
                decoded = result_codec.decode(key.kind, raw)
                if isinstance(decoded, Failure):
                    self._logger.warning(
                        "shared_cache_decode_failed",
                        key=self._keys.render(key),
                        error_code=decoded.error.code.value,
                    )
                    return None
                self._logger.debug("shared_cache_hit", key=self._keys.render(key))
                return Success(value=decoded.value)
            case Failure(error=error):
                self._logger.warning(
                    "shared_cache_unavailable",
                    operation="get",
                    error_code=error.code.value,
                )
                return None
        return None

    async def _write_shared(self, key: CacheKey, value: Any) -> None:
        if self._shared is None:
            return
        result = await self._shared.set(
            self._keys.render(key),
            result_codec.encode(key.kind, value),
            ttl=self._ttl(key),
        )
        if isinstance(result, Failure):
            self._logger.warning(
                "shared_cache_unavailable",
                operation="set",
                error_code=result.error.code.value,
            )

    async def _delete_shared(self, pattern: str) -> None:
        if self._shared is None:
            return
        result = await self._shared.delete_pattern(pattern)
        if isinstance(result, Failure):
            self._logger.warning(
                "shared_cache_unavailable",
                operation="delete_pattern",
                pattern=pattern,
                error_code=result.error.code.value,
            )
