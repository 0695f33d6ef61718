"""Permission cache protocol (port).

The access-check service depends on this protocol; the single-flight
in-process implementation lives in infrastructure/cache/permission_cache.py.

Consistency contract:
    invalidate() and invalidate_role() happen-before any later
    get_or_compute() for the affected keys: a later call never returns a
    value computed before the invalidation. Concurrent readers may see
    either the old or the recomputed value, never a partial one.
"""

from collections.abc import Awaitable, Callable
from typing import Any, Protocol, TypeVar

from accessgate.core.errors import DomainError
from accessgate.core.result import Result
from accessgate.domain.enums import KeyScope, ResultKind

T = TypeVar("T")


class PermissionCacheProtocol(Protocol):
    """Per-user / per-role cache of resolved access-control views."""

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
            (failures are never cached).
        """
        ...

    async def invalidate(self, user_id: int) -> int:
        """Drop every entry of a user across all result kinds.

        Args:
            user_id: User whose role assignments changed.

        Returns:
            int: Number of in-process entries removed.
        """
        ...

    async def invalidate_role(self, role_id: int) -> int:
        """Drop a role's entries and those of every user holding it.

        Args:
            role_id: Role whose permissions, menus or state changed.

        Returns:
            int: Number of in-process entries removed.
        """
        ...

    async def invalidate_kind(self, kind: ResultKind) -> int:
        """Drop every entry of one result kind (all users and roles).

        Args:
            kind: Result kind to drop.

        Returns:
            int: Number of in-process entries removed.
        """
        ...

    async def clear(self) -> int:
        """Drop every entry.

        Returns:
            int: Number of in-process entries removed.
        """
        ...

    def contains(self, scope: KeyScope, subject_id: int, kind: ResultKind) -> bool:
        """Check for a live (non-expired) in-process entry.

        Args:
            scope: USER or ROLE.
            subject_id: User or role id.
            kind: Result kind.

        Returns:
            bool: True if a fresh entry exists.
        """
        ...

    def statistics(self) -> dict[str, Any]:
        """Entry counts and hit/miss statistics.

        Returns:
            dict: Statistics snapshot.
        """
        ...
