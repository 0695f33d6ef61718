"""Access-check service - the façade used by request handling.

Answers "may user U perform action A on resource R?" and "what menu forest
should U see?", consulting the permission cache first and delegating to
the PermissionResolver on a miss.

Fail-closed policy:
    authorize() denies and get_visible_menus() returns an empty forest when
    resolution fails. The failure is still logged at error level (and
    counted as an error by the cache metrics), so an outage is
    distinguishable from a user who legitimately holds nothing.

Consistency contract with the administrative layer:
    invalidate(user_id) MUST be called after changing a user's role
    assignments, invalidate_role(role_id) after changing a role's
    permissions, menus or active flag. Without these calls cached decisions
    stay stale until their TTL expires.
"""

import asyncio
from typing import Any

from accessgate.application.services.permission_resolver import PermissionResolver
from accessgate.core.errors import DomainError, NotFoundError
from accessgate.core.result import Failure, Result, Success
from accessgate.domain.entities import Forest, Permission, PermissionKey
from accessgate.domain.enums import KeyScope, ResultKind
from accessgate.domain.protocols.logger_protocol import LoggerProtocol
from accessgate.domain.protocols.permission_cache_protocol import (
    PermissionCacheProtocol,
)


class AccessCheckService:
    """Cached authorization checks and menu resolution.

    Attributes:
        _resolver: Uncached resolution via repository ports.
        _cache: Single-flight permission cache.
        _logger: Structured logger.
        _preloads: Background warm-up tasks still running.
    """

    def __init__(
        self,
        resolver: PermissionResolver,
        cache: PermissionCacheProtocol,
        logger: LoggerProtocol,
    ) -> None:
        """Initialize service.

        Args:
            resolver: Permission resolver.
            cache: Permission cache.
            logger: Structured logger.
        """
        self._resolver = resolver
        self._cache = cache
        self._logger = logger
        self._preloads: set[asyncio.Task[bool]] = set()

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    async def authorize(self, user_id: int, resource: str, action: str) -> bool:
        """Check if user may perform action on resource.

        Never raises: unknown users, users without roles and resolution
        failures all deny.

        Args:
            user_id: User identifier.
            resource: Resource name (e.g. "Course").
            action: Action name (e.g. "Create").

        Returns:
            bool: True if allowed, False if denied.
        """
        try:
            result = await self._user_permissions(user_id)
        except Exception as e:
            # Fail closed on errors
            self._logger.error(
                "authorization_check_error",
                error=e,
                user_id=user_id,
                resource=resource,
                action=action,
            )
            return False

        match result:
            case Success(value=permissions):
                allowed = PermissionKey(resource, action) in permissions
            case Failure(error=error):
                self._report_failure("authorize", error, user_id=user_id)
                allowed = False

        self._logger.debug(
            "authorization_check",
            user_id=user_id,
            resource=resource,
            action=action,
            allowed=allowed,
        )
        return allowed

    async def get_visible_menus(self, user_id: int) -> Forest:
        """Menu forest the user may see.

        Args:
            user_id: User identifier.

        Returns:
            Forest: Visible roots with nested children (empty on failure).
        """
        try:
            result = await self._cache.get_or_compute(
                KeyScope.USER,
                user_id,
                ResultKind.MENU_TREE,
                lambda: self._resolver.resolve_user_menu_tree(user_id),
            )
        except Exception as e:
            self._logger.error("menu_resolution_error", error=e, user_id=user_id)
            return ()

        match result:
            case Success(value=forest):
                return forest
            case Failure(error=error):
                self._report_failure("get_visible_menus", error, user_id=user_id)
                return ()

    async def get_permission_matrix(self, user_id: int) -> dict[str, frozenset[str]]:
        """Resource → actions matrix of the user's effective permissions.

        Args:
            user_id: User identifier.

        Returns:
            dict[str, frozenset[str]]: Matrix (empty on failure).
        """
        try:
            result = await self._cache.get_or_compute(
                KeyScope.USER,
                user_id,
                ResultKind.PERMISSION_MATRIX,
                lambda: self._resolver.build_user_permission_matrix(user_id),
            )
        except Exception as e:
            self._logger.error("permission_matrix_error", error=e, user_id=user_id)
            return {}

        match result:
            case Success(value=matrix):
                return matrix
            case Failure(error=error):
                self._report_failure("get_permission_matrix", error, user_id=user_id)
                return {}

    async def get_role_matrix(self, user_id: int) -> dict[str, tuple[str, ...]]:
        """Role name → permission display names for the user's active roles.

        Args:
            user_id: User identifier.

        Returns:
            dict[str, tuple[str, ...]]: Matrix ordered by role priority
            (empty on failure).
        """
        try:
            result = await self._cache.get_or_compute(
                KeyScope.USER,
                user_id,
                ResultKind.ROLE_MATRIX,
                lambda: self._resolver.build_user_role_matrix(user_id),
            )
        except Exception as e:
            self._logger.error("role_matrix_error", error=e, user_id=user_id)
            return {}

        match result:
            case Success(value=matrix):
                return matrix
            case Failure(error=error):
                self._report_failure("get_role_matrix", error, user_id=user_id)
                return {}

    async def get_user_roles(self, user_id: int) -> tuple[str, ...]:
        """Names of the user's active roles, highest priority first.

        Answered from the cached role matrix.

        Args:
            user_id: User identifier.

        Returns:
            tuple[str, ...]: Role names (empty on failure).
        """
        return tuple(await self.get_role_matrix(user_id))

    async def has_role(self, user_id: int, role_name: str) -> bool:
        """Check whether the user holds an active role by name.

        Answered from the cached role matrix (its keys are the names of the
        user's active roles).

        Args:
            user_id: User identifier.
            role_name: Role name (exact match).

        Returns:
            bool: True if held, False otherwise or on failure.
        """
        return role_name in await self.get_role_matrix(user_id)

    async def role_has_permission(
        self, role_id: int, resource: str, action: str
    ) -> bool:
        """Check a role's direct grant, from the cached role permissions.

        Args:
            role_id: Role identifier.
            resource: Resource name.
            action: Action name.

        Returns:
            bool: True if granted. False for unknown roles and on failure.
        """
        try:
            result = await self.get_role_permissions(role_id)
        except Exception as e:
            self._logger.error(
                "role_permission_check_error",
                error=e,
                role_id=role_id,
                resource=resource,
                action=action,
            )
            return False

        match result:
            case Success(value=permissions):
                return PermissionKey(resource, action) in permissions
            case Failure(error=NotFoundError()):
                return False
            case Failure(error=error):
                self._report_failure("role_has_permission", error, role_id=role_id)
                return False

    async def user_can_access_menu(self, user_id: int, menu_id: int) -> bool:
        """Check whether a menu is part of the user's visible forest.

        Args:
            user_id: User identifier.
            menu_id: Menu identifier.

        Returns:
            bool: True if visible. False otherwise or on failure.
        """
        forest = await self.get_visible_menus(user_id)
        return any(menu.id == menu_id for root in forest for menu in root.walk())

    async def get_role_permissions(
        self, role_id: int
    ) -> Result[frozenset[PermissionKey], DomainError]:
        """Direct permissions of a role (cached per role).

        Args:
            role_id: Role identifier.

        Returns:
            Success(frozenset), Failure(NotFoundError), or
            Failure(RepositoryUnavailableError).
        """
        return await self._cache.get_or_compute(
            KeyScope.ROLE,
            role_id,
            ResultKind.PERMISSIONS,
            lambda: self._resolver.resolve_role_permissions(role_id),
        )

    async def get_role_menus(self, role_id: int) -> Result[Forest, DomainError]:
        """Menu forest granted directly to a role (cached per role).

        Args:
            role_id: Role identifier.

        Returns:
            Success(Forest), Failure(NotFoundError), or
            Failure(RepositoryUnavailableError).
        """
        return await self._cache.get_or_compute(
            KeyScope.ROLE,
            role_id,
            ResultKind.MENU_TREE,
            lambda: self._resolver.resolve_role_menu_tree(role_id),
        )

    async def get_permissions_by_module(
        self, module: str
    ) -> Result[tuple[Permission, ...], DomainError]:
        """Active permissions of a module (not cached).

        Args:
            module: Module tag (exact match).

        Returns:
            Success(permissions), or Failure(RepositoryUnavailableError).
        """
        return await self._resolver.resolve_permissions_by_module(module)

    async def get_menu_tree_by_module(self, module: str) -> Result[Forest, DomainError]:
        """Menu forest of a module regardless of user (not cached).

        Args:
            module: Module tag (exact match).

        Returns:
            Success(Forest), or Failure(RepositoryUnavailableError).
        """
        return await self._resolver.resolve_menu_tree_by_module(module)

    # ------------------------------------------------------------------
    # Warm-up
    # ------------------------------------------------------------------

    def preload(self, user_id: int) -> asyncio.Task[bool]:
        """Warm the user's permission entry in the background.

        Returns immediately; the caller's request is never gated on the
        warm-up. Must be called from a running event loop.

        Args:
            user_id: User identifier.

        Returns:
            asyncio.Task[bool]: Resolves to True if permissions are cached.
        """
        task = asyncio.create_task(
            self._preload(user_id), name=f"accessgate-preload:{user_id}"
        )
        self._preloads.add(task)
        task.add_done_callback(self._preloads.discard)
        return task

    async def warm_up_user(self, user_id: int) -> bool:
        """Populate every user-scoped view for a user.

        Args:
            user_id: User identifier.

        Returns:
            bool: True if every view resolved successfully.
        """
        results = await asyncio.gather(
            self._user_permissions(user_id),
            self._cache.get_or_compute(
                KeyScope.USER,
                user_id,
                ResultKind.MENU_TREE,
                lambda: self._resolver.resolve_user_menu_tree(user_id),
            ),
            self._cache.get_or_compute(
                KeyScope.USER,
                user_id,
                ResultKind.PERMISSION_MATRIX,
                lambda: self._resolver.build_user_permission_matrix(user_id),
            ),
            self._cache.get_or_compute(
                KeyScope.USER,
                user_id,
                ResultKind.ROLE_MATRIX,
                lambda: self._resolver.build_user_role_matrix(user_id),
            ),
        )
        failures = [result.error for result in results if isinstance(result, Failure)]
        for error in failures:
            self._report_failure("warm_up_user", error, user_id=user_id)
        self._logger.info(
            "user_cache_warmed", user_id=user_id, succeeded=not failures
        )
        return not failures

    # ------------------------------------------------------------------
    # Invalidation
    # ------------------------------------------------------------------

    async def invalidate(self, user_id: int) -> int:
        """Drop every cached view of a user.

        MUST be called after changing the user's role assignments.

        Args:
            user_id: User identifier.

        Returns:
            int: Number of entries removed.
        """
        return await self._cache.invalidate(user_id)

    async def invalidate_role(self, role_id: int) -> int:
        """Drop a role's cached views and those of all its holders.

        MUST be called after changing a role's permissions, menus or
        active flag, or after deleting it.

        Args:
            role_id: Role identifier.

        Returns:
            int: Number of entries removed.
        """
        return await self._cache.invalidate_role(role_id)

    async def invalidate_menus(self) -> int:
        """Drop every cached menu forest (after menu structure changes).

        Returns:
            int: Number of entries removed.
        """
        return await self._cache.invalidate_kind(ResultKind.MENU_TREE)

    async def invalidate_all(self) -> int:
        """Drop every cached view.

        Returns:
            int: Number of entries removed.
        """
        return await self._cache.clear()

    def cache_statistics(self) -> dict[str, Any]:
        """Cache statistics snapshot (entries, hits, misses, hit rate)."""
        return self._cache.statistics()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _user_permissions(
        self, user_id: int
    ) -> Result[frozenset[PermissionKey], DomainError]:
        return await self._cache.get_or_compute(
            KeyScope.USER,
            user_id,
            ResultKind.PERMISSIONS,
            lambda: self._resolver.resolve_user_permissions(user_id),
        )

    async def _preload(self, user_id: int) -> bool:
        cached = self._cache.contains(KeyScope.USER, user_id, ResultKind.PERMISSIONS)
        try:
            result = await self._user_permissions(user_id)
        except Exception as e:
            self._logger.error("permission_preload_error", error=e, user_id=user_id)
            return False

        match result:
            case Success(value=permissions):
                if not permissions:
                    self._logger.warning("user_has_no_permissions", user_id=user_id)
                self._logger.debug(
                    "permissions_preloaded",
                    user_id=user_id,
                    cached=cached,
                    count=len(permissions),
                )
                return True
            case Failure(error=error):
                self._report_failure("preload", error, user_id=user_id)
                return False

    def _report_failure(
        self, operation: str, error: DomainError, **subject: int
    ) -> None:
        self._logger.error(
            "authorization_repository_unavailable",
            error=error,
            operation=operation,
            **subject,
        )
