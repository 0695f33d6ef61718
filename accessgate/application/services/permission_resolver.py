"""Permission resolver - transitive closure of user → role → permission/menu.

Pure, deterministic resolution. The module-level functions transform raw
assignment data into resolved views and hold no state; PermissionResolver
fetches that raw data through the RbacRepository port and hands it to them.

Resolution rules:
    - Only active roles contribute. A role assigned to a user but deleted
      concurrently contributes nothing (resolution does not fail).
    - Inactive permissions grant nothing, even while still assigned.
    - Menu visibility requires a connected path of visible, active menus
      from a root. A menu whose parent id is unknown is promoted to a root.
      Menus trapped in a parent cycle never reach a root and are excluded.
    - Siblings are ordered by sort_order, then id.

Error Handling:
    Repository exceptions become Failure(RepositoryUnavailableError).
    Unknown roles in direct lookups become Failure(NotFoundError).
    Dangling references are absorbed and logged as warnings.
"""

import asyncio
from collections import defaultdict
from collections.abc import Awaitable, Iterable
from typing import TypeVar

from accessgate.core.enums import ErrorCode
from accessgate.core.errors import (
    DomainError,
    NotFoundError,
    RepositoryUnavailableError,
)
from accessgate.core.result import Failure, Result, Success
from accessgate.domain.entities import (
    Forest,
    Menu,
    MenuNode,
    Permission,
    PermissionKey,
    Role,
)
from accessgate.domain.protocols.logger_protocol import LoggerProtocol
from accessgate.domain.protocols.rbac_repository import (
    PermissionQuerySupport,
    RbacRepository,
)

T = TypeVar("T")


# ============================================================================
# Pure resolution functions
# ============================================================================


def resolve_permission_set(
    grants: Iterable[Iterable[Permission]],
) -> frozenset[PermissionKey]:
    """Union the active permission grants of several roles.

    Args:
        grants: One permission list per (active) role.

    Returns:
        frozenset[PermissionKey]: Effective permission set.
    """
    return frozenset(
        permission.key
        for permissions in grants
        for permission in permissions
        if permission.is_active
    )


def group_by_resource(
    permissions: Iterable[PermissionKey],
) -> dict[str, frozenset[str]]:
    """Group permissions into a resource → actions matrix.

    Args:
        permissions: Resolved permission keys.

    Returns:
        dict[str, frozenset[str]]: Actions granted per resource.
    """
    matrix: dict[str, set[str]] = defaultdict(set)
    for key in permissions:
        matrix[key.resource].add(key.action)
    return {resource: frozenset(actions) for resource, actions in matrix.items()}


def find_dangling_parents(menus: Iterable[Menu]) -> list[Menu]:
    """Menus whose parent id references no known menu.

    Args:
        menus: Global menu list.

    Returns:
        list[Menu]: Menus that will be promoted to roots.
    """
    menu_list = list(menus)
    known = {menu.id for menu in menu_list}
    return [
        menu
        for menu in menu_list
        if menu.parent_id is not None and menu.parent_id not in known
    ]


def build_menu_forest(menus: Iterable[Menu], visible_ids: Iterable[int]) -> Forest:
    """Rebuild the visible menu forest from a flat parent-pointer list.

    Two passes: index every menu by id, then group included menus under
    their parents. A visible menu is included when it is a root or its
    parent is included.

    Args:
        menus: Global menu list (all menus, active or not).
        visible_ids: Menu ids granted to the subject.

    Returns:
        Forest: Root nodes ordered by sort_order, then id.
    """
    index = {menu.id: menu for menu in menus}
    visible = {
        menu_id
        for menu_id in visible_ids
        if menu_id in index and index[menu_id].is_active
    }
    # Dangling parents are treated as null
    parents = {
        menu_id: (
            index[menu_id].parent_id
            if index[menu_id].parent_id in index
            else None
        )
        for menu_id in visible
    }

    included: dict[int, bool] = {}

    def is_included(menu_id: int) -> bool:
        path: list[int] = []
        seen: set[int] = set()
        current: int | None = menu_id
        result = False
        while current is not None:
            if current in included:
                result = included[current]
                break
            if current not in visible or current in seen:
                result = False
                break
            seen.add(current)
            path.append(current)
            current = parents[current]
            if current is None:
                result = True
        for node_id in path:
            included[node_id] = result
        return result

    children: dict[int | None, list[int]] = defaultdict(list)
    for menu_id in visible:
        if is_included(menu_id):
            children[parents[menu_id]].append(menu_id)

    def sort_key(menu_id: int) -> tuple[int, int]:
        return (index[menu_id].sort_order, menu_id)

    def build(menu_id: int) -> MenuNode:
        return MenuNode(
            index[menu_id],
            tuple(build(child) for child in sorted(children[menu_id], key=sort_key)),
        )

    return tuple(build(root) for root in sorted(children[None], key=sort_key))


# ============================================================================
# Repository-backed resolver
# ============================================================================


class _PortCallFailed(Exception):
    """Internal signal carrying a repository failure to the public boundary."""

    def __init__(self, error: RepositoryUnavailableError) -> None:
        super().__init__(error.message)
        self.error = error


class PermissionResolver:
    """Resolves effective permissions and menu forests via repository ports.

    Stateless apart from its collaborators; every call re-reads the
    assignment tables. Caching is the PermissionCache's job.

    Attributes:
        _repository: Assignment data port.
        _logger: Structured logger.
    """

    def __init__(self, repository: RbacRepository, logger: LoggerProtocol) -> None:
        """Initialize resolver.

        Args:
            repository: Assignment data port.
            logger: Structured logger.
        """
        self._repository = repository
        self._logger = logger

    # ------------------------------------------------------------------
    # User-level views
    # ------------------------------------------------------------------

    async def resolve_user_permissions(
        self, user_id: int
    ) -> Result[frozenset[PermissionKey], DomainError]:
        """Union of permissions across the user's active roles.

        Args:
            user_id: User identifier.

        Returns:
            Success(frozenset) (empty when the user holds no granting role),
            or Failure(RepositoryUnavailableError).
        """
        try:
            role_ids = await self._active_role_ids(user_id)
            grants = await asyncio.gather(
                *(self._role_permissions(role_id) for role_id in role_ids)
            )
        except _PortCallFailed as failed:
            return Failure(error=failed.error)
        return Success(value=resolve_permission_set(grants))

    async def user_has_permission(
        self,
        user_id: int,
        resource: str,
        action: str,
    ) -> Result[bool, DomainError]:
        """Check a single permission for a user.

        Uses the repository's direct existence query when available,
        otherwise tests membership in the resolved permission set.

        Args:
            user_id: User identifier.
            resource: Resource name.
            action: Action name.

        Returns:
            Success(bool), or Failure(RepositoryUnavailableError).
        """
        if isinstance(self._repository, PermissionQuerySupport):
            try:
                allowed = await self._fetch(
                    "user_has_permission",
                    self._repository.user_has_permission(user_id, resource, action),
                )
            except _PortCallFailed as failed:
                return Failure(error=failed.error)
            return Success(value=bool(allowed))

        result = await self.resolve_user_permissions(user_id)
        match result:
            case Success(value=permissions):
                return Success(value=PermissionKey(resource, action) in permissions)
            case Failure(error=error):
                return Failure(error=error)

    async def resolve_user_menu_tree(self, user_id: int) -> Result[Forest, DomainError]:
        """Visible menu forest for a user.

        The visible set is the union of menus granted to the user's active
        roles.

        Args:
            user_id: User identifier.

        Returns:
            Success(Forest) (empty when nothing is visible), or
            Failure(RepositoryUnavailableError).
        """
        try:
            role_ids = await self._active_role_ids(user_id)
            if not role_ids:
                return Success(value=())
            menus, *granted = await asyncio.gather(
                self._all_menus(),
                *(self._role_menus(role_id) for role_id in role_ids),
            )
        except _PortCallFailed as failed:
            return Failure(error=failed.error)
        visible = {menu_id for menu_ids in granted for menu_id in menu_ids}
        return Success(value=self._build_forest(menus, visible))

    async def build_user_permission_matrix(
        self, user_id: int
    ) -> Result[dict[str, frozenset[str]], DomainError]:
        """Resource → actions matrix of the user's effective permissions.

        Args:
            user_id: User identifier.

        Returns:
            Success(matrix), or Failure(RepositoryUnavailableError).
        """
        result = await self.resolve_user_permissions(user_id)
        match result:
            case Success(value=permissions):
                return Success(value=group_by_resource(permissions))
            case Failure(error=error):
                return Failure(error=error)

    async def build_user_role_matrix(
        self, user_id: int
    ) -> Result[dict[str, tuple[str, ...]], DomainError]:
        """Role name → permission display names, for each active role.

        Args:
            user_id: User identifier.

        Returns:
            Success(matrix with sorted, de-duplicated names), or
            Failure(RepositoryUnavailableError).
        """
        try:
            roles = await self._active_roles(user_id)
            grants = await asyncio.gather(
                *(self._role_permissions(role.id) for role in roles)
            )
        except _PortCallFailed as failed:
            return Failure(error=failed.error)
        return Success(
            value={
                role.name: tuple(
                    sorted({p.display_name for p in permissions if p.is_active})
                )
                for role, permissions in zip(roles, grants, strict=True)
            }
        )

    # ------------------------------------------------------------------
    # Role-level views
    # ------------------------------------------------------------------

    async def resolve_role_permissions(
        self, role_id: int
    ) -> Result[frozenset[PermissionKey], DomainError]:
        """Direct permission assignments of a role.

        Args:
            role_id: Role identifier.

        Returns:
            Success(frozenset), Failure(NotFoundError) for unknown roles, or
            Failure(RepositoryUnavailableError).
        """
        try:
            role = await self._fetch("get_role", self._repository.get_role(role_id))
            if role is None:
                return Failure(error=self._role_not_found(role_id))
            permissions = await self._role_permissions(role_id)
        except _PortCallFailed as failed:
            return Failure(error=failed.error)
        return Success(value=resolve_permission_set([permissions]))

    async def resolve_role_menu_tree(self, role_id: int) -> Result[Forest, DomainError]:
        """Menu forest visible through a single role's direct assignments.

        Args:
            role_id: Role identifier.

        Returns:
            Success(Forest), Failure(NotFoundError) for unknown roles, or
            Failure(RepositoryUnavailableError).
        """
        try:
            role = await self._fetch("get_role", self._repository.get_role(role_id))
            if role is None:
                return Failure(error=self._role_not_found(role_id))
            menus, menu_ids = await asyncio.gather(
                self._all_menus(), self._role_menus(role_id)
            )
        except _PortCallFailed as failed:
            return Failure(error=failed.error)
        return Success(value=self._build_forest(menus, menu_ids))

    async def get_users_with_role(self, role_id: int) -> Result[list[int], DomainError]:
        """Users holding a role (invalidation fan-out).

        Args:
            role_id: Role identifier.

        Returns:
            Success(user ids), or Failure(RepositoryUnavailableError).
        """
        try:
            user_ids = await self._fetch(
                "get_users_with_role", self._repository.get_users_with_role(role_id)
            )
        except _PortCallFailed as failed:
            return Failure(error=failed.error)
        return Success(value=list(user_ids))

    # ------------------------------------------------------------------
    # Module views
    # ------------------------------------------------------------------

    async def resolve_permissions_by_module(
        self, module: str
    ) -> Result[tuple[Permission, ...], DomainError]:
        """Active permissions tagged with a module.

        Args:
            module: Module tag (exact match).

        Returns:
            Success(permissions ordered by resource, action) (empty for
            unknown modules), or Failure(RepositoryUnavailableError).
        """
        try:
            permissions = await self._fetch(
                "get_permissions_by_module",
                self._repository.get_permissions_by_module(module),
            )
        except _PortCallFailed as failed:
            return Failure(error=failed.error)
        return Success(
            value=tuple(
                sorted(
                    (p for p in permissions if p.is_active),
                    key=lambda permission: permission.key,
                )
            )
        )

    async def resolve_menu_tree_by_module(
        self, module: str
    ) -> Result[Forest, DomainError]:
        """Menu forest of one module, independent of any user.

        Every active menu tagged with the module is a candidate; a menu is
        included when it has a connected path of such menus to a root, so a
        module menu nested under another module's menu is left out.

        Args:
            module: Module tag (exact match).

        Returns:
            Success(Forest), or Failure(RepositoryUnavailableError).
        """
        try:
            menus = await self._all_menus()
        except _PortCallFailed as failed:
            return Failure(error=failed.error)
        return Success(
            value=self._build_forest(
                menus, [menu.id for menu in menus if menu.module == module]
            )
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _fetch(self, operation: str, call: Awaitable[T]) -> T:
        """Await a repository call, mapping any exception to a port failure."""
        try:
            return await call
        except Exception as e:
            raise _PortCallFailed(
                RepositoryUnavailableError(
                    code=ErrorCode.REPOSITORY_UNAVAILABLE,
                    message=f"Repository call '{operation}' failed",
                    operation=operation,
                    details={"error_type": type(e).__name__, "error": str(e)},
                )
            ) from e

    async def _active_role_ids(self, user_id: int) -> list[int]:
        role_ids = list(
            dict.fromkeys(
                await self._fetch(
                    "get_user_roles", self._repository.get_user_roles(user_id)
                )
            )
        )
        flags = await asyncio.gather(
            *(
                self._fetch("is_role_active", self._repository.is_role_active(role_id))
                for role_id in role_ids
            )
        )
        return [role_id for role_id, active in zip(role_ids, flags, strict=True) if active]

    async def _active_roles(self, user_id: int) -> tuple[Role, ...]:
        role_ids = list(
            dict.fromkeys(
                await self._fetch(
                    "get_user_roles", self._repository.get_user_roles(user_id)
                )
            )
        )
        roles = await asyncio.gather(
            *(
                self._fetch("get_role", self._repository.get_role(role_id))
                for role_id in role_ids
            )
        )
        active: list[Role] = []
        for role_id, role in zip(role_ids, roles, strict=True):
            if role is None:
                self._logger.warning(
                    "dangling_role_assignment", user_id=user_id, role_id=role_id
                )
            elif role.is_active:
                active.append(role)
        return tuple(sorted(active, key=lambda role: (-role.priority, role.name)))

    async def _role_permissions(self, role_id: int) -> list[Permission]:
        return await self._fetch(
            "get_role_permissions", self._repository.get_role_permissions(role_id)
        )

    async def _role_menus(self, role_id: int) -> list[int]:
        return await self._fetch(
            "get_role_menus", self._repository.get_role_menus(role_id)
        )

    async def _all_menus(self) -> list[Menu]:
        return await self._fetch("get_all_menus", self._repository.get_all_menus())

    def _build_forest(self, menus: list[Menu], visible_ids: Iterable[int]) -> Forest:
        for menu in find_dangling_parents(menus):
            self._logger.warning(
                "dangling_menu_parent", menu_id=menu.id, parent_id=menu.parent_id
            )
        return build_menu_forest(menus, visible_ids)

    @staticmethod
    def _role_not_found(role_id: int) -> NotFoundError:
        return NotFoundError(
            code=ErrorCode.ROLE_NOT_FOUND,
            message=f"Role {role_id} not found",
            resource_type="Role",
            resource_id=str(role_id),
        )
