"""In-memory RBAC repository.

Implements RbacRepository and PermissionQuerySupport with plain
dictionaries. Suitable for tests, seed data and embedded single-process
use. The mutation helpers play the role of the administrative layer: they
change assignment data only, and callers remain responsible for invalidating
the permission cache afterwards.

Usage:
    >>> repo = InMemoryRbacRepository()
    >>> repo.add_role(Role(id=1, name="Instructor"))
    >>> repo.grant_permission(1, Permission(resource="Course", action="Create"))
    >>> repo.assign_role(user_id=10, role_id=1)
"""

from collections import defaultdict
from dataclasses import replace

from accessgate.domain.entities import Menu, Permission, PermissionKey, Role


class InMemoryRbacRepository:
    """Dictionary-backed RBAC repository.

    Thread Safety:
        NOT thread-safe (single event loop).

    Attributes:
        _roles: role id -> Role.
        _menus: menu id -> Menu.
        _user_roles: user id -> assigned role ids (assignment order).
        _permissions: permission key -> Permission (catalog).
        _role_permissions: role id -> granted permission keys.
        _role_menus: role id -> visible menu ids.
    """

    def __init__(self) -> None:
        """Initialize an empty repository."""
        self._roles: dict[int, Role] = {}
        self._menus: dict[int, Menu] = {}
        self._user_roles: dict[int, list[int]] = defaultdict(list)
        self._permissions: dict[PermissionKey, Permission] = {}
        self._role_permissions: dict[int, list[PermissionKey]] = defaultdict(list)
        self._role_menus: dict[int, list[int]] = defaultdict(list)

    # ------------------------------------------------------------------
    # RbacRepository
    # ------------------------------------------------------------------

    async def get_user_roles(self, user_id: int) -> list[int]:
        return list(self._user_roles.get(user_id, []))

    async def get_role(self, role_id: int) -> Role | None:
        return self._roles.get(role_id)

    async def get_role_permissions(self, role_id: int) -> list[Permission]:
        return [
            self._permissions[key] for key in self._role_permissions.get(role_id, [])
        ]

    async def get_role_menus(self, role_id: int) -> list[int]:
        return list(self._role_menus.get(role_id, []))

    async def get_all_menus(self) -> list[Menu]:
        return list(self._menus.values())

    async def is_role_active(self, role_id: int) -> bool:
        role = self._roles.get(role_id)
        return role is not None and role.is_active

    async def get_users_with_role(self, role_id: int) -> list[int]:
        return [
            user_id
            for user_id, role_ids in self._user_roles.items()
            if role_id in role_ids
        ]

    async def get_permissions_by_module(self, module: str) -> list[Permission]:
        return sorted(
            (
                permission
                for permission in self._permissions.values()
                if permission.module == module and permission.is_active
            ),
            key=lambda permission: permission.key,
        )

    # ------------------------------------------------------------------
    # PermissionQuerySupport
    # ------------------------------------------------------------------

    async def user_has_permission(
        self,
        user_id: int,
        resource: str,
        action: str,
    ) -> bool:
        key = PermissionKey(resource, action)
        for role_id in self._user_roles.get(user_id, []):
            if not await self.is_role_active(role_id):
                continue
            granted = self._role_permissions.get(role_id, [])
            if key in granted and self._permissions[key].is_active:
                return True
        return False

    # ------------------------------------------------------------------
    # Mutation helpers (administrative side)
    # ------------------------------------------------------------------

    def add_role(self, role: Role) -> None:
        """Create or replace a role.

        Args:
            role: Role to store.
        """
        self._roles[role.id] = role

    def set_role_active(self, role_id: int, is_active: bool) -> None:
        """Activate or deactivate a role.

        Args:
            role_id: Role identifier.
            is_active: New active flag.

        Raises:
            KeyError: If the role does not exist.
        """
        role = self._roles[role_id]
        self._roles[role_id] = replace(role, is_active=is_active)

    def delete_role(self, role_id: int) -> None:
        """Delete a role and its grants.

        User assignments are left in place, as a concurrent delete would
        leave them; the resolver skips roles it cannot find.

        Args:
            role_id: Role identifier.
        """
        self._roles.pop(role_id, None)
        self._role_permissions.pop(role_id, None)
        self._role_menus.pop(role_id, None)

    def add_menu(self, menu: Menu) -> None:
        """Create or replace a menu.

        Args:
            menu: Menu to store.
        """
        self._menus[menu.id] = menu

    def delete_menu(self, menu_id: int) -> None:
        """Delete a menu (children keep their now dangling parent id).

        Args:
            menu_id: Menu identifier.
        """
        self._menus.pop(menu_id, None)
        for menu_ids in self._role_menus.values():
            if menu_id in menu_ids:
                menu_ids.remove(menu_id)

    def assign_role(self, user_id: int, role_id: int) -> None:
        """Assign a role to a user (no-op if already assigned).

        Args:
            user_id: User identifier.
            role_id: Role identifier.
        """
        if role_id not in self._user_roles[user_id]:
            self._user_roles[user_id].append(role_id)

    def revoke_role(self, user_id: int, role_id: int) -> None:
        """Remove a role from a user.

        Args:
            user_id: User identifier.
            role_id: Role identifier.
        """
        if role_id in self._user_roles.get(user_id, []):
            self._user_roles[user_id].remove(role_id)

    def add_permission(self, permission: Permission) -> None:
        """Create or replace a permission in the catalog.

        Roles holding the same (resource, action) see the replacement.

        Args:
            permission: Permission to store.
        """
        self._permissions[permission.key] = permission

    def set_permission_active(
        self, resource: str, action: str, is_active: bool
    ) -> None:
        """Activate or deactivate a permission for every role holding it.

        Args:
            resource: Resource name.
            action: Action name.
            is_active: New active flag.

        Raises:
            KeyError: If the permission does not exist.
        """
        key = PermissionKey(resource, action)
        self._permissions[key] = replace(self._permissions[key], is_active=is_active)

    def grant_permission(self, role_id: int, permission: Permission) -> None:
        """Grant a permission to a role (no-op if already granted).

        Permissions not yet in the catalog are added to it.

        Args:
            role_id: Role identifier.
            permission: Permission to grant.
        """
        self._permissions.setdefault(permission.key, permission)
        granted = self._role_permissions[role_id]
        if permission.key not in granted:
            granted.append(permission.key)

    def revoke_permission(self, role_id: int, resource: str, action: str) -> None:
        """Revoke a permission from a role.

        Args:
            role_id: Role identifier.
            resource: Resource name.
            action: Action name.
        """
        key = PermissionKey(resource, action)
        self._role_permissions[role_id] = [
            granted
            for granted in self._role_permissions.get(role_id, [])
            if granted != key
        ]

    def grant_menu(self, role_id: int, menu_id: int) -> None:
        """Make a menu visible to a role (no-op if already visible).

        Args:
            role_id: Role identifier.
            menu_id: Menu identifier.
        """
        if menu_id not in self._role_menus[role_id]:
            self._role_menus[role_id].append(menu_id)

    def revoke_menu(self, role_id: int, menu_id: int) -> None:
        """Hide a menu from a role.

        Args:
            role_id: Role identifier.
            menu_id: Menu identifier.
        """
        if menu_id in self._role_menus.get(role_id, []):
            self._role_menus[role_id].remove(menu_id)
