"""RbacRepository protocol for reading role assignment data.

Port (interface) for hexagonal architecture. The resolver reads assignment
tables exclusively through this protocol; the storage engine is an
infrastructure detail.

Implementations:
    - InMemoryRbacRepository: tests and embedded use
    - SQLAlchemyRbacRepository: relational storage

Error Handling:
    Implementations let infrastructure exceptions propagate. The resolver
    converts them into RepositoryUnavailableError results.
"""

from typing import Protocol, runtime_checkable

from accessgate.domain.entities import Menu, Permission, Role


class RbacRepository(Protocol):
    """Read access to users, roles, permissions, menus and their assignments.

    All operations are read-only. Administrative mutation happens outside
    this subsystem and MUST be followed by cache invalidation
    (AccessCheckService.invalidate / invalidate_role).
    """

    async def get_user_roles(self, user_id: int) -> list[int]:
        """Role ids assigned to a user.

        Args:
            user_id: User identifier.

        Returns:
            list[int]: Assigned role ids (active or not). Empty for unknown users.
        """
        ...

    async def get_role(self, role_id: int) -> Role | None:
        """Find role by id.

        Args:
            role_id: Role identifier.

        Returns:
            Role if found, None otherwise.
        """
        ...

    async def get_role_permissions(self, role_id: int) -> list[Permission]:
        """Permissions directly assigned to a role.

        Args:
            role_id: Role identifier.

        Returns:
            list[Permission]: Assigned permissions, active or not. Empty for
            unknown roles.
        """
        ...

    async def get_role_menus(self, role_id: int) -> list[int]:
        """Menu ids a role may see.

        Args:
            role_id: Role identifier.

        Returns:
            list[int]: Assigned menu ids. Empty for unknown roles.
        """
        ...

    async def get_all_menus(self) -> list[Menu]:
        """Every menu in the hierarchy (global flat list).

        Returns:
            list[Menu]: All menus, active or not.
        """
        ...

    async def is_role_active(self, role_id: int) -> bool:
        """Check whether a role is active.

        Args:
            role_id: Role identifier.

        Returns:
            bool: True if role exists and is active.
        """
        ...

    async def get_users_with_role(self, role_id: int) -> list[int]:
        """Users holding a role (for invalidation fan-out).

        Args:
            role_id: Role identifier.

        Returns:
            list[int]: User ids assigned to the role.
        """
        ...

    async def get_permissions_by_module(self, module: str) -> list[Permission]:
        """Active permissions tagged with a module.

        Args:
            module: Module tag (exact match).

        Returns:
            list[Permission]: Matching active permissions. Empty for unknown
            modules.
        """
        ...


@runtime_checkable
class PermissionQuerySupport(Protocol):
    """Optional direct existence query.

    Repositories that can answer "does this user hold this permission
    through an active role" without listing every permission implement this
    in addition to RbacRepository. The answer MUST equal membership in the
    user's effective permission set.
    """

    async def user_has_permission(
        self,
        user_id: int,
        resource: str,
        action: str,
    ) -> bool:
        """Check permission through the user's active roles.

        Args:
            user_id: User identifier.
            resource: Resource name.
            action: Action name.

        Returns:
            bool: True if any active role of the user grants the active
            permission (resource, action).
        """
        ...
