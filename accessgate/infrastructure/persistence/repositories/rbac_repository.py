"""SQLAlchemyRbacRepository - SQLAlchemy implementation of RbacRepository.

Adapter for hexagonal architecture.
Maps between domain entities (Role, Permission, Menu) and database models.

Each port call opens its own short-lived session: the cache may run a
computation after the request that triggered it has finished. SQLAlchemy
exceptions propagate; the resolver maps them to RepositoryUnavailableError.
"""

from sqlalchemy import exists, select

from accessgate.domain.entities import Menu, Permission, Role
from accessgate.infrastructure.persistence.database import Database
from accessgate.infrastructure.persistence.models import (
    MenuModel,
    MenuRoleModel,
    PermissionModel,
    RoleModel,
    RolePermissionModel,
    UserRoleModel,
)


class SQLAlchemyRbacRepository:
    """SQLAlchemy implementation of RbacRepository and PermissionQuerySupport.

    This class does NOT inherit from the protocols (structural typing).

    Attributes:
        _database: Database providing sessions.

    Example:
        >>> repo = SQLAlchemyRbacRepository(Database("sqlite+aiosqlite:///rbac.db"))
        >>> role_ids = await repo.get_user_roles(42)
    """

    def __init__(self, database: Database) -> None:
        """Initialize repository.

        Args:
            database: Database providing sessions.
        """
        self._database = database

    async def get_user_roles(self, user_id: int) -> list[int]:
        """Role ids assigned to a user.

        Args:
            user_id: User identifier.

        Returns:
            list[int]: Assigned role ids (active or not).
        """
        stmt = (
            select(UserRoleModel.role_id)
            .where(UserRoleModel.user_id == user_id)
            .order_by(UserRoleModel.role_id)
        )
        async with self._database.get_session() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def get_role(self, role_id: int) -> Role | None:
        """Find role by id.

        Args:
            role_id: Role identifier.

        Returns:
            Domain Role if found, None otherwise.
        """
        stmt = select(RoleModel).where(RoleModel.id == role_id)
        async with self._database.get_session() as session:
            result = await session.execute(stmt)
            role_model = result.scalar_one_or_none()

        if role_model is None:
            return None

        return self._role_to_domain(role_model)

    async def get_role_permissions(self, role_id: int) -> list[Permission]:
        """Permissions directly granted to a role.

        Args:
            role_id: Role identifier.

        Returns:
            list[Permission]: Granted permissions ordered by resource, action.
        """
        stmt = (
            select(PermissionModel)
            .join(
                RolePermissionModel,
                RolePermissionModel.permission_id == PermissionModel.id,
            )
            .where(RolePermissionModel.role_id == role_id)
            .order_by(PermissionModel.resource, PermissionModel.action)
        )
        async with self._database.get_session() as session:
            result = await session.execute(stmt)
            return [self._permission_to_domain(m) for m in result.scalars().all()]

    async def get_role_menus(self, role_id: int) -> list[int]:
        """Menu ids visible to a role.

        Args:
            role_id: Role identifier.

        Returns:
            list[int]: Menu ids.
        """
        stmt = (
            select(MenuRoleModel.menu_id)
            .where(MenuRoleModel.role_id == role_id)
            .order_by(MenuRoleModel.menu_id)
        )
        async with self._database.get_session() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def get_all_menus(self) -> list[Menu]:
        """Every menu, active or not.

        Returns:
            list[Menu]: All menus ordered by id.
        """
        stmt = select(MenuModel).order_by(MenuModel.id)
        async with self._database.get_session() as session:
            result = await session.execute(stmt)
            return [self._menu_to_domain(m) for m in result.scalars().all()]

    async def is_role_active(self, role_id: int) -> bool:
        """Check whether a role exists and is active.

        Args:
            role_id: Role identifier.

        Returns:
            bool: True if active.
        """
        stmt = select(RoleModel.is_active).where(RoleModel.id == role_id)
        async with self._database.get_session() as session:
            result = await session.execute(stmt)
            return bool(result.scalar_one_or_none())

    async def get_users_with_role(self, role_id: int) -> list[int]:
        """Users holding a role.

        Args:
            role_id: Role identifier.

        Returns:
            list[int]: User ids.
        """
        stmt = (
            select(UserRoleModel.user_id)
            .where(UserRoleModel.role_id == role_id)
            .order_by(UserRoleModel.user_id)
        )
        async with self._database.get_session() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def get_permissions_by_module(self, module: str) -> list[Permission]:
        """Active permissions tagged with a module.

        Args:
            module: Module tag (exact match).

        Returns:
            list[Permission]: Permissions ordered by resource, action.
        """
        stmt = (
            select(PermissionModel)
            .where(PermissionModel.module == module)
            .where(PermissionModel.is_active.is_(True))
            .order_by(PermissionModel.resource, PermissionModel.action)
        )
        async with self._database.get_session() as session:
            result = await session.execute(stmt)
            return [self._permission_to_domain(m) for m in result.scalars().all()]

    async def user_has_permission(
        self,
        user_id: int,
        resource: str,
        action: str,
    ) -> bool:
        """Check permission through the user's active roles (single query).

        Args:
            user_id: User identifier.
            resource: Resource name.
            action: Action name.

        Returns:
            bool: True if any active role of the user grants (resource, action).
        """
        stmt = select(
            exists()
            .where(UserRoleModel.user_id == user_id)
            .where(RoleModel.id == UserRoleModel.role_id)
            .where(RoleModel.is_active.is_(True))
            .where(RolePermissionModel.role_id == RoleModel.id)
            .where(PermissionModel.id == RolePermissionModel.permission_id)
            .where(PermissionModel.is_active.is_(True))
            .where(PermissionModel.resource == resource)
            .where(PermissionModel.action == action)
        )
        async with self._database.get_session() as session:
            result = await session.execute(stmt)
            return bool(result.scalar())

    @staticmethod
    def _role_to_domain(role_model: RoleModel) -> Role:
        return Role(
            id=role_model.id,
            name=role_model.name,
            is_active=role_model.is_active,
            description=role_model.description,
            priority=role_model.priority,
            is_system_role=role_model.is_system_role,
        )

    @staticmethod
    def _permission_to_domain(permission_model: PermissionModel) -> Permission:
        return Permission(
            resource=permission_model.resource,
            action=permission_model.action,
            module=permission_model.module,
            id=permission_model.id,
            name=permission_model.name,
            is_active=permission_model.is_active,
        )

    @staticmethod
    def _menu_to_domain(menu_model: MenuModel) -> Menu:
        return Menu(
            id=menu_model.id,
            name=menu_model.name,
            parent_id=menu_model.parent_id,
            sort_order=menu_model.sort_order,
            module=menu_model.module,
            url=menu_model.url,
            icon=menu_model.icon,
            is_active=menu_model.is_active,
        )
