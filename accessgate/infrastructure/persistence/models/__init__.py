"""Database models for the RBAC assignment tables.

Importing this package registers every table on BaseModel.metadata.
"""

from accessgate.infrastructure.persistence.models.rbac import (
    MenuModel,
    MenuRoleModel,
    PermissionModel,
    RoleModel,
    RolePermissionModel,
    UserRoleModel,
)

__all__ = [
    "MenuModel",
    "MenuRoleModel",
    "PermissionModel",
    "RoleModel",
    "RolePermissionModel",
    "UserRoleModel",
]
