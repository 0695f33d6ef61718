"""Domain entities.

Usage:
    from accessgate.domain.entities import Menu, MenuNode, Permission, Role
"""

from accessgate.domain.entities.menu import Forest, Menu, MenuNode
from accessgate.domain.entities.permission import Permission, PermissionKey
from accessgate.domain.entities.role import Role

__all__ = [
    "Forest",
    "Menu",
    "MenuNode",
    "Permission",
    "PermissionKey",
    "Role",
]
