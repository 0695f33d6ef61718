"""Application services.

Usage:
    from accessgate.application.services import AccessCheckService
"""

from accessgate.application.services.access_check_service import AccessCheckService
from accessgate.application.services.permission_resolver import (
    PermissionResolver,
    build_menu_forest,
    group_by_resource,
    resolve_permission_set,
)

__all__ = [
    "AccessCheckService",
    "PermissionResolver",
    "build_menu_forest",
    "group_by_resource",
    "resolve_permission_set",
]
