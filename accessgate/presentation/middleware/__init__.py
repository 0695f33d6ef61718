"""HTTP middleware and dependencies for access checks.

Usage:
    from accessgate.presentation.middleware import (
        PermissionPreloadMiddleware,
        require_permission,
    )
"""

from accessgate.presentation.middleware.authorization_dependencies import (
    get_current_user_id,
    require_permission,
    require_role,
)
from accessgate.presentation.middleware.permission_preload_middleware import (
    PermissionPreloadMiddleware,
)

__all__ = [
    "PermissionPreloadMiddleware",
    "get_current_user_id",
    "require_permission",
    "require_role",
]
