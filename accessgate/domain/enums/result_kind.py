"""Kinds of resolved results held in the permission cache.

Cache entries are keyed by (scope, subject id, kind). User-scoped entries
hold a user's resolved views; role-scoped entries hold a single role's
direct views (PERMISSIONS and MENU_TREE only).
"""

from enum import Enum


class KeyScope(str, Enum):
    """Whose result a cache entry holds."""

    USER = "user"
    ROLE = "role"


class ResultKind(str, Enum):
    """Resolved view stored under a cache key.

    String Enum:
        Values are used verbatim inside cache keys and metric namespaces.
    """

    PERMISSIONS = "permissions"
    """frozenset[PermissionKey]: effective permission set."""

    MENU_TREE = "menu_tree"
    """Forest: visible menu forest."""

    PERMISSION_MATRIX = "permission_matrix"
    """dict[str, frozenset[str]]: resource -> actions."""

    ROLE_MATRIX = "role_matrix"
    """dict[str, tuple[str, ...]]: role name -> permission display names."""

    @classmethod
    def values(cls) -> list[str]:
        """Get all kind values as strings.

        Returns:
            list[str]: List of kind values.
        """
        return [kind.value for kind in cls]
