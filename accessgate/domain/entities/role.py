"""Role domain entity.

A role is the only bridge between users and permissions/menus: there is no
direct user→permission or user→menu relation. Inactive roles are skipped
during resolution as if they granted nothing.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True, kw_only=True)
class Role:
    """Named role (e.g. "Admin", "Instructor").

    Attributes:
        id: Role identifier.
        name: Unique role name.
        is_active: Inactive roles are excluded from resolution.
        description: Optional human-readable description.
        priority: Ordering hint (higher first) for role listings.
        is_system_role: System roles cannot be deleted by administrators.
    """

    id: int
    name: str
    is_active: bool = True
    description: str | None = None
    priority: int = 0
    is_system_role: bool = False
