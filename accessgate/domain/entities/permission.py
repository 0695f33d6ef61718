"""Permission domain entity.

Permissions are identified by the (resource, action) pair, e.g.
("Course", "Delete"). The module tag groups permissions for bulk queries. An inactive
permission stays assigned to its roles but grants nothing.
"""

from dataclasses import dataclass
from typing import NamedTuple


class PermissionKey(NamedTuple):
    """Hashable permission identity used in resolved permission sets."""

    resource: str
    action: str

    @property
    def display_name(self) -> str:
        """Permission display name ("resource:action")."""
        return f"{self.resource}:{self.action}"


@dataclass(frozen=True, slots=True, kw_only=True)
class Permission:
    """Permission granted to roles.

    Attributes:
        resource: Protected resource (e.g. "Course").
        action: Action on the resource (e.g. "Create").
        module: Optional grouping tag (e.g. "Course Management").
        id: Optional storage identifier.
        name: Optional human-readable name.
        is_active: Inactive permissions are never part of a resolved set.
    """

    resource: str
    action: str
    module: str | None = None
    id: int | None = None
    name: str | None = None
    is_active: bool = True

    @property
    def key(self) -> PermissionKey:
        """Identity of this permission."""
        return PermissionKey(self.resource, self.action)

    @property
    def display_name(self) -> str:
        """Permission display name ("resource:action")."""
        return self.key.display_name
