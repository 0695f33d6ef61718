"""Menu domain entities.

Menus form a forest through nullable parent references. Visibility is
granted per role; the resolver rebuilds the visible forest for a user or
role as immutable MenuNode trees.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True, kw_only=True)
class Menu:
    """A node of the menu hierarchy.

    Attributes:
        id: Menu identifier.
        name: Display name.
        parent_id: Parent menu id (None for top-level menus).
        sort_order: Ordering among siblings (ascending).
        module: Module tag the menu belongs to.
        url: Optional route.
        icon: Optional icon name.
        is_active: Inactive menus are never visible.
    """

    id: int
    name: str
    parent_id: int | None = None
    sort_order: int = 0
    module: str | None = None
    url: str | None = None
    icon: str | None = None
    is_active: bool = True


@dataclass(frozen=True, slots=True)
class MenuNode:
    """Resolved menu with its visible children (sorted).

    Attributes:
        menu: The menu at this node.
        children: Visible child nodes ordered by sort_order, then id.
    """

    menu: Menu
    children: tuple["MenuNode", ...] = field(default_factory=tuple)

    def walk(self) -> list[Menu]:
        """Flatten this subtree in pre-order.

        Returns:
            list[Menu]: This menu followed by all descendants.
        """
        menus = [self.menu]
        for child in self.children:
            menus.extend(child.walk())
        return menus

    def to_dict(self) -> dict[str, Any]:
        """Convert node to a nested dictionary (for UI payloads and logs)."""
        return {
            "id": self.menu.id,
            "name": self.menu.name,
            "parent_id": self.menu.parent_id,
            "sort_order": self.menu.sort_order,
            "module": self.menu.module,
            "url": self.menu.url,
            "icon": self.menu.icon,
            "children": [child.to_dict() for child in self.children],
        }


# A forest is the ordered tuple of its root nodes.
type Forest = tuple[MenuNode, ...]
