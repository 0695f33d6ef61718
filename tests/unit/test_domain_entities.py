"""Unit tests for domain entities.

Tests cover:
- Permission identity and display names
- Immutability of Role/Menu
- MenuNode traversal and serialisation
"""

from dataclasses import FrozenInstanceError

import pytest

from accessgate.domain.entities import Menu, MenuNode, Permission, PermissionKey, Role
from accessgate.domain.enums import ResultKind


@pytest.mark.unit
class TestPermission:
    """Test Permission entity."""

    def test_key_and_display_name(self):
        """Test identity is (resource, action)."""
        permission = Permission(resource="Course", action="Create", module="LMS")

        assert permission.key == PermissionKey("Course", "Create")
        assert permission.display_name == "Course:Create"

    def test_permissions_differing_only_in_metadata_share_a_key(self):
        """Test module and name do not affect identity."""
        first = Permission(resource="Course", action="Create", module="A", id=1)
        second = Permission(resource="Course", action="Create", module="B", id=2)

        assert first.key == second.key


@pytest.mark.unit
class TestRoleAndMenu:
    """Test Role and Menu entities."""

    def test_role_is_immutable(self):
        """Test roles cannot be mutated in place."""
        role = Role(id=1, name="Admin")

        with pytest.raises(FrozenInstanceError):
            role.is_active = False  # type: ignore[misc]

    def test_role_defaults(self):
        """Test role defaults."""
        role = Role(id=1, name="Admin")

        assert role.is_active is True
        assert role.priority == 0
        assert role.is_system_role is False

    def test_menu_node_walk_and_to_dict(self):
        """Test pre-order traversal and nested dict."""
        child = MenuNode(Menu(id=2, name="Child", parent_id=1))
        root = MenuNode(Menu(id=1, name="Root", icon="home"), (child,))

        assert [menu.id for menu in root.walk()] == [1, 2]
        payload = root.to_dict()
        assert payload["icon"] == "home"
        assert payload["children"][0]["id"] == 2
        assert payload["children"][0]["children"] == []


@pytest.mark.unit
def test_result_kind_values():
    """Test kind values used in keys and metric namespaces."""
    assert ResultKind.values() == [
        "permissions",
        "menu_tree",
        "permission_matrix",
        "role_matrix",
    ]
