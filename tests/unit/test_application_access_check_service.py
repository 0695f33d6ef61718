"""Unit tests for AccessCheckService.

Tests cover:
- Deny by default (users without roles, repository failures)
- Idempotence: a repeated check is served without repository calls
- Single-flight through authorize()
- Invalidation contract (user and role) and the documented staleness window
- Menu forests, matrices, role checks, preload and warm-up
- Fail-closed answers when the cache raises
- Role grant and menu access checks, module queries
"""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from accessgate.core.enums import ErrorCode
from accessgate.core.result import Failure, Success
from accessgate.domain.entities import Menu, Permission, PermissionKey, Role
from accessgate.domain.enums import KeyScope, ResultKind
from tests.conftest import (
    INSTRUCTOR_ROLE_ID,
    INSTRUCTOR_USER_ID,
    CountingRepository,
    build_service,
)


@pytest.fixture
def wired(instructor_repository, settings, mock_logger, clock):
    """(service, cache, metrics) over the Instructor scenario."""
    return build_service(instructor_repository, settings, mock_logger, clock=clock)


@pytest.fixture
def service(wired):
    """Access-check service."""
    return wired[0]


# =============================================================================
# authorize
# =============================================================================


@pytest.mark.unit
class TestAuthorize:
    """Test cached authorization decisions."""

    @pytest.mark.asyncio
    async def test_instructor_scenario(self, service):
        """Test Instructor may create and update courses but not delete them."""
        assert await service.authorize(INSTRUCTOR_USER_ID, "Course", "Create") is True
        assert await service.authorize(INSTRUCTOR_USER_ID, "Course", "Update") is True
        assert await service.authorize(INSTRUCTOR_USER_ID, "Course", "Delete") is False

    @pytest.mark.asyncio
    async def test_user_without_roles_is_denied(self, service):
        """Test users with no assignments are denied everything."""
        assert await service.authorize(999, "Course", "Create") is False
        assert await service.get_visible_menus(999) == ()

    @pytest.mark.asyncio
    async def test_second_check_hits_cache(self, service, instructor_repository):
        """Test a repeated check triggers no repository calls."""
        first = await service.authorize(INSTRUCTOR_USER_ID, "Course", "Create")
        calls_after_first = instructor_repository.total_calls

        second = await service.authorize(INSTRUCTOR_USER_ID, "Course", "Create")

        assert first == second
        assert instructor_repository.total_calls == calls_after_first

    @pytest.mark.asyncio
    async def test_concurrent_checks_fetch_once(self, service, instructor_repository):
        """Test N concurrent checks for an uncached user run one fetch sequence."""
        instructor_repository.gate = asyncio.Event()

        tasks = [
            asyncio.create_task(
                service.authorize(INSTRUCTOR_USER_ID, "Course", "Create")
            )
            for _ in range(25)
        ]
        await asyncio.sleep(0)
        instructor_repository.gate.set()
        results = await asyncio.gather(*tasks)

        assert all(results)
        assert instructor_repository.calls["get_user_roles"] == 1
        assert instructor_repository.calls["get_role_permissions"] == 1

    @pytest.mark.asyncio
    async def test_repository_failure_denies_and_logs(
        self, service, instructor_repository, mock_logger, wired
    ):
        """Test fail-closed: outage denies but is observable."""
        instructor_repository.fail_with = ConnectionError("database unreachable")

        allowed = await service.authorize(INSTRUCTOR_USER_ID, "Course", "Create")

        assert allowed is False
        (event,) = [
            call
            for call in mock_logger.error.call_args_list
            if call.args[0] == "authorization_repository_unavailable"
        ]
        assert event.kwargs["operation"] == "authorize"
        assert event.kwargs["user_id"] == INSTRUCTOR_USER_ID
        assert event.kwargs["error"].code == ErrorCode.REPOSITORY_UNAVAILABLE
        assert event.kwargs["error"].operation == "get_user_roles"
        _, _, metrics = wired
        assert metrics.get_stats(kind=ResultKind.PERMISSIONS)["errors"] == 1

    @pytest.mark.asyncio
    async def test_failure_is_not_cached(self, service, instructor_repository):
        """Test the next check after an outage re-resolves."""
        instructor_repository.fail_with = ConnectionError("database unreachable")
        assert await service.authorize(INSTRUCTOR_USER_ID, "Course", "Create") is False

        instructor_repository.fail_with = None

        assert await service.authorize(INSTRUCTOR_USER_ID, "Course", "Create") is True


# =============================================================================
# Invalidation contract
# =============================================================================


@pytest.mark.unit
class TestInvalidation:
    """Test the consistency contract with the administrative layer."""

    @pytest.mark.asyncio
    async def test_invalidate_forces_refetch(self, service, instructor_repository):
        """Test the next check after invalidate() hits the repository."""
        await service.authorize(INSTRUCTOR_USER_ID, "Course", "Create")
        before = instructor_repository.calls["get_user_roles"]

        await service.invalidate(INSTRUCTOR_USER_ID)
        await service.authorize(INSTRUCTOR_USER_ID, "Course", "Create")

        assert instructor_repository.calls["get_user_roles"] == before + 1

    @pytest.mark.asyncio
    async def test_deactivated_role_stale_until_invalidated(
        self, service, instructor_repository
    ):
        """Test the staleness window and its closure by invalidate()."""
        assert await service.authorize(INSTRUCTOR_USER_ID, "Course", "Create") is True

        instructor_repository.set_role_active(INSTRUCTOR_ROLE_ID, False)

        # Within the TTL the cached decision is still served
        assert await service.authorize(INSTRUCTOR_USER_ID, "Course", "Create") is True

        await service.invalidate(INSTRUCTOR_USER_ID)

        assert await service.authorize(INSTRUCTOR_USER_ID, "Course", "Create") is False

    @pytest.mark.asyncio
    async def test_stale_decision_expires_with_ttl(
        self, service, instructor_repository, clock
    ):
        """Test a missed invalidation is bounded by the TTL."""
        await service.authorize(INSTRUCTOR_USER_ID, "Course", "Create")
        instructor_repository.set_role_active(INSTRUCTOR_ROLE_ID, False)

        clock.advance(301)

        assert await service.authorize(INSTRUCTOR_USER_ID, "Course", "Create") is False

    @pytest.mark.asyncio
    async def test_invalidate_role_reaches_holders(
        self, service, instructor_repository
    ):
        """Test role changes become visible to holders after invalidate_role()."""
        await service.authorize(INSTRUCTOR_USER_ID, "Course", "Delete")
        instructor_repository.grant_permission(
            INSTRUCTOR_ROLE_ID, Permission(resource="Course", action="Delete")
        )

        await service.invalidate_role(INSTRUCTOR_ROLE_ID)

        assert await service.authorize(INSTRUCTOR_USER_ID, "Course", "Delete") is True

    @pytest.mark.asyncio
    async def test_invalidate_menus(self, service, instructor_repository):
        """Test menu structure changes appear after invalidate_menus()."""
        await service.get_visible_menus(INSTRUCTOR_USER_ID)
        instructor_repository.add_menu(
            Menu(id=102, name="Syllabus", parent_id=100, sort_order=2)
        )
        instructor_repository.grant_menu(INSTRUCTOR_ROLE_ID, 102)

        removed = await service.invalidate_menus()
        forest = await service.get_visible_menus(INSTRUCTOR_USER_ID)

        assert removed == 1
        assert [child.menu.id for child in forest[0].children] == [101, 102]

    @pytest.mark.asyncio
    async def test_invalidate_all(self, service):
        """Test invalidate_all() empties the cache."""
        await service.warm_up_user(INSTRUCTOR_USER_ID)

        removed = await service.invalidate_all()

        assert removed == 4
        assert service.cache_statistics()["total_entries"] == 0


# =============================================================================
# Views
# =============================================================================


@pytest.mark.unit
class TestViews:
    """Test menus, matrices and role checks."""

    @pytest.mark.asyncio
    async def test_visible_menus(self, service):
        """Test the Instructor forest."""
        forest = await service.get_visible_menus(INSTRUCTOR_USER_ID)

        assert [node.menu.name for node in forest] == ["Courses"]
        assert forest[0].children[0].menu.name == "My Courses"

    @pytest.mark.asyncio
    async def test_visible_menus_empty_on_failure(
        self, service, instructor_repository
    ):
        """Test failures yield an empty forest."""
        instructor_repository.fail_with = TimeoutError("slow database")

        assert await service.get_visible_menus(INSTRUCTOR_USER_ID) == ()

    @pytest.mark.asyncio
    async def test_permission_matrix(self, service):
        """Test the Instructor matrix."""
        matrix = await service.get_permission_matrix(INSTRUCTOR_USER_ID)

        assert matrix == {"Course": frozenset({"Create", "Update"})}

    @pytest.mark.asyncio
    async def test_role_matrix_and_has_role(self, service):
        """Test role matrix and has_role share the cached entry."""
        assert await service.get_role_matrix(INSTRUCTOR_USER_ID) == {
            "Instructor": ("Course:Create", "Course:Update")
        }
        assert await service.has_role(INSTRUCTOR_USER_ID, "Instructor") is True
        assert await service.has_role(INSTRUCTOR_USER_ID, "Admin") is False

    @pytest.mark.asyncio
    async def test_role_permissions(self, service):
        """Test role-level lookups return Results."""
        found = await service.get_role_permissions(INSTRUCTOR_ROLE_ID)
        missing = await service.get_role_menus(404)

        assert found == Success(
            value=frozenset(
                {PermissionKey("Course", "Create"), PermissionKey("Course", "Update")}
            )
        )
        assert isinstance(missing, Failure)
        assert missing.error.code == ErrorCode.ROLE_NOT_FOUND

    @pytest.mark.asyncio
    async def test_matrices_fail_closed_on_exceptions(self, wired, mock_logger):
        """Test an exception escaping the cache yields empty matrices."""
        service, cache, _ = wired
        broken = AsyncMock(side_effect=RuntimeError("resolver bug"))

        with patch.object(cache, "get_or_compute", broken):
            assert await service.get_permission_matrix(INSTRUCTOR_USER_ID) == {}
            assert await service.get_role_matrix(INSTRUCTOR_USER_ID) == {}
            assert await service.has_role(INSTRUCTOR_USER_ID, "Instructor") is False
            assert await service.get_user_roles(INSTRUCTOR_USER_ID) == ()

        logged = [call.args[0] for call in mock_logger.error.call_args_list]
        assert "permission_matrix_error" in logged
        assert "role_matrix_error" in logged

    @pytest.mark.asyncio
    async def test_user_roles_by_priority(self, service, instructor_repository):
        """Test role names come from the role matrix, highest priority first."""
        instructor_repository.add_role(Role(id=12, name="Admin", priority=10))
        instructor_repository.assign_role(INSTRUCTOR_USER_ID, 12)

        assert await service.get_user_roles(INSTRUCTOR_USER_ID) == (
            "Admin",
            "Instructor",
        )
        assert await service.get_user_roles(999) == ()

    @pytest.mark.asyncio
    async def test_role_has_permission(self, wired, instructor_repository):
        """Test direct role grants are answered from the cached role entry."""
        service, cache, _ = wired

        assert await service.role_has_permission(
            INSTRUCTOR_ROLE_ID, "Course", "Create"
        ) is True
        assert await service.role_has_permission(
            INSTRUCTOR_ROLE_ID, "Course", "Delete"
        ) is False
        assert await service.role_has_permission(404, "Course", "Create") is False
        assert cache.contains(KeyScope.ROLE, INSTRUCTOR_ROLE_ID, ResultKind.PERMISSIONS)
        assert instructor_repository.calls["get_role_permissions"] == 1

    @pytest.mark.asyncio
    async def test_role_has_permission_fails_closed(
        self, service, instructor_repository, mock_logger
    ):
        """Test repository failures deny and are logged."""
        with patch.object(
            instructor_repository,
            "get_role",
            AsyncMock(side_effect=ConnectionError("db down")),
        ):
            allowed = await service.role_has_permission(
                INSTRUCTOR_ROLE_ID, "Course", "Create"
            )

        assert allowed is False
        event = mock_logger.error.call_args
        assert event.args[0] == "authorization_repository_unavailable"
        assert event.kwargs["operation"] == "role_has_permission"
        assert event.kwargs["role_id"] == INSTRUCTOR_ROLE_ID
        assert event.kwargs["error"].message == "Repository call 'get_role' failed"

    @pytest.mark.asyncio
    async def test_user_can_access_menu(self, service, instructor_repository):
        """Test nested and root menus are found; others are not."""
        instructor_repository.add_menu(Menu(id=300, name="Admin"))

        assert await service.user_can_access_menu(INSTRUCTOR_USER_ID, 100) is True
        assert await service.user_can_access_menu(INSTRUCTOR_USER_ID, 101) is True
        assert await service.user_can_access_menu(INSTRUCTOR_USER_ID, 300) is False
        assert await service.user_can_access_menu(999, 100) is False

    @pytest.mark.asyncio
    async def test_user_can_access_menu_uses_cached_forest(
        self, service, instructor_repository
    ):
        """Test repeated menu checks reuse one menu forest entry."""
        await service.user_can_access_menu(INSTRUCTOR_USER_ID, 100)
        await service.user_can_access_menu(INSTRUCTOR_USER_ID, 101)

        assert instructor_repository.calls["get_all_menus"] == 1

    @pytest.mark.asyncio
    async def test_deactivated_permission_denied_after_role_invalidation(
        self, service, instructor_repository
    ):
        """Test permission deactivation takes effect via invalidate_role."""
        assert await service.authorize(INSTRUCTOR_USER_ID, "Course", "Update") is True
        instructor_repository.set_permission_active("Course", "Update", False)

        await service.invalidate_role(INSTRUCTOR_ROLE_ID)

        assert await service.authorize(INSTRUCTOR_USER_ID, "Course", "Update") is False
        assert await service.authorize(INSTRUCTOR_USER_ID, "Course", "Create") is True

    @pytest.mark.asyncio
    async def test_module_queries(self, service, instructor_repository):
        """Test module permissions and menu forests pass through uncached."""
        instructor_repository.add_permission(
            Permission(resource="Grade", action="Read", module="Grading")
        )
        instructor_repository.add_menu(Menu(id=200, name="Grading", module="Grading"))

        permissions = await service.get_permissions_by_module("Grading")
        forest = await service.get_menu_tree_by_module("Grading")

        assert [p.key for p in permissions.value] == [PermissionKey("Grade", "Read")]
        assert [node.menu.id for node in forest.value] == [200]
        assert service.cache_statistics()["total_entries"] == 0


# =============================================================================
# Preload and warm-up
# =============================================================================


@pytest.mark.unit
class TestPreload:
    """Test background warm-up."""

    @pytest.mark.asyncio
    async def test_preload_returns_task_and_populates_cache(self, wired):
        """Test preload schedules resolution without awaiting it."""
        service, cache, _ = wired

        task = service.preload(INSTRUCTOR_USER_ID)

        assert isinstance(task, asyncio.Task)
        assert await task is True
        assert cache.contains(KeyScope.USER, INSTRUCTOR_USER_ID, ResultKind.PERMISSIONS)

    @pytest.mark.asyncio
    async def test_preload_user_without_permissions_warns(
        self, service, mock_logger
    ):
        """Test a user resolving to nothing is reported."""
        assert await service.preload(999) is True

        mock_logger.warning.assert_any_call("user_has_no_permissions", user_id=999)

    @pytest.mark.asyncio
    async def test_preload_failure_returns_false(self, service, instructor_repository):
        """Test a failed preload resolves to False."""
        instructor_repository.fail_with = ConnectionError("down")

        assert await service.preload(INSTRUCTOR_USER_ID) is False

    @pytest.mark.asyncio
    async def test_warm_up_user_fills_every_view(self, wired):
        """Test warm_up_user caches all user-scoped kinds."""
        service, cache, _ = wired

        assert await service.warm_up_user(INSTRUCTOR_USER_ID) is True
        for kind in ResultKind:
            assert cache.contains(KeyScope.USER, INSTRUCTOR_USER_ID, kind)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_role_added_later_needs_invalidation(settings, mock_logger):
    """Test assigning a role is invisible until the user is invalidated."""
    repository = CountingRepository()
    repository.add_role(Role(id=1, name="Viewer"))
    repository.grant_permission(1, Permission(resource="Report", action="Read"))
    service, _, _ = build_service(repository, settings, mock_logger)

    assert await service.authorize(5, "Report", "Read") is False
    repository.assign_role(5, 1)
    assert await service.authorize(5, "Report", "Read") is False

    await service.invalidate(5)

    assert await service.authorize(5, "Report", "Read") is True
