"""Integration tests for the FastAPI authorization surface.

Tests cover:
- require_permission / require_role responses (200, 401, 403)
- Fail-closed behavior when the repository is down
- PermissionPreloadMiddleware scheduling and fail-open behavior

Architecture:
- Real FastAPI app with TestClient
- A stand-in authentication middleware sets request.state.user_id from the
  X-User-Id header
- AccessCheckService injected through app.dependency_overrides
"""

from typing import Annotated
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import Depends, FastAPI, status
from fastapi.testclient import TestClient

from accessgate.application.services import AccessCheckService, PermissionResolver
from accessgate.core.container import get_access_check_service
from accessgate.presentation.middleware import (
    PermissionPreloadMiddleware,
    get_current_user_id,
    require_permission,
    require_role,
)
from tests.conftest import INSTRUCTOR_USER_ID, build_service


def create_app(service, preload_service, logger) -> FastAPI:
    """Application wired like a host service would wire it."""
    app = FastAPI()

    # Added first so the authentication middleware below wraps it
    app.add_middleware(
        PermissionPreloadMiddleware, service=preload_service, logger=logger
    )

    @app.middleware("http")
    async def authenticate(request, call_next):
        user_id = request.headers.get("X-User-Id")
        if user_id is not None:
            request.state.user_id = int(user_id)
        return await call_next(request)

    @app.post(
        "/courses",
        status_code=status.HTTP_201_CREATED,
        dependencies=[Depends(require_permission("Course", "Create"))],
    )
    async def create_course():
        return {"created": True}

    @app.delete(
        "/courses/{course_id}",
        dependencies=[Depends(require_permission("Course", "Delete"))],
    )
    async def delete_course(course_id: int):
        return {"deleted": course_id}

    @app.get("/teaching", dependencies=[Depends(require_role("Instructor"))])
    async def teaching():
        return {"ok": True}

    @app.get("/admin", dependencies=[Depends(require_role("Admin"))])
    async def admin():
        return {"ok": True}

    @app.get("/menus")
    async def menus(
        user_id: Annotated[int, Depends(get_current_user_id)],
        access: Annotated[AccessCheckService, Depends(get_access_check_service)],
    ):
        return [node.to_dict() for node in await access.get_visible_menus(user_id)]

    app.dependency_overrides[get_access_check_service] = lambda: service
    return app


@pytest.fixture
def preload_service():
    """Service stand-in seen by the preload middleware."""
    return MagicMock()


@pytest.fixture
def client(instructor_repository, settings, mock_logger, preload_service):
    """TestClient over the Instructor scenario."""
    service, _, _ = build_service(instructor_repository, settings, mock_logger)
    app = create_app(service, preload_service, mock_logger)
    with TestClient(app) as test_client:
        yield test_client


AS_INSTRUCTOR = {"X-User-Id": str(INSTRUCTOR_USER_ID)}


@pytest.mark.integration
class TestRequirePermission:
    """Test route-level permission checks."""

    def test_granted(self, client):
        response = client.post("/courses", headers=AS_INSTRUCTOR)

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json() == {"created": True}

    def test_denied(self, client):
        response = client.delete("/courses/7", headers=AS_INSTRUCTOR)

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["detail"] == "Permission denied: Course:Delete"

    def test_unauthenticated(self, client):
        response = client.post("/courses")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["detail"] == "Not authenticated"

    def test_repository_outage_fails_closed(self, client, instructor_repository):
        """Test an unreachable repository yields 403, never 500 or 201."""
        instructor_repository.fail_with = ConnectionError("database unreachable")

        response = client.post("/courses", headers=AS_INSTRUCTOR)

        assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.integration
class TestRequireRole:
    """Test route-level role checks."""

    def test_held_role(self, client):
        assert client.get("/teaching", headers=AS_INSTRUCTOR).status_code == 200

    def test_missing_role(self, client):
        response = client.get("/admin", headers=AS_INSTRUCTOR)

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["detail"] == "Role required: Admin"

    def test_role_resolution_error_is_forbidden(self, client):
        """Test an exception while resolving roles yields 403, never 500."""
        with patch.object(
            PermissionResolver,
            "build_user_role_matrix",
            AsyncMock(side_effect=RuntimeError("resolver bug")),
        ):
            response = client.get("/teaching", headers=AS_INSTRUCTOR)

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["detail"] == "Role required: Instructor"


@pytest.mark.integration
def test_menus_endpoint(client):
    """Test the resolved forest serialises to nested JSON."""
    response = client.get("/menus", headers=AS_INSTRUCTOR)

    body = response.json()
    assert response.status_code == 200
    assert [node["name"] for node in body] == ["Courses"]
    assert body[0]["children"][0]["name"] == "My Courses"


@pytest.mark.integration
class TestPermissionPreloadMiddleware:
    """Test background warm-up scheduling."""

    def test_schedules_preload_for_authenticated_requests(
        self, client, preload_service
    ):
        client.post("/courses", headers=AS_INSTRUCTOR)

        preload_service.preload.assert_called_once_with(INSTRUCTOR_USER_ID)

    def test_skips_anonymous_requests(self, client, preload_service):
        client.post("/courses")

        preload_service.preload.assert_not_called()

    def test_preload_errors_fail_open(self, client, preload_service, mock_logger):
        """Test a failing preload is logged and the request still succeeds."""
        preload_service.preload.side_effect = RuntimeError("loop closed")

        response = client.post("/courses", headers=AS_INSTRUCTOR)

        assert response.status_code == status.HTTP_201_CREATED
        mock_logger.warning.assert_called_once_with(
            "permission_preload_failed",
            user_id=str(INSTRUCTOR_USER_ID),
            path="/courses",
            error_type="RuntimeError",
            error_message="loop closed",
        )
