"""Authorization dependencies for FastAPI routes.

Route-level checks backed by AccessCheckService. Authentication is outside
this package: it must set ``request.state.user_id`` before these run.

Usage:
    @router.post("/courses")
    async def create_course(
        _: None = Depends(require_permission("Course", "Create")),
    ):
        ...

    @router.get("/admin/reports")
    async def reports(_: None = Depends(require_role("Admin"))):
        ...
"""

from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from accessgate.application.services import AccessCheckService
from accessgate.core.container import get_access_check_service


def get_current_user_id(request: Request) -> int:
    """Authenticated user id set by the authentication layer.

    Args:
        request: Incoming request.

    Returns:
        int: User identifier.

    Raises:
        HTTPException 401: If the request is not authenticated.
    """
    user_id = getattr(request.state, "user_id", None)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return int(user_id)


def require_permission(
    resource: str,
    action: str,
) -> Callable[..., Awaitable[None]]:
    """Create a dependency that requires a specific permission.

    Args:
        resource: Resource name (e.g. "Course").
        action: Action name (e.g. "Create").

    Returns:
        Dependency function that validates the user holds the permission.

    Raises:
        HTTPException 403: If user does not have required permission
            (including when resolution failed: fail closed).
    """

    async def permission_checker(
        user_id: Annotated[int, Depends(get_current_user_id)],
        service: Annotated[AccessCheckService, Depends(get_access_check_service)],
    ) -> None:
        allowed = await service.authorize(user_id, resource, action)
        if not allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Permission denied: {resource}:{action}",
            )

    return permission_checker


def require_role(role_name: str) -> Callable[..., Awaitable[None]]:
    """Create a dependency that requires an active role.

    Args:
        role_name: Role name (exact match).

    Returns:
        Dependency function that validates the user holds the role.

    Raises:
        HTTPException 403: If user does not hold the role.
    """

    async def role_checker(
        user_id: Annotated[int, Depends(get_current_user_id)],
        service: Annotated[AccessCheckService, Depends(get_access_check_service)],
    ) -> None:
        if not await service.has_role(user_id, role_name):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role required: {role_name}",
            )

    return role_checker
