"""Permission preload middleware for FastAPI.

Warms the permission cache as a side effect of authentication: for every
request whose authentication layer set ``request.state.user_id``, a
background preload is scheduled and the request continues immediately.
The preload never gates the request.

Fail-Open Design:
    Errors while scheduling the preload are logged and the request proceeds.
    Authorization itself happens later, in require_permission, and fails
    closed.

Usage:
    # Register after the authentication middleware so user_id is set
    app.add_middleware(PermissionPreloadMiddleware)
"""

from typing import TYPE_CHECKING, Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

if TYPE_CHECKING:
    from accessgate.application.services import AccessCheckService
    from accessgate.domain.protocols.logger_protocol import LoggerProtocol


class PermissionPreloadMiddleware(BaseHTTPMiddleware):
    """Starlette middleware scheduling permission warm-up per request.

    Attributes:
        _service: AccessCheckService (lazy loaded from container if not given).
        _logger: LoggerProtocol for structured logging (lazy loaded).
    """

    def __init__(
        self,
        app: ASGIApp,
        service: "AccessCheckService | None" = None,
        logger: "LoggerProtocol | None" = None,
    ) -> None:
        """Initialize preload middleware.

        Args:
            app: The ASGI application to wrap.
            service: Access-check service (defaults to the container's).
            logger: Logger (defaults to the container's).
        """
        super().__init__(app)
        self._service = service
        self._logger = logger

    def _get_service(self) -> "AccessCheckService":
        if self._service is None:
            from accessgate.core.container import get_access_check_service

            self._service = get_access_check_service()
        return self._service

    def _get_logger(self) -> "LoggerProtocol":
        if self._logger is None:
            from accessgate.core.container import get_logger

            self._logger = get_logger()
        return self._logger

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Schedule a preload for authenticated requests, then continue.

        Args:
            request: Incoming HTTP request.
            call_next: Next handler in middleware chain.

        Returns:
            Response: Downstream response (never altered).
        """
        user_id = getattr(request.state, "user_id", None)
        if user_id is not None:
            try:
                self._get_service().preload(int(user_id))
            except Exception as e:
                # Fail open: warm-up is an optimisation only
                self._get_logger().warning(
                    "permission_preload_failed",
                    user_id=str(user_id),
                    path=request.url.path,
                    error_type=type(e).__name__,
                    error_message=str(e),
                )
        return await call_next(request)
