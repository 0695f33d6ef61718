"""Container module - Centralized dependency injection.

Application-scoped singletons (lru_cache) wiring the access-check stack:

    settings -> logger, metrics, shared cache (Redis, optional)
             -> repository (SQLAlchemy if DATABASE_URL, else in-memory)
             -> resolver -> permission cache -> access-check service

Usage:
    # Application code
    service = get_access_check_service()
    allowed = await service.authorize(user_id, "Course", "Create")

    # Presentation Layer (FastAPI Depends)
    service: AccessCheckService = Depends(get_access_check_service)

Tests clear the singletons with ``<factory>.cache_clear()`` or override
them through ``app.dependency_overrides``.
"""

from functools import lru_cache
from typing import TYPE_CHECKING

from accessgate.core.config import get_settings

if TYPE_CHECKING:
    from accessgate.application.services import (
        AccessCheckService,
        PermissionResolver,
    )
    from accessgate.domain.protocols import (
        CacheMetricsProtocol,
        CacheProtocol,
        LoggerProtocol,
        PermissionCacheProtocol,
        RbacRepository,
    )
    from accessgate.infrastructure.persistence.database import Database


# ============================================================================
# Infrastructure
# ============================================================================


@lru_cache()
def get_logger() -> "LoggerProtocol":
    """Return the application-scoped logger singleton.

    - development: ConsoleAdapter (human-readable)
    - testing/ci/production: ConsoleAdapter (JSON)

    Returns:
        LoggerProtocol: Logger instance implementing the protocol.
    """
    from accessgate.infrastructure.logging.console_adapter import ConsoleAdapter

    settings = get_settings()
    return ConsoleAdapter(
        use_json=not settings.is_development,
        level=settings.log_level,
    )


@lru_cache()
def get_cache_metrics() -> "CacheMetricsProtocol":
    """Get cache metrics singleton (app-scoped).

    Returns:
        CacheMetricsProtocol: In-memory counters.
    """
    from accessgate.infrastructure.cache.cache_metrics import CacheMetrics

    return CacheMetrics()


@lru_cache()
def get_shared_cache() -> "CacheProtocol | None":
    """Get the shared cache tier (app-scoped).

    Returns:
        RedisAdapter when REDIS_URL is configured, None otherwise
        (in-process caching only).
    """
    settings = get_settings()
    if settings.redis_url is None:
        return None

    from redis.asyncio import ConnectionPool, Redis

    from accessgate.infrastructure.cache.redis_adapter import RedisAdapter

    pool = ConnectionPool.from_url(
        settings.redis_url,
        max_connections=50,
        decode_responses=False,
        socket_connect_timeout=5,
        socket_timeout=5,
        retry_on_timeout=True,
    )
    redis_client = Redis(connection_pool=pool)
    return RedisAdapter(redis_client=redis_client)


@lru_cache()
def get_database() -> "Database":
    """Get database manager singleton (app-scoped).

    Returns:
        Database manager instance.

    Raises:
        RuntimeError: If DATABASE_URL is not configured.
    """
    from accessgate.infrastructure.persistence.database import Database

    settings = get_settings()
    if settings.database_url is None:
        raise RuntimeError("DATABASE_URL is not configured")
    return Database(database_url=settings.database_url, echo=settings.db_echo)


# ============================================================================
# Access control
# ============================================================================


@lru_cache()
def get_rbac_repository() -> "RbacRepository":
    """Get the RBAC repository singleton (app-scoped).

    Returns:
        SQLAlchemyRbacRepository when DATABASE_URL is configured,
        InMemoryRbacRepository otherwise.
    """
    if get_settings().database_url is None:
        from accessgate.infrastructure.persistence.in_memory_rbac_repository import (
            InMemoryRbacRepository,
        )

        return InMemoryRbacRepository()

    from accessgate.infrastructure.persistence.repositories import (
        SQLAlchemyRbacRepository,
    )

    return SQLAlchemyRbacRepository(database=get_database())


@lru_cache()
def get_permission_resolver() -> "PermissionResolver":
    """Get the permission resolver singleton (app-scoped).

    Returns:
        PermissionResolver over the configured repository.
    """
    from accessgate.application.services import PermissionResolver

    return PermissionResolver(repository=get_rbac_repository(), logger=get_logger())


@lru_cache()
def get_permission_cache() -> "PermissionCacheProtocol":
    """Get the permission cache singleton (app-scoped).

    Returns:
        PermissionCache with role fan-out through the resolver.
    """
    from accessgate.infrastructure.cache.permission_cache import PermissionCache

    return PermissionCache(
        settings=get_settings(),
        logger=get_logger(),
        metrics=get_cache_metrics(),
        users_with_role=get_permission_resolver().get_users_with_role,
        shared=get_shared_cache(),
    )


@lru_cache()
def get_access_check_service() -> "AccessCheckService":
    """Get the access-check service singleton (app-scoped).

    Returns:
        AccessCheckService wired to the resolver and cache.

    Usage:
        service: AccessCheckService = Depends(get_access_check_service)
    """
    from accessgate.application.services import AccessCheckService

    return AccessCheckService(
        resolver=get_permission_resolver(),
        cache=get_permission_cache(),
        logger=get_logger(),
    )
