"""Shared pytest fixtures.

Provides:
- mock_logger: MagicMock implementing LoggerProtocol
- settings: Settings with test-friendly values (no Redis, no database)
- FakeClock: controllable monotonic clock for TTL tests
- CountingRepository: in-memory repository counting port calls
- instructor_repository: the "Instructor" scenario (user 1, role 10)
"""

import asyncio
from collections import Counter
from unittest.mock import MagicMock

import pytest

from accessgate.application.services import AccessCheckService, PermissionResolver
from accessgate.core.config import Settings
from accessgate.domain.entities import Menu, Permission, Role
from accessgate.infrastructure.cache import CacheMetrics, PermissionCache
from accessgate.infrastructure.persistence.in_memory_rbac_repository import (
    InMemoryRbacRepository,
)

INSTRUCTOR_USER_ID = 1
INSTRUCTOR_ROLE_ID = 10


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CountingRepository(InMemoryRbacRepository):
    """In-memory repository that counts every port call.

    Attributes:
        calls: port name -> number of calls.
        gate: When set, get_user_roles waits on it (holds computations
            in flight).
        fail_with: When set, get_user_roles raises it.
    """

    def __init__(self) -> None:
        super().__init__()
        self.calls: Counter[str] = Counter()
        self.gate: asyncio.Event | None = None
        self.fail_with: Exception | None = None

    async def get_user_roles(self, user_id: int) -> list[int]:
        self.calls["get_user_roles"] += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_with is not None:
            raise self.fail_with
        return await super().get_user_roles(user_id)

    async def get_role(self, role_id: int) -> Role | None:
        self.calls["get_role"] += 1
        return await super().get_role(role_id)

    async def get_role_permissions(self, role_id: int) -> list[Permission]:
        self.calls["get_role_permissions"] += 1
        return await super().get_role_permissions(role_id)

    async def get_role_menus(self, role_id: int) -> list[int]:
        self.calls["get_role_menus"] += 1
        return await super().get_role_menus(role_id)

    async def get_all_menus(self) -> list[Menu]:
        self.calls["get_all_menus"] += 1
        return await super().get_all_menus()

    async def is_role_active(self, role_id: int) -> bool:
        self.calls["is_role_active"] += 1
        return await super().is_role_active(role_id)

    async def get_users_with_role(self, role_id: int) -> list[int]:
        self.calls["get_users_with_role"] += 1
        return await super().get_users_with_role(role_id)

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())


@pytest.fixture
def mock_logger():
    """Create mock logger."""
    logger = MagicMock()
    logger.debug = MagicMock()
    logger.info = MagicMock()
    logger.warning = MagicMock()
    logger.error = MagicMock()
    return logger


@pytest.fixture
def settings():
    """Settings isolated from the process environment."""
    return Settings(
        _env_file=None,
        permission_cache_ttl_seconds=300,
        menu_cache_ttl_seconds=600,
        role_cache_ttl_seconds=900,
        cache_max_entries=100,
        compute_timeout_seconds=1.0,
        redis_url=None,
        database_url=None,
    )


@pytest.fixture
def clock():
    """Controllable clock."""
    return FakeClock()


@pytest.fixture
def instructor_repository():
    """User 1 holds "Instructor" (Course:Create, Course:Update) and two menus."""
    repo = CountingRepository()
    repo.add_role(Role(id=INSTRUCTOR_ROLE_ID, name="Instructor"))
    repo.grant_permission(
        INSTRUCTOR_ROLE_ID, Permission(resource="Course", action="Create")
    )
    repo.grant_permission(
        INSTRUCTOR_ROLE_ID, Permission(resource="Course", action="Update")
    )
    repo.add_menu(Menu(id=100, name="Courses", sort_order=1))
    repo.add_menu(Menu(id=101, name="My Courses", parent_id=100, sort_order=1))
    repo.grant_menu(INSTRUCTOR_ROLE_ID, 100)
    repo.grant_menu(INSTRUCTOR_ROLE_ID, 101)
    repo.assign_role(INSTRUCTOR_USER_ID, INSTRUCTOR_ROLE_ID)
    return repo


def build_service(repository, settings, logger, clock=None, shared=None):
    """Wire resolver, cache and service around a repository.

    Returns:
        tuple: (service, cache, metrics)
    """
    resolver = PermissionResolver(repository=repository, logger=logger)
    metrics = CacheMetrics()
    options = {} if clock is None else {"clock": clock}
    cache = PermissionCache(
        settings=settings,
        logger=logger,
        metrics=metrics,
        users_with_role=resolver.get_users_with_role,
        shared=shared,
        **options,
    )
    service = AccessCheckService(resolver=resolver, cache=cache, logger=logger)
    return service, cache, metrics
