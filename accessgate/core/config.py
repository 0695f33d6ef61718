"""
Configuration management using Pydantic Settings.

Type-safe, validated configuration loaded from environment variables.

Architecture:
- Flat Settings structure (no nesting)
- All config loaded from environment variables
- Type validation via Pydantic

Usage:
    from accessgate.core.config import get_settings

    settings = get_settings()
    ttl = settings.permission_cache_ttl_seconds
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from accessgate.core.enums import Environment
from accessgate.domain.enums import ResultKind


class Settings(BaseSettings):
    """
    Access-control subsystem settings (flat structure).

    Configuration precedence:
        1. Environment variables
        2. Default values (only for non-sensitive config)

    The TTLs bound how long a cached decision may lag behind the assignment
    tables when the administrative layer misses an invalidation call.
    """

    # Environment detection
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment (development, testing, ci, production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    # Cache configuration
    cache_key_prefix: str = Field(
        default="accessgate:permissions",
        description="Prefix for every cache key (shared tier and metrics)",
    )
    permission_cache_ttl_seconds: int = Field(
        default=300,
        description="TTL for permission sets and permission/role matrices",
    )
    menu_cache_ttl_seconds: int = Field(
        default=600,
        description="TTL for resolved menu forests",
    )
    role_cache_ttl_seconds: int = Field(
        default=900,
        description="TTL for role-scoped entries (role permissions, role menus)",
    )
    cache_max_entries: int = Field(
        default=10000,
        description="Maximum in-process entries before the oldest is evicted",
    )
    compute_timeout_seconds: float = Field(
        default=5.0,
        description="Upper bound for one resolution (all repository calls included)",
    )

    # Optional backends
    redis_url: str | None = Field(
        default=None,
        description="Redis URL for the shared cache tier (None = in-process only)",
    )
    database_url: str | None = Field(
        default=None,
        description="Database URL for the SQLAlchemy repository (None = in-memory)",
    )
    db_echo: bool = Field(
        default=False,
        description="Log all SQL queries",
    )

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator(
        "permission_cache_ttl_seconds",
        "menu_cache_ttl_seconds",
        "role_cache_ttl_seconds",
        "cache_max_entries",
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """
        Reject zero or negative sizes and TTLs.

        Args:
            v: Configured value.

        Returns:
            int: Validated value.

        Raises:
            ValueError: If value is not positive.
        """
        if v <= 0:
            raise ValueError("value must be positive")
        return v

    @field_validator("compute_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """
        Reject zero or negative timeouts.

        Args:
            v: Timeout in seconds.

        Returns:
            float: Validated timeout.

        Raises:
            ValueError: If timeout is not positive.
        """
        if v <= 0:
            raise ValueError("compute_timeout_seconds must be positive")
        return v

    @field_validator("cache_key_prefix")
    @classmethod
    def strip_prefix(cls, v: str) -> str:
        """
        Remove trailing separators from the key prefix.

        Args:
            v: Prefix string.

        Returns:
            str: Prefix without trailing colon.
        """
        return v.rstrip(":")

    def ttl_for(self, kind: ResultKind, *, role_scoped: bool = False) -> int:
        """
        TTL in seconds for a cached result kind.

        Args:
            kind: Result kind being cached.
            role_scoped: True for role-level entries.

        Returns:
            int: TTL in seconds.
        """
        if role_scoped:
            return self.role_cache_ttl_seconds
        if kind is ResultKind.MENU_TREE:
            return self.menu_cache_ttl_seconds
        return self.permission_cache_ttl_seconds

    @property
    def is_development(self) -> bool:
        """
        Check if running in development environment.

        Returns:
            bool: True if environment is DEVELOPMENT, False otherwise.
        """
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """
        Check if running in production environment.

        Returns:
            bool: True if environment is PRODUCTION, False otherwise.
        """
        return self.environment == Environment.PRODUCTION


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Cached settings instance.
    """
    return Settings()
