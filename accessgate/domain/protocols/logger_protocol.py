"""LoggerProtocol definition for structured logging.

Backend-agnostic structured logging used by the resolver, the cache and the
access-check service. Event names are snake_case; context is key-value.

Log Levels:
    - DEBUG: Cache hits/misses, per-check decisions
    - INFO: Invalidations, warm-ups
    - WARNING: Dangling references, shared cache tier degraded
    - ERROR: Repository unavailable (authorization failed closed)
    - CRITICAL: Reserved for system-wide failures

Usage:
    logger: LoggerProtocol = get_logger()
    logger.info("cache_invalidated", user_id=42, entries=3)

    scoped = logger.bind(component="permission_resolver")
    scoped.warning("dangling_menu_parent", menu_id=3, parent_id=99)
"""

from __future__ import annotations

from typing import Any, Protocol

from accessgate.core.errors import DomainError


class LoggerProtocol(Protocol):
    """Protocol for structured logging adapters.

    All logging calls MUST be structured: message + key-value context.
    """

    def debug(self, message: str, /, **context: Any) -> None:
        """Log a debug-level message.

        Args:
            message: Event name.
            **context: Structured key-value context fields.
        """
        ...

    def info(self, message: str, /, **context: Any) -> None:
        """Log an info-level message.

        Args:
            message: Event name.
            **context: Structured key-value context fields.
        """
        ...

    def warning(self, message: str, /, **context: Any) -> None:
        """Log a warning-level message.

        Args:
            message: Event name.
            **context: Structured key-value context fields.
        """
        ...

    def error(
        self,
        message: str,
        /,
        *,
        error: Exception | DomainError | None = None,
        **context: Any,
    ) -> None:
        """Log an error-level message with optional error details.

        Args:
            message: Event name.
            error: Optional exception or DomainError; implementations flatten
                it (error_type or error_code, and error_message).
            **context: Structured key-value context fields.
        """
        ...

    def critical(
        self,
        message: str,
        /,
        *,
        error: Exception | DomainError | None = None,
        **context: Any,
    ) -> None:
        """Log a critical-level message.

        Args:
            message: Event name.
            error: Optional exception or DomainError.
            **context: Structured key-value context fields.
        """
        ...

    def bind(self, **context: Any) -> LoggerProtocol:
        """Return new logger with permanently bound context.

        Args:
            **context: Context to bind to all future logs.

        Returns:
            New logger instance with bound context.
        """
        ...
