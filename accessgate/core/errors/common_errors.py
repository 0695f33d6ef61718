"""Error classes surfaced by the resolver and the cache.

Error Types:
- NotFoundError: a direct single-entity lookup referenced an unknown id
- RepositoryUnavailableError: a repository port call failed or timed out

Dangling references (menu parent missing, role deleted under a user) are
not errors: the resolver absorbs them and logs a warning.

Usage:
    from accessgate.core.enums import ErrorCode
    from accessgate.core.errors import NotFoundError
    from accessgate.core.result import Failure

    return Failure(error=NotFoundError(
        code=ErrorCode.ROLE_NOT_FOUND,
        message="Role not found",
        resource_type="Role",
        resource_id=str(role_id),
    ))
"""

from dataclasses import dataclass

from accessgate.core.errors.domain_error import DomainError


@dataclass(frozen=True, slots=True, kw_only=True)
class NotFoundError(DomainError):
    """Resource not found.

    Attributes:
        code: ErrorCode enum.
        message: Human-readable message.
        resource_type: Type of resource (Role, Menu).
        resource_id: ID of the resource that was not found.
        details: Additional context.
    """

    resource_type: str
    resource_id: str


@dataclass(frozen=True, slots=True, kw_only=True)
class RepositoryUnavailableError(DomainError):
    """A repository port call failed (connection error, timeout).

    Callers fail the individual authorization check (deny) rather than
    crash the process.

    Attributes:
        code: REPOSITORY_UNAVAILABLE or REPOSITORY_TIMEOUT.
        message: Human-readable message.
        operation: Port operation that failed (e.g. "get_user_roles").
        details: Additional context (original error type and message).
    """

    operation: str
