"""Infrastructure layer error types.

Infrastructure errors represent failures in external systems (shared cache).

Architecture:
- Adapters catch exceptions and map them to these errors
- Infrastructure errors inherit from DomainError (not Exception)
- Used with Result types for error propagation
"""

from dataclasses import dataclass
from typing import Any

from accessgate.core.errors import DomainError
from accessgate.infrastructure.enums import InfrastructureErrorCode


@dataclass(frozen=True, slots=True, kw_only=True)
class InfrastructureError(DomainError):
    """Base infrastructure error.

    Attributes:
        code: Domain ErrorCode.
        message: Human-readable message.
        infrastructure_code: Original infrastructure error code.
        details: Additional context.
    """

    infrastructure_code: InfrastructureErrorCode | None = None
    details: dict[str, Any] | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class CacheError(InfrastructureError):
    """Shared cache tier errors (Redis, decoding).

    Attributes:
        code: Domain ErrorCode.
        message: Human-readable message.
        infrastructure_code: Cache-specific error code.
        details: Additional context (key, operation, original error).
    """

    pass
