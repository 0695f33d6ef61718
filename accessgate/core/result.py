"""Result types for railway-oriented programming.

Resolver and cache operations that can fail return a Result instead of
raising, so a failed repository fetch travels to every single-flight waiter
as a value and the access-check façade can turn it into a deny decision.

Usage:
    result = await resolver.resolve_role_permissions(role_id)
    match result:
        case Success(value=permissions):
            ...
        case Failure(error=NotFoundError()):
            ...
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")  # Success type
E = TypeVar("E")  # Error type


@dataclass(frozen=True, slots=True, kw_only=True)
class Success(Generic[T]):
    """Represents a successful operation result.

    Attributes:
        value: The successful result value.
    """

    value: T


@dataclass(frozen=True, slots=True, kw_only=True)
class Failure(Generic[E]):
    """Represents a failed operation result.

    Attributes:
        error: The error that occurred.
    """

    error: E


type Result[T, E] = Success[T] | Failure[E]
