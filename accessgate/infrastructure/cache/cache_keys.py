"""Cache key construction utilities.

All keys follow the pattern {prefix}:{scope}:{subject_id}:{kind}, so every
entry of one user (or role) shares the {prefix}:{scope}:{subject_id}:*
pattern used for invalidation in the shared tier.

Usage:
    keys = CacheKeys(prefix=settings.cache_key_prefix)
    key = CacheKey(KeyScope.USER, 42, ResultKind.PERMISSIONS)
    keys.render(key)         # "accessgate:permissions:user:42:permissions"
    keys.subject_pattern(KeyScope.USER, 42)   # "accessgate:permissions:user:42:*"
"""

from dataclasses import dataclass
from typing import NamedTuple

from accessgate.domain.enums import KeyScope, ResultKind


class CacheKey(NamedTuple):
    """In-process cache key."""

    scope: KeyScope
    subject_id: int
    kind: ResultKind


@dataclass
class CacheKeys:
    """Centralized cache key construction.

    Attributes:
        prefix: Cache key prefix (typically "accessgate:permissions").
    """

    prefix: str

    def render(self, key: CacheKey) -> str:
        """Shared-tier key for an in-process key.

        Pattern: {prefix}:{scope}:{subject_id}:{kind}

        Args:
            key: In-process cache key.

        Returns:
            Cache key string.
        """
        return f"{self.prefix}:{key.scope.value}:{key.subject_id}:{key.kind.value}"

    def subject_pattern(self, scope: KeyScope, subject_id: int) -> str:
        """Pattern matching every kind of one user or role.

        Pattern: {prefix}:{scope}:{subject_id}:*

        Args:
            scope: USER or ROLE.
            subject_id: User or role id.

        Returns:
            Glob pattern string.
        """
        return f"{self.prefix}:{scope.value}:{subject_id}:*"

    def scope_pattern(self, scope: KeyScope) -> str:
        """Pattern matching every entry of a scope.

        Pattern: {prefix}:{scope}:*

        Args:
            scope: USER or ROLE.

        Returns:
            Glob pattern string.
        """
        return f"{self.prefix}:{scope.value}:*"

    def kind_pattern(self, kind: ResultKind) -> str:
        """Pattern matching one result kind across all subjects.

        Pattern: {prefix}:*:{kind}

        Args:
            kind: Result kind.

        Returns:
            Glob pattern string.
        """
        return f"{self.prefix}:*:{kind.value}"

    def all_pattern(self) -> str:
        """Pattern matching every entry under the prefix.

        Returns:
            Glob pattern string.
        """
        return f"{self.prefix}:*"
