"""Cache metrics protocol for hit/miss tracking.

Infrastructure adapter: accessgate/infrastructure/cache/cache_metrics.py.
Counters are keyed by (scope, kind).
"""

from typing import Any, Protocol

from accessgate.domain.enums import KeyScope, ResultKind


class CacheMetricsProtocol(Protocol):
    """Protocol for tracking cache performance metrics."""

    def record_hit(self, scope: KeyScope, kind: ResultKind) -> None:
        """Record a lookup answered from a live entry."""
        ...

    def record_miss(self, scope: KeyScope, kind: ResultKind) -> None:
        """Record a lookup that started a computation."""
        ...

    def record_error(self, scope: KeyScope, kind: ResultKind) -> None:
        """Record a failed, raising or timed-out computation."""
        ...

    def snapshot(self) -> dict[str, Any]:
        """Overall counters plus per-scope and per-kind breakdowns.

        Returns:
            Dictionary with hits, misses, errors, lookups, hit_rate,
            "scopes" and "kinds".
        """
        ...
