"""Hit/miss/error counters for the permission cache.

Counters are kept per (scope, kind) cell, so the same tracker answers
"how is the menu tree doing for users?" as well as the aggregate rows the
statistics endpoint reports (per kind, per scope, overall).

Usage:
    metrics = CacheMetrics()
    metrics.record_hit(KeyScope.USER, ResultKind.PERMISSIONS)
    metrics.get_stats(kind=ResultKind.PERMISSIONS)["hits"]  # 1
"""

from collections import Counter
from threading import Lock
from typing import Any

from accessgate.domain.enums import KeyScope, ResultKind

_Cell = tuple[KeyScope, ResultKind]


def _summarize(hits: int, misses: int, errors: int) -> dict[str, Any]:
    lookups = hits + misses
    return {
        "hits": hits,
        "misses": misses,
        "errors": errors,
        "lookups": lookups,
        "hit_rate": round(hits / lookups, 4) if lookups else 0.0,
    }


class CacheMetrics:
    """Thread-safe counters keyed by (scope, kind).

    A lock guards the counters so several event loops (one per worker
    thread) may share one tracker.
    """

    def __init__(self) -> None:
        self._hits: Counter[_Cell] = Counter()
        self._misses: Counter[_Cell] = Counter()
        self._errors: Counter[_Cell] = Counter()
        self._lock = Lock()

    def record_hit(self, scope: KeyScope, kind: ResultKind) -> None:
        """Record a lookup answered from a live entry."""
        with self._lock:
            self._hits[(scope, kind)] += 1

    def record_miss(self, scope: KeyScope, kind: ResultKind) -> None:
        """Record a lookup that started a computation."""
        with self._lock:
            self._misses[(scope, kind)] += 1

    def record_error(self, scope: KeyScope, kind: ResultKind) -> None:
        """Record a computation that failed, raised or timed out."""
        with self._lock:
            self._errors[(scope, kind)] += 1

    def get_stats(
        self,
        *,
        scope: KeyScope | None = None,
        kind: ResultKind | None = None,
    ) -> dict[str, Any]:
        """Aggregate counters over the cells matching the filters.

        Args:
            scope: Restrict to one scope (None = both).
            kind: Restrict to one result kind (None = all).

        Returns:
            Dictionary with hits, misses, errors, lookups, hit_rate.
        """
        with self._lock:
            return self._aggregate(scope, kind)

    def snapshot(self) -> dict[str, Any]:
        """All aggregates at once, taken under a single lock.

        Returns:
            Overall counters plus "scopes" (user/role) and "kinds" breakdowns.
            Kinds never looked up are omitted from "kinds".
        """
        with self._lock:
            seen = {cell[1] for cell in (*self._hits, *self._misses, *self._errors)}
            return {
                **self._aggregate(None, None),
                "scopes": {
                    scope.value: self._aggregate(scope, None) for scope in KeyScope
                },
                "kinds": {
                    kind.value: self._aggregate(None, kind)
                    for kind in ResultKind
                    if kind in seen
                },
            }

    def reset(self) -> None:
        """Zero every counter."""
        with self._lock:
            self._hits.clear()
            self._misses.clear()
            self._errors.clear()

    def _aggregate(
        self, scope: KeyScope | None, kind: ResultKind | None
    ) -> dict[str, Any]:
        def total(counter: Counter[_Cell]) -> int:
            return sum(
                count
                for (cell_scope, cell_kind), count in counter.items()
                if (scope is None or cell_scope is scope)
                and (kind is None or cell_kind is kind)
            )

        return _summarize(total(self._hits), total(self._misses), total(self._errors))
