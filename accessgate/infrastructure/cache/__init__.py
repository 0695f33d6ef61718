"""Cache infrastructure package.

- permission_cache.py: single-flight in-process cache (PermissionCacheProtocol)
- redis_adapter.py: shared tier (CacheProtocol)
- result_codec.py: JSON encoding of resolved views for the shared tier
- cache_keys.py: key construction
- cache_metrics.py: hit/miss counters
"""

from accessgate.infrastructure.cache.cache_keys import CacheKey, CacheKeys
from accessgate.infrastructure.cache.cache_metrics import CacheMetrics
from accessgate.infrastructure.cache.permission_cache import PermissionCache

__all__ = ["CacheKey", "CacheKeys", "CacheMetrics", "PermissionCache"]
