"""Domain protocols (ports) package.

Infrastructure adapters implement these protocols without inheritance.

Usage:
    from accessgate.domain.protocols import RbacRepository, LoggerProtocol
"""

from accessgate.domain.protocols.cache_metrics_protocol import CacheMetricsProtocol
from accessgate.domain.protocols.cache_protocol import CacheProtocol
from accessgate.domain.protocols.logger_protocol import LoggerProtocol
from accessgate.domain.protocols.permission_cache_protocol import (
    PermissionCacheProtocol,
)
from accessgate.domain.protocols.rbac_repository import (
    PermissionQuerySupport,
    RbacRepository,
)

__all__ = [
    "CacheMetricsProtocol",
    "CacheProtocol",
    "LoggerProtocol",
    "PermissionCacheProtocol",
    "PermissionQuerySupport",
    "RbacRepository",
]
