"""accessgate - role-based access control resolution and caching.

Resolves a user's effective permissions and visible menu forest from
user↔role↔permission and role↔menu assignments, and serves the results from
a per-user single-flight cache with explicit invalidation hooks.

Layers:
- core/: Result types, errors, configuration, composition root
- domain/: Entities, enums and protocols (ports)
- application/: Resolver and the access-check façade
- infrastructure/: Cache, logging and persistence adapters
- presentation/: FastAPI/Starlette adapters
"""

__version__ = "0.1.0"
