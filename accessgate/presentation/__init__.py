"""Presentation layer - FastAPI/Starlette adapters.

- middleware/permission_preload_middleware.py: warms the cache per request
- middleware/authorization_dependencies.py: require_permission / require_role
"""
