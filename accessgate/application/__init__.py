"""Application layer - Access-check orchestration.

Structure:
- services/permission_resolver.py: uncached resolution over repository ports
- services/access_check_service.py: cached façade used by request handling

The application layer orchestrates domain logic and the cache; storage and
transport details stay in infrastructure and presentation.
"""
