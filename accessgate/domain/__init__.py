"""Domain layer - Pure access-control model.

Structure:
- entities/: Role, Permission, Menu and the resolved MenuNode forest
- enums/: Cached result kinds and key scopes
- protocols/: Repository ports, cache and logging ports

The domain layer has NO dependencies on any framework or infrastructure.
"""
