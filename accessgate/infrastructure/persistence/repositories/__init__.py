"""Repository implementations (adapters for hexagonal architecture).

Concrete implementations of the RbacRepository port.
"""

from accessgate.infrastructure.persistence.repositories.rbac_repository import (
    SQLAlchemyRbacRepository,
)

__all__ = ["SQLAlchemyRbacRepository"]
