"""Database persistence infrastructure.

This module provides:
- Base model for the RBAC tables
- Database connection and session management
- Repository implementations of the RbacRepository port
"""

from accessgate.infrastructure.persistence.base import BaseModel
from accessgate.infrastructure.persistence.database import Database

__all__ = [
    "BaseModel",
    "Database",
]
