"""Base model for all RBAC tables.

Following hexagonal architecture:
- This is an infrastructure concern (database implementation detail)
- Domain entities (Role, Permission, Menu) do NOT inherit from this
- Repositories map models to domain entities

Usage:
    class RoleModel(BaseModel):
        __tablename__ = "roles"
        name: Mapped[str]
        # Has: id, created_at
"""

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Integer, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class BaseModel(DeclarativeBase):
    """Base class for all database models.

    Provides common fields:
    - id: Integer primary key (auto-increment)
    - created_at: Timestamp when record was created (UTC)

    Assignment tables (user_roles, role_permissions, menu_roles) also get a
    surrogate id; their natural key is enforced by a unique constraint.
    """

    __abstract__ = True

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),  # Database sets this on INSERT
    )

    def __repr__(self) -> str:
        """String representation for debugging.

        Returns:
            str: String showing class name and ID.
        """
        return f"<{self.__class__.__name__}(id={self.id})>"

    def to_dict(self) -> dict[str, Any]:
        """Convert model to dictionary (for debugging/logging).

        Returns:
            dict: Dictionary representation of the model.
        """
        return {
            "id": self.id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
