"""Role assignment model: the authority for who is staff."""

from enum import Enum

from sqlalchemy import String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin


class AppRole(str, Enum):
    """Operational roles known to the application."""

    ADMIN = "admin"
    DOCTOR = "doctor"
    NURSE = "nurse"
    RECEPTIONIST = "receptionist"
    CASHIER = "cashier"


class RoleAssignment(Base, TimestampMixin):
    """Role granted to an identity.

    Existence of a row is the sole authority for "is staff". Rows are
    created when an administrator approves a staff access request.
    """

    __tablename__ = "user_roles"

    user_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        unique=True,
        nullable=False,
        index=True,
    )
    role: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
    )
    # Admin who approved the grant (null for bootstrap seeding)
    granted_by: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<RoleAssignment {self.user_id} ({self.role})>"
