"""Staff access request model.

A request is created when someone registers for staff access and is only
changed by an administrator's decision. Requests are never deleted so the
table doubles as the onboarding audit trail.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Index, String, Text, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin


class ApprovalStatus(str, Enum):
    """Lifecycle of a staff access request."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class StaffAccessStatus(str, Enum):
    """Status reported to a waiting applicant."""

    NONE = "none"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class StaffApprovalRequest(Base, TimestampMixin):
    """Request from a registered identity to be granted a staff role."""

    __tablename__ = "staff_approval_requests"
    __table_args__ = (
        # At most one open request per identity
        Index(
            "uq_staff_approval_requests_pending_user",
            "user_id",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
    )

    user_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        nullable=False,
        index=True,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    full_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    # Role as accepted by role storage
    requested_role: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    # Role the applicant actually asked for, when storage could not hold it
    original_requested_role: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
    )
    role_note: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=ApprovalStatus.PENDING.value,
        nullable=False,
        index=True,
    )

    # Review
    reviewed_by: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        nullable=True,
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    rejection_reason: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    @property
    def needs_reclassification(self) -> bool:
        """True when the stored role differs from what was asked for."""
        return self.original_requested_role is not None

    def to_change_row(self) -> dict:
        """Row shape pushed to realtime subscribers."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "status": self.status,
            "requested_role": self.requested_role,
            "original_requested_role": self.original_requested_role,
            "reviewed_by": self.reviewed_by,
            "reviewed_at": self.reviewed_at.isoformat() if self.reviewed_at else None,
        }

    def __repr__(self) -> str:
        return f"<StaffApprovalRequest {self.email} {self.requested_role} ({self.status})>"
