"""Staff access request schemas."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from app.models.staff_approval import ApprovalStatus, StaffAccessStatus
from app.services.staff_access import Decision


class StaffAccessRequestCreate(BaseModel):
    """Schema for filing a staff access request."""

    full_name: str = Field(min_length=1, max_length=200)
    requested_role: str = Field(min_length=1, max_length=50)
    # Falls back to the token's email claim
    email: EmailStr | None = None


class StaffAccessRequestRead(BaseModel):
    """Schema for reading a staff access request."""

    id: str
    user_id: str
    email: str
    full_name: str
    requested_role: str
    original_requested_role: str | None
    role_note: str | None
    # Stored role differs from the one asked for
    needs_reclassification: bool
    status: ApprovalStatus
    reviewed_by: str | None
    reviewed_at: datetime | None
    rejection_reason: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class StaffAccessSubmitResponse(BaseModel):
    """Response after filing a request."""

    request: StaffAccessRequestRead
    administrators_notified: int
    notification_failures: int


class StaffAccessDecisionCreate(BaseModel):
    """Administrator decision on a request."""

    decision: Decision
    rejection_reason: str | None = Field(None, max_length=2000)


class StaffAccessStatusRead(BaseModel):
    """Status shown to a waiting applicant."""

    status: StaffAccessStatus
