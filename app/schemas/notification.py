"""Notification and permission escalation schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class NotificationRead(BaseModel):
    """Schema for reading a notification.

    Field names match the stored columns; ``type`` is the category tag.
    """

    id: str
    user_id: str
    title: str
    message: str
    type: str = Field(validation_alias="category")
    entity_type: str | None
    entity_id: str | None
    is_read: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class UnreadCountRead(BaseModel):
    unread: int


class MarkAllReadResponse(BaseModel):
    updated: int


class PermissionRequestCreate(BaseModel):
    """Request for an action the caller's role does not allow."""

    action_description: str = Field(min_length=1, max_length=500)
    justification: str = Field(max_length=2000)


class PermissionRequestResponse(BaseModel):
    """Outcome of routing a permission request to administrators."""

    administrators_notified: int
    notification_failures: int
