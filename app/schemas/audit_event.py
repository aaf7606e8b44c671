"""Audit event schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class AuditEventRead(BaseModel):
    """Schema for reading audit event data."""

    id: str
    actor_type: str
    actor_id: str | None
    actor_email: str | None
    action: str
    action_category: str | None
    entity_type: str
    entity_id: str | None
    metadata: dict[str, Any] | None = Field(None, validation_alias="event_metadata")
    description: str | None
    created_at: datetime

    model_config = {"from_attributes": True}
