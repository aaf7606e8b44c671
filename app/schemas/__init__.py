"""Pydantic schemas for request/response validation."""

from app.schemas.audit_event import AuditEventRead
from app.schemas.notification import (
    MarkAllReadResponse,
    NotificationRead,
    PermissionRequestCreate,
    PermissionRequestResponse,
    UnreadCountRead,
)
from app.schemas.staff_access import (
    StaffAccessDecisionCreate,
    StaffAccessRequestCreate,
    StaffAccessRequestRead,
    StaffAccessStatusRead,
    StaffAccessSubmitResponse,
)

__all__ = [
    "AuditEventRead",
    "NotificationRead",
    "UnreadCountRead",
    "MarkAllReadResponse",
    "PermissionRequestCreate",
    "PermissionRequestResponse",
    "StaffAccessRequestCreate",
    "StaffAccessRequestRead",
    "StaffAccessSubmitResponse",
    "StaffAccessDecisionCreate",
    "StaffAccessStatusRead",
]
