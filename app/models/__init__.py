"""Database models for the staff workflow service."""

from app.models.appointment import (
    Appointment,
    AppointmentStatus,
    PatientAccount,
    PatientAppointment,
    PatientAppointmentStatus,
)
from app.models.audit_event import ActorType, AuditEvent
from app.models.notification import Notification, NotificationCategory
from app.models.role import AppRole, RoleAssignment
from app.models.staff_approval import (
    ApprovalStatus,
    StaffAccessStatus,
    StaffApprovalRequest,
)

__all__ = [
    # Roles
    "AppRole",
    "RoleAssignment",
    # Staff access
    "StaffApprovalRequest",
    "ApprovalStatus",
    "StaffAccessStatus",
    # Notifications
    "Notification",
    "NotificationCategory",
    # Appointments
    "PatientAppointment",
    "PatientAppointmentStatus",
    "Appointment",
    "AppointmentStatus",
    "PatientAccount",
    # Audit
    "AuditEvent",
    "ActorType",
]
