"""Business logic services."""

from app.services.audit import AuditService, write_audit_event
from app.services.escalation import PermissionEscalationService
from app.services.notifications import EntityRef, FanoutResult, NotificationService
from app.services.realtime import ChangeEvent, RealtimeChannel, Subscription
from app.services.reconciler import AppointmentReconciler
from app.services.roles import RoleCompatibilityShim, RoleStore
from app.services.staff_access import AccessRequestService, Decision

__all__ = [
    "AuditService",
    "write_audit_event",
    "RoleStore",
    "RoleCompatibilityShim",
    "AccessRequestService",
    "Decision",
    "PermissionEscalationService",
    "NotificationService",
    "EntityRef",
    "FanoutResult",
    "RealtimeChannel",
    "ChangeEvent",
    "Subscription",
    "AppointmentReconciler",
]
