"""Staff access request workflow.

A newly registered staff member files one request for a role. The request
stays pending until an administrator approves or rejects it; approval
creates the role assignment in the same transaction as the status change.

States: none -> pending -> approved | rejected. Decided requests are final.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.db.base import utc_now
from app.models.audit_event import ActorType, AuditEvent
from app.models.notification import NotificationCategory
from app.models.staff_approval import (
    ApprovalStatus,
    StaffAccessStatus,
    StaffApprovalRequest,
)
from app.services.audit import AuditService, write_audit_event
from app.services.errors import (
    AlreadyDecidedError,
    DuplicateRequestError,
    ForbiddenError,
    NotFoundError,
    UnsupportedRoleError,
)
from app.services.notifications import EntityRef, FanoutResult, NotificationService
from app.services.realtime import ChangeEvent, RealtimeChannel, realtime_channel
from app.services.roles import RoleCompatibilityShim, RoleStore
from app.utils.ids import is_valid_uuid

logger = logging.getLogger(__name__)

REQUESTS_TABLE = StaffApprovalRequest.__tablename__
ENTITY_TYPE = "staff_request"


class Decision(str, Enum):
    """Administrator decision on a request."""

    APPROVE = "approve"
    REJECT = "reject"


@dataclass
class SubmissionResult:
    """A newly created request and the outcome of notifying administrators."""

    request: StaffApprovalRequest
    fanout: FanoutResult


class AccessRequestService:
    """Service for filing and deciding staff access requests."""

    def __init__(
        self,
        session: AsyncSession,
        channel: RealtimeChannel | None = None,
        shim: RoleCompatibilityShim | None = None,
    ) -> None:
        self.session = session
        self.channel = channel or realtime_channel
        self.shim = shim or RoleCompatibilityShim()
        self.roles = RoleStore(session)
        self.notifications = NotificationService(session, self.channel)

    async def get_request(self, request_id: str) -> StaffApprovalRequest | None:
        if not is_valid_uuid(request_id):
            return None
        result = await self.session.execute(
            select(StaffApprovalRequest)
            .where(StaffApprovalRequest.id == request_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_pending_request(self, user_id: str) -> StaffApprovalRequest | None:
        result = await self.session.execute(
            select(StaffApprovalRequest)
            .where(StaffApprovalRequest.user_id == user_id)
            .where(StaffApprovalRequest.status == ApprovalStatus.PENDING.value)
        )
        return result.scalar_one_or_none()

    async def get_latest_request(self, user_id: str) -> StaffApprovalRequest | None:
        result = await self.session.execute(
            select(StaffApprovalRequest)
            .where(StaffApprovalRequest.user_id == user_id)
            .order_by(StaffApprovalRequest.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def submit_request(
        self,
        user_id: str,
        email: str,
        full_name: str,
        requested_role: str,
    ) -> SubmissionResult:
        """File a staff access request and notify every administrator.

        Args:
            user_id: Identity of the applicant
            email: Applicant email
            full_name: Applicant display name
            requested_role: Role chosen at registration

        Returns:
            SubmissionResult with the pending request and fanout outcome

        Raises:
            UnsupportedRoleError: If the role is not offered at registration
            DuplicateRequestError: If a request is pending or a role is held
        """
        if requested_role not in settings.requestable_roles:
            raise UnsupportedRoleError(
                f"'{requested_role}' is not a role you can request. "
                f"Choose one of: {', '.join(settings.requestable_roles)}."
            )

        if await self.roles.get_role(user_id) is not None:
            raise DuplicateRequestError("This account already has staff access.")

        if await self.get_pending_request(user_id) is not None:
            raise DuplicateRequestError()

        coercion = self.shim.coerce(requested_role)
        display_name = full_name
        if coercion.coerced:
            display_name = f"{full_name} ({coercion.note})"

        request = StaffApprovalRequest(
            user_id=user_id,
            email=email,
            full_name=display_name,
            requested_role=coercion.stored_role,
            original_requested_role=coercion.requested_role if coercion.coerced else None,
            role_note=coercion.note,
            status=ApprovalStatus.PENDING.value,
        )
        self.session.add(request)

        try:
            await self.session.flush()
            await write_audit_event(
                session=self.session,
                actor_type=ActorType.USER,
                actor_id=user_id,
                actor_email=email,
                action="staff_access_requested",
                action_category="staff_access",
                entity_type=ENTITY_TYPE,
                entity_id=request.id,
                metadata={
                    "requested_role": requested_role,
                    "stored_role": coercion.stored_role,
                },
            )
            await self.session.commit()
        except IntegrityError:
            # Lost a race with a concurrent submission for the same identity
            await self.session.rollback()
            raise DuplicateRequestError()

        logger.info(f"Staff access request {request.id} filed for {requested_role}")

        message = f"{full_name} ({email}) has requested {requested_role} access."
        if coercion.coerced:
            message += (
                f" The role was recorded as {coercion.stored_role}; "
                f"manual reclassification to {requested_role} is required."
            )

        admin_ids = await self.roles.list_admin_ids()
        if not admin_ids:
            logger.warning(f"No administrators to review staff access request {request.id}")

        fanout = await self.notifications.notify(
            recipients=admin_ids,
            title="New Staff Access Request",
            message=message,
            category=NotificationCategory.APPROVAL_REQUEST,
            entity_ref=EntityRef(ENTITY_TYPE, request.id),
        )
        if fanout.failures:
            # A rolled back notification write expires loaded rows
            await self.session.refresh(request)

        return SubmissionResult(request=request, fanout=fanout)

    async def decide(
        self,
        request_id: str,
        decision: Decision,
        admin_id: str,
        rejection_reason: str | None = None,
    ) -> StaffApprovalRequest:
        """Approve or reject a pending request.

        The status change is a conditional update on the pending state, so
        when two administrators decide at once exactly one succeeds.

        Raises:
            ForbiddenError: If the actor is not an administrator
            NotFoundError: If the request does not exist
            AlreadyDecidedError: If the request is no longer pending
        """
        if not await self.roles.is_admin(admin_id):
            raise ForbiddenError("Only administrators can decide staff access requests.")

        if not is_valid_uuid(request_id):
            raise NotFoundError("Staff access request not found.")

        new_status = (
            ApprovalStatus.APPROVED if decision == Decision.APPROVE else ApprovalStatus.REJECTED
        )
        result = await self.session.execute(
            update(StaffApprovalRequest)
            .where(StaffApprovalRequest.id == request_id)
            .where(StaffApprovalRequest.status == ApprovalStatus.PENDING.value)
            .values(
                status=new_status.value,
                reviewed_by=admin_id,
                reviewed_at=utc_now(),
                rejection_reason=rejection_reason if decision == Decision.REJECT else None,
            )
        )

        if result.rowcount == 0:
            await self.session.rollback()
            if await self.get_request(request_id) is None:
                raise NotFoundError("Staff access request not found.")
            raise AlreadyDecidedError()

        request = await self.get_request(request_id)

        try:
            if decision == Decision.APPROVE:
                await self.roles.assign_role(
                    request.user_id,
                    request.requested_role,
                    granted_by=admin_id,
                )
            await write_audit_event(
                session=self.session,
                actor_type=ActorType.ADMIN,
                actor_id=admin_id,
                action=f"staff_access_{new_status.value}",
                action_category="staff_access",
                entity_type=ENTITY_TYPE,
                entity_id=request.id,
                metadata={
                    "role": request.requested_role,
                    "original_requested_role": request.original_requested_role,
                    "rejection_reason": rejection_reason,
                },
            )
            await self.session.commit()
        except UnsupportedRoleError:
            await self.session.rollback()
            raise

        logger.info(f"Staff access request {request.id} {new_status.value} by {admin_id}")

        await self.channel.publish(
            ChangeEvent(
                table=REQUESTS_TABLE,
                operation="UPDATE",
                new_row=request.to_change_row(),
            )
        )

        if decision == Decision.APPROVE:
            title = "Staff Access Approved"
            body = f"Your request for {request.requested_role} access has been approved."
            category = NotificationCategory.SUCCESS
        else:
            title = "Staff Access Rejected"
            body = "Your staff access request has been rejected."
            if rejection_reason:
                body += f" Reason: {rejection_reason}"
            category = NotificationCategory.ERROR

        fanout = await self.notifications.notify(
            recipients=[request.user_id],
            title=title,
            message=body,
            category=category,
            entity_ref=EntityRef(ENTITY_TYPE, request.id),
        )
        if fanout.failures:
            await self.session.refresh(request)

        return request

    async def current_status(self, user_id: str) -> StaffAccessStatus:
        """Status to show an applicant who is waiting for a decision."""
        if await self.roles.get_role(user_id) is not None:
            return StaffAccessStatus.APPROVED

        latest = await self.get_latest_request(user_id)
        if latest is None:
            return StaffAccessStatus.NONE
        return StaffAccessStatus(latest.status)

    async def list_requests(
        self,
        status: ApprovalStatus | None = None,
        limit: int = 100,
    ) -> list[StaffApprovalRequest]:
        """List requests for administrators, newest first."""
        query = (
            select(StaffApprovalRequest)
            .order_by(StaffApprovalRequest.created_at.desc())
            .limit(limit)
        )
        if status is not None:
            query = query.where(StaffApprovalRequest.status == status.value)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_history(self, request_id: str) -> list[AuditEvent]:
        """Audit trail of a request, newest first.

        Raises:
            NotFoundError: If the request does not exist
        """
        if await self.get_request(request_id) is None:
            raise NotFoundError("Staff access request not found.")
        return await AuditService(self.session).get_entity_history(ENTITY_TYPE, request_id)
