"""Permission escalation broker.

Staff who attempt an action their role does not allow can ask the
administrators for it. The request is delivered as a notification to every
administrator and nothing else is tracked: there is no approval record,
and any follow-up happens outside the system.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit_event import ActorType
from app.models.notification import Notification, NotificationCategory
from app.services.audit import write_audit_event
from app.services.errors import EmptyJustificationError, NoAdministratorsError
from app.services.notifications import EntityRef, FanoutResult, NotificationService
from app.services.realtime import RealtimeChannel
from app.services.roles import RoleStore

logger = logging.getLogger(__name__)

ENTITY_TYPE = "request"


class PermissionEscalationService:
    """Routes permission requests to administrators."""

    def __init__(
        self,
        session: AsyncSession,
        channel: RealtimeChannel | None = None,
    ) -> None:
        self.session = session
        self.roles = RoleStore(session)
        self.notifications = NotificationService(session, channel)

    async def request_approval(
        self,
        requester_id: str,
        action_description: str,
        justification: str,
        requester_email: str | None = None,
    ) -> FanoutResult:
        """Ask every administrator to allow an action.

        Raises:
            EmptyJustificationError: If no justification was given
            NoAdministratorsError: If there is nobody to ask
        """
        justification = (justification or "").strip()
        if not justification:
            raise EmptyJustificationError()

        admin_ids = await self.roles.list_admin_ids()
        if not admin_ids:
            raise NoAdministratorsError()

        await write_audit_event(
            session=self.session,
            actor_type=ActorType.USER,
            actor_id=requester_id,
            actor_email=requester_email,
            action="permission_requested",
            action_category="escalation",
            entity_type=ENTITY_TYPE,
            entity_id=requester_id,
            metadata={"action": action_description},
            description=justification,
        )
        await self.session.commit()

        requester = requester_email or "A user"
        fanout = await self.notifications.notify(
            recipients=admin_ids,
            title="Permission Request",
            message=f"{requester} requests to {action_description}. Reason: {justification}",
            category=NotificationCategory.PERMISSION_REQUEST,
            entity_ref=EntityRef(ENTITY_TYPE, requester_id),
        )

        logger.info(
            f"Permission request from {requester_id} sent to "
            f"{fanout.delivered}/{len(admin_ids)} administrators"
        )
        return fanout

    async def list_requests(self, admin_id: str, unread_only: bool = False) -> list[Notification]:
        """Permission requests addressed to an administrator, newest first."""
        return await self.notifications.list_for_recipient(
            admin_id,
            category=NotificationCategory.PERMISSION_REQUEST,
            unread_only=unread_only,
        )
