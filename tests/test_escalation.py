"""Tests for permission escalation to administrators."""

from uuid import uuid4

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit_event import AuditEvent
from app.models.notification import Notification, NotificationCategory
from app.services.errors import EmptyJustificationError, NoAdministratorsError
from app.services.escalation import PermissionEscalationService
from app.services.realtime import RealtimeChannel


@pytest.mark.asyncio
async def test_every_admin_receives_the_request(
    async_session: AsyncSession,
    channel: RealtimeChannel,
    admin_id: str,
    second_admin_id: str,
) -> None:
    service = PermissionEscalationService(async_session, channel)
    requester = str(uuid4())

    fanout = await service.request_approval(
        requester_id=requester,
        action_description="delete patient records",
        justification="Duplicate record created at intake",
        requester_email="nurse@medicare.local",
    )

    assert fanout.delivered == 2
    notifications = (await async_session.execute(select(Notification))).scalars().all()
    assert {n.user_id for n in notifications} == {admin_id, second_admin_id}
    for notification in notifications:
        assert notification.category == NotificationCategory.PERMISSION_REQUEST.value
        assert notification.entity_type == "request"
        assert notification.entity_id == requester
        assert notification.message == (
            "nurse@medicare.local requests to delete patient records. "
            "Reason: Duplicate record created at intake"
        )


@pytest.mark.asyncio
async def test_anonymous_requester_wording(
    async_session: AsyncSession,
    channel: RealtimeChannel,
    admin_id: str,
) -> None:
    service = PermissionEscalationService(async_session, channel)

    await service.request_approval(
        requester_id=str(uuid4()),
        action_description="edit billing",
        justification="Month-end close",
    )

    notification = (await async_session.execute(select(Notification))).scalar_one()
    assert notification.message.startswith("A user requests to edit billing.")


@pytest.mark.asyncio
@pytest.mark.parametrize("justification", ["", "   "])
async def test_blank_justification_is_rejected(
    async_session: AsyncSession,
    channel: RealtimeChannel,
    admin_id: str,
    justification: str,
) -> None:
    service = PermissionEscalationService(async_session, channel)

    with pytest.raises(EmptyJustificationError):
        await service.request_approval(str(uuid4()), "delete patient records", justification)

    assert (await async_session.execute(select(Notification))).scalars().all() == []


@pytest.mark.asyncio
async def test_no_administrators(async_session: AsyncSession, channel: RealtimeChannel) -> None:
    service = PermissionEscalationService(async_session, channel)

    with pytest.raises(NoAdministratorsError):
        await service.request_approval(str(uuid4()), "delete patient records", "Needed")


@pytest.mark.asyncio
async def test_request_is_audited(
    async_session: AsyncSession,
    channel: RealtimeChannel,
    admin_id: str,
) -> None:
    service = PermissionEscalationService(async_session, channel)
    requester = str(uuid4())

    await service.request_approval(requester, "export reports", "Quarterly review")

    event = (await async_session.execute(select(AuditEvent))).scalar_one()
    assert event.action == "permission_requested"
    assert event.entity_id == requester
    assert event.description == "Quarterly review"


@pytest.mark.asyncio
async def test_admin_lists_only_own_permission_requests(
    async_session: AsyncSession,
    channel: RealtimeChannel,
    admin_id: str,
    second_admin_id: str,
) -> None:
    service = PermissionEscalationService(async_session, channel)
    await service.request_approval(str(uuid4()), "export reports", "Quarterly review")
    await service.notifications.notify([admin_id], title="Other", message="Not an escalation")

    requests = await service.list_requests(admin_id)

    assert len(requests) == 1
    assert requests[0].user_id == admin_id
    assert requests[0].category == NotificationCategory.PERMISSION_REQUEST.value
