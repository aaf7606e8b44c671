"""Permission escalation endpoints."""

from fastapi import APIRouter, HTTPException, status

from app.api.deps import Channel, CurrentAdmin, CurrentIdentity, DbSession
from app.schemas.notification import (
    NotificationRead,
    PermissionRequestCreate,
    PermissionRequestResponse,
)
from app.services.errors import EmptyJustificationError, NoAdministratorsError
from app.services.escalation import PermissionEscalationService

router = APIRouter()


@router.post(
    "",
    response_model=PermissionRequestResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def request_permission(
    body: PermissionRequestCreate,
    identity: CurrentIdentity,
    db: DbSession,
    channel: Channel,
) -> PermissionRequestResponse:
    """Ask the administrators to allow an action.

    Administrators are notified; nothing further is tracked.
    """
    service = PermissionEscalationService(db, channel)
    try:
        fanout = await service.request_approval(
            requester_id=identity.id,
            action_description=body.action_description,
            justification=body.justification,
            requester_email=identity.email,
        )
    except EmptyJustificationError as e:
        raise HTTPException(status_code=422, detail=e.message)
    except NoAdministratorsError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)

    return PermissionRequestResponse(
        administrators_notified=fanout.delivered,
        notification_failures=fanout.failures,
    )


@router.get("", response_model=list[NotificationRead])
async def list_permission_requests(
    admin: CurrentAdmin,
    db: DbSession,
    unread_only: bool = False,
) -> list[NotificationRead]:
    """Permission requests addressed to the calling administrator."""
    service = PermissionEscalationService(db)
    notifications = await service.list_requests(admin.id, unread_only=unread_only)
    return [NotificationRead.model_validate(n) for n in notifications]
