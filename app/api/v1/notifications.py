"""Notification endpoints for the signed-in user."""

from fastapi import APIRouter, HTTPException, Query, status

from app.api.deps import CurrentIdentity, DbSession
from app.models.notification import NotificationCategory
from app.schemas.notification import MarkAllReadResponse, NotificationRead, UnreadCountRead
from app.services.errors import ForbiddenError, NotFoundError
from app.services.notifications import NotificationService

router = APIRouter()


@router.get("", response_model=list[NotificationRead])
async def list_notifications(
    identity: CurrentIdentity,
    db: DbSession,
    category: NotificationCategory | None = Query(None, alias="type"),
    unread_only: bool = False,
    limit: int = Query(50, ge=1, le=200),
) -> list[NotificationRead]:
    """List the caller's notifications, newest first."""
    service = NotificationService(db)
    notifications = await service.list_for_recipient(
        identity.id,
        category=category,
        unread_only=unread_only,
        limit=limit,
    )
    return [NotificationRead.model_validate(n) for n in notifications]


@router.get("/unread-count", response_model=UnreadCountRead)
async def get_unread_count(
    identity: CurrentIdentity,
    db: DbSession,
) -> UnreadCountRead:
    return UnreadCountRead(unread=await NotificationService(db).unread_count(identity.id))


@router.post("/read-all", response_model=MarkAllReadResponse)
async def mark_all_read(
    identity: CurrentIdentity,
    db: DbSession,
) -> MarkAllReadResponse:
    """Mark every unread notification of the caller read."""
    updated = await NotificationService(db).mark_all_read(identity.id)
    return MarkAllReadResponse(updated=updated)


@router.post("/{notification_id}/read", response_model=NotificationRead)
async def mark_read(
    notification_id: str,
    identity: CurrentIdentity,
    db: DbSession,
) -> NotificationRead:
    """Mark one notification read. Only its recipient may do this."""
    try:
        notification = await NotificationService(db).mark_read(notification_id, identity.id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except ForbiddenError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=e.message)

    return NotificationRead.model_validate(notification)
