"""Staff access request endpoints."""

from fastapi import APIRouter, HTTPException, Query, status

from app.api.deps import Channel, CurrentAdmin, CurrentIdentity, DbSession
from app.models.staff_approval import ApprovalStatus
from app.schemas.audit_event import AuditEventRead
from app.schemas.staff_access import (
    StaffAccessDecisionCreate,
    StaffAccessRequestCreate,
    StaffAccessRequestRead,
    StaffAccessStatusRead,
    StaffAccessSubmitResponse,
)
from app.services.errors import (
    AlreadyDecidedError,
    DuplicateRequestError,
    ForbiddenError,
    NotFoundError,
    UnsupportedRoleError,
)
from app.services.staff_access import AccessRequestService

router = APIRouter()


@router.post(
    "/requests",
    response_model=StaffAccessSubmitResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_request(
    body: StaffAccessRequestCreate,
    identity: CurrentIdentity,
    db: DbSession,
    channel: Channel,
) -> StaffAccessSubmitResponse:
    """File a staff access request for the caller.

    Every administrator is notified. Roles that role storage cannot hold
    yet are recorded for manual reclassification.
    """
    email = body.email or identity.email
    if not email:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="An email address is required to request staff access.",
        )

    service = AccessRequestService(db, channel)
    try:
        result = await service.submit_request(
            user_id=identity.id,
            email=email,
            full_name=body.full_name,
            requested_role=body.requested_role,
        )
    except DuplicateRequestError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    except UnsupportedRoleError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

    return StaffAccessSubmitResponse(
        request=StaffAccessRequestRead.model_validate(result.request),
        administrators_notified=result.fanout.delivered,
        notification_failures=result.fanout.failures,
    )


@router.get("/status", response_model=StaffAccessStatusRead)
async def get_status(
    identity: CurrentIdentity,
    db: DbSession,
) -> StaffAccessStatusRead:
    """Current staff access status of the caller.

    Clients call this when they (re)connect to the realtime channel.
    """
    service = AccessRequestService(db)
    return StaffAccessStatusRead(status=await service.current_status(identity.id))


@router.get("/requests", response_model=list[StaffAccessRequestRead])
async def list_requests(
    admin: CurrentAdmin,
    db: DbSession,
    status_filter: ApprovalStatus | None = Query(None, alias="status"),
    limit: int = Query(100, ge=1, le=500),
) -> list[StaffAccessRequestRead]:
    """List staff access requests, newest first."""
    service = AccessRequestService(db)
    requests = await service.list_requests(status=status_filter, limit=limit)
    return [StaffAccessRequestRead.model_validate(r) for r in requests]


@router.get("/requests/{request_id}", response_model=StaffAccessRequestRead)
async def get_request(
    request_id: str,
    admin: CurrentAdmin,
    db: DbSession,
) -> StaffAccessRequestRead:
    """Get a single staff access request."""
    request = await AccessRequestService(db).get_request(request_id)
    if request is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Staff access request not found.",
        )
    return StaffAccessRequestRead.model_validate(request)


@router.get("/requests/{request_id}/history", response_model=list[AuditEventRead])
async def get_request_history(
    request_id: str,
    admin: CurrentAdmin,
    db: DbSession,
) -> list[AuditEventRead]:
    """Audit trail of a staff access request."""
    try:
        events = await AccessRequestService(db).get_history(request_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    return [AuditEventRead.model_validate(e) for e in events]


@router.post("/requests/{request_id}/decision", response_model=StaffAccessRequestRead)
async def decide_request(
    request_id: str,
    body: StaffAccessDecisionCreate,
    admin: CurrentAdmin,
    db: DbSession,
    channel: Channel,
) -> StaffAccessRequestRead:
    """Approve or reject a pending request.

    Returns 409 when another administrator has already decided it.
    """
    service = AccessRequestService(db, channel)
    try:
        request = await service.decide(
            request_id=request_id,
            decision=body.decision,
            admin_id=admin.id,
            rejection_reason=body.rejection_reason,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except AlreadyDecidedError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    except ForbiddenError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=e.message)
    except UnsupportedRoleError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

    return StaffAccessRequestRead.model_validate(request)
