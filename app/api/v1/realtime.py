"""Realtime status channel over WebSocket.

A client waiting for a staff access decision connects here. It first
receives a snapshot of its current status, then every committed change to
its own request and every notification addressed to it, for as long as the
socket stays open.
"""

import asyncio
import logging

from fastapi import APIRouter, Query, WebSocket, status
from fastapi.websockets import WebSocketDisconnect

from app.api.deps import Channel, DbSession, identity_from_token
from app.core.config import settings
from app.core.security import decode_access_token
from app.models.notification import Notification
from app.models.staff_approval import StaffApprovalRequest
from app.services.realtime import ChangeEvent
from app.services.staff_access import AccessRequestService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/staff-access")
async def staff_access_channel(
    websocket: WebSocket,
    db: DbSession,
    channel: Channel,
    token: str | None = Query(None),
) -> None:
    """Stream staff access changes for the authenticated caller."""
    identity = identity_from_token(decode_access_token(token) if token else None)
    if identity is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()

    # Publishers only enqueue; the socket is written by this connection's sender
    outbox: asyncio.Queue[dict] = asyncio.Queue(maxsize=settings.realtime_client_queue_size)

    def forward(event: ChangeEvent) -> None:
        try:
            outbox.put_nowait(event.to_message())
        except asyncio.QueueFull:
            logger.warning(f"Realtime client {identity.id} is lagging; dropped {event.table} event")

    async def drain() -> None:
        while True:
            message = await outbox.get()
            await websocket.send_json(message)

    def is_own_row(row: dict) -> bool:
        return row.get("user_id") == identity.id

    subscriptions = [
        channel.subscribe(
            StaffApprovalRequest.__tablename__,
            forward,
            predicate=is_own_row,
            operations={"UPDATE"},
        ),
        channel.subscribe(
            Notification.__tablename__,
            forward,
            predicate=is_own_row,
            operations={"INSERT"},
        ),
    ]
    sender: asyncio.Task | None = None
    try:
        # Subscribe before the snapshot so no change falls between the two
        current = await AccessRequestService(db, channel).current_status(identity.id)
        await websocket.send_json({"type": "snapshot", "status": current.value})
        sender = asyncio.create_task(drain())
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug(f"Realtime client {identity.id} disconnected")
    finally:
        for subscription in subscriptions:
            subscription.release()
        if sender is not None:
            sender.cancel()
