"""Inbound webhook from the voice-calling platform.

The platform posts call events as JSON. Tool-call events carry a batch of
function calls made by the voice assistant during the call and expect one
result per call; every other event is simply acknowledged.
"""

import json
import logging
from typing import Any

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import Channel, DbSession
from app.services.errors import UpstreamUnavailableError
from app.services.reconciler import AppointmentReconciler

logger = logging.getLogger(__name__)

router = APIRouter()

TOOL_CALLS_EVENT = "tool-calls"


def extract_event_type(body: dict[str, Any]) -> str:
    message = body.get("message")
    if isinstance(message, dict) and message.get("type"):
        return message["type"]
    return body.get("type") or "unknown"


def extract_tool_calls(body: dict[str, Any]) -> list[Any]:
    message = body.get("message")
    if isinstance(message, dict) and message.get("toolCalls"):
        calls = message["toolCalls"]
    else:
        calls = body.get("toolCalls") or []
    return calls if isinstance(calls, list) else []


async def ensure_storage_available(db: AsyncSession) -> None:
    """Fail fast before touching any appointment.

    Raises:
        UpstreamUnavailableError: If the database cannot be reached
    """
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        raise UpstreamUnavailableError() from e


@router.post("/voice")
async def voice_webhook(
    request: Request,
    db: DbSession,
    channel: Channel,
) -> JSONResponse:
    """Handle a voice platform event."""
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        body = None
    if not isinstance(body, dict):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Request body must be a JSON object"},
        )

    event_type = extract_event_type(body)
    logger.info(f"Received voice webhook: {event_type}")

    if event_type != TOOL_CALLS_EVENT and "toolCalls" not in body:
        return JSONResponse(content={"received": True})

    try:
        await ensure_storage_available(db)
    except UpstreamUnavailableError as e:
        logger.exception("Voice webhook rejected: storage unavailable")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": e.message},
        )

    reconciler = AppointmentReconciler(db, channel=channel)
    results = await reconciler.process_tool_calls(extract_tool_calls(body))
    return JSONResponse(content={"results": [r.to_response() for r in results]})
