"""Appointment confirmation from voice-call tool calls.

The voice assistant reports the outcome of a call as a batch of tool calls.
Each call is handled on its own: one bad call never stops the rest of the
batch, and the caller gets exactly one result per call, in order.
"""

import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit_event import ActorType
from app.models.notification import NotificationCategory
from app.services.appointments import AppointmentVariant, default_variants
from app.services.audit import write_audit_event
from app.services.notifications import EntityRef, NotificationService
from app.services.realtime import RealtimeChannel
from app.utils.ids import is_valid_uuid

logger = logging.getLogger(__name__)

CONFIRMED_MESSAGE = "Appointment confirmed successfully. Database updated."
NOT_FOUND_MESSAGE = "Could not find appointment with that ID to confirm."
MISSING_ID_MESSAGE = "Error: Missing appointmentId"
INVALID_ARGUMENTS_MESSAGE = "Error: Could not read the tool call arguments"
STORAGE_ERROR_MESSAGE = "Error: The appointment could not be updated. Please try again later."
RESCHEDULE_MESSAGE = "Reschedule request noted. A staff member will call back."
UNEXPECTED_ERROR_MESSAGE = "Error: The request could not be completed."


class ConfirmationOutcome(str, Enum):
    CONFIRMED = "confirmed"
    NOT_FOUND = "not_found"


class ToolCallStatus(str, Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    ERROR = "error"
    UNHANDLED = "unhandled"


@dataclass
class ToolCallResult:
    """Result for one tool call, correlated by the caller's call id."""

    call_id: str | None
    result: str
    status: ToolCallStatus = ToolCallStatus.OK

    def to_response(self) -> dict[str, Any]:
        return {"toolCallId": self.call_id, "result": self.result}


class InvalidToolArgumentsError(Exception):
    """Raised when tool call arguments cannot be parsed."""

    pass


def parse_arguments(raw: Any) -> dict[str, Any]:
    """Decode tool call arguments, which may arrive as a JSON string.

    Raises:
        InvalidToolArgumentsError: If the arguments are not a JSON object
    """
    if raw is None:
        return {}
    if isinstance(raw, str):
        if not raw.strip():
            return {}
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise InvalidToolArgumentsError(str(e)) from e
    if not isinstance(raw, dict):
        raise InvalidToolArgumentsError(f"expected an object, got {type(raw).__name__}")
    return raw


ToolHandler = Callable[[str | None, dict[str, Any]], Awaitable[ToolCallResult]]


class AppointmentReconciler:
    """Applies voice-assistant tool calls to appointments."""

    def __init__(
        self,
        session: AsyncSession,
        variants: list[AppointmentVariant] | None = None,
        channel: RealtimeChannel | None = None,
    ) -> None:
        self.session = session
        self.variants = variants if variants is not None else default_variants(session)
        self.notifications = NotificationService(session, channel)
        self.handlers: dict[str, ToolHandler] = {
            "confirmAppointment": self._handle_confirm,
            "rescheduleAppointment": self._handle_reschedule,
        }

    async def confirm(self, appointment_id: str) -> ConfirmationOutcome:
        """Confirm an appointment held by whichever variant has it.

        Variants are probed in order; the first one whose update changes a
        row wins. The patient is notified when they can be identified.
        """
        if not is_valid_uuid(appointment_id):
            return ConfirmationOutcome.NOT_FOUND

        for variant in self.variants:
            if not await variant.set_status(appointment_id, variant.confirmed_status):
                continue

            record = await variant.find_by_id(appointment_id)
            recipient = await variant.resolve_notification_recipient(record)

            await write_audit_event(
                session=self.session,
                actor_type=ActorType.VOICE_AGENT,
                actor_id=None,
                action="appointment_confirmed",
                action_category="appointment",
                entity_type="appointment",
                entity_id=appointment_id,
                metadata={"variant": variant.name, "notified": recipient},
            )
            await self.session.commit()
            logger.info(f"Appointment {appointment_id} confirmed in {variant.name}")

            if recipient:
                await self.notifications.notify(
                    recipients=[recipient],
                    title="Appointment Confirmed",
                    message="Your appointment has been confirmed via call.",
                    category=NotificationCategory.SUCCESS,
                    entity_ref=EntityRef("appointment", appointment_id),
                )
            else:
                logger.info(f"No patient account linked to appointment {appointment_id}")

            return ConfirmationOutcome.CONFIRMED

        logger.info(f"Appointment {appointment_id} not found in any store")
        return ConfirmationOutcome.NOT_FOUND

    async def reschedule(self, appointment_id: str) -> str:
        """Acknowledge a reschedule request.

        Nothing is stored; staff follow up by phone.
        """
        logger.info(f"Reschedule requested for appointment {appointment_id}")
        return RESCHEDULE_MESSAGE

    async def _handle_confirm(self, call_id: str | None, args: dict[str, Any]) -> ToolCallResult:
        appointment_id = args.get("appointmentId")
        if not appointment_id:
            return ToolCallResult(call_id, MISSING_ID_MESSAGE, ToolCallStatus.ERROR)

        outcome = await self.confirm(str(appointment_id))
        if outcome == ConfirmationOutcome.CONFIRMED:
            return ToolCallResult(call_id, CONFIRMED_MESSAGE)
        return ToolCallResult(call_id, NOT_FOUND_MESSAGE, ToolCallStatus.NOT_FOUND)

    async def _handle_reschedule(self, call_id: str | None, args: dict[str, Any]) -> ToolCallResult:
        appointment_id = args.get("appointmentId")
        if not appointment_id:
            return ToolCallResult(call_id, MISSING_ID_MESSAGE, ToolCallStatus.ERROR)
        return ToolCallResult(call_id, await self.reschedule(str(appointment_id)))

    async def process_tool_call(self, call: dict[str, Any]) -> ToolCallResult:
        """Handle a single tool call without raising."""
        call_id = call.get("id") if isinstance(call, dict) else None
        function = call.get("function") if isinstance(call, dict) else None
        if not isinstance(function, dict):
            return ToolCallResult(call_id, "Error: Missing function", ToolCallStatus.ERROR)

        name = function.get("name")
        handler = self.handlers.get(name) if isinstance(name, str) else None
        if handler is None:
            logger.warning(f"Unhandled tool call {name!r}", extra={"tool_call_id": call_id})
            return ToolCallResult(
                call_id,
                f"Tool '{name}' is not handled.",
                ToolCallStatus.UNHANDLED,
            )

        try:
            args = parse_arguments(function.get("arguments"))
        except InvalidToolArgumentsError as e:
            logger.warning(f"Invalid arguments for {name}: {e}", extra={"tool_call_id": call_id})
            return ToolCallResult(call_id, INVALID_ARGUMENTS_MESSAGE, ToolCallStatus.ERROR)

        logger.info(f"Processing tool call {name}", extra={"tool_call_id": call_id})
        try:
            return await handler(call_id, args)
        except SQLAlchemyError:
            await self.session.rollback()
            logger.exception(f"Storage error in {name}", extra={"tool_call_id": call_id})
            return ToolCallResult(call_id, STORAGE_ERROR_MESSAGE, ToolCallStatus.ERROR)
        except Exception:
            # Failures stay confined to this call
            await self.session.rollback()
            logger.exception(f"Tool call {name} failed", extra={"tool_call_id": call_id})
            return ToolCallResult(call_id, UNEXPECTED_ERROR_MESSAGE, ToolCallStatus.ERROR)

    async def process_tool_calls(self, calls: list[dict[str, Any]]) -> list[ToolCallResult]:
        """Handle a batch of tool calls, one result per call in input order."""
        results = []
        for call in calls:
            results.append(await self.process_tool_call(call))
        return results
