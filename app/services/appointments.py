"""Polymorphic access to appointments.

An appointment confirmed by phone may be a self-service request or a
staff-scheduled appointment. Each variant knows how to find its rows, change
their status and work out which identity should be told about it, so callers
can treat both tables as one entity type.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.appointment import (
    Appointment,
    AppointmentStatus,
    PatientAccount,
    PatientAppointment,
    PatientAppointmentStatus,
)


@dataclass
class AppointmentRecord:
    """Variant-neutral view of an appointment."""

    id: str
    variant: str
    status: str
    owner_id: str | None = None
    patient_id: str | None = None


class AppointmentVariant(ABC):
    """One storage representation of an appointment."""

    name: str
    confirmed_status: str

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @abstractmethod
    async def find_by_id(self, appointment_id: str) -> AppointmentRecord | None:
        """Load an appointment, or None if this variant does not hold it."""

    @abstractmethod
    async def set_status(self, appointment_id: str, status: str) -> bool:
        """Update the status of a row in place.

        Returns:
            True if a row was changed
        """

    @abstractmethod
    async def resolve_notification_recipient(self, record: AppointmentRecord) -> str | None:
        """Identity to notify about this appointment, if any."""


class SelfServiceAppointments(AppointmentVariant):
    """Appointments patients requested themselves; the owner is stored on the row."""

    name = "self_service"
    confirmed_status = PatientAppointmentStatus.CONFIRMED.value

    async def find_by_id(self, appointment_id: str) -> AppointmentRecord | None:
        row = await self.session.get(
            PatientAppointment, appointment_id, populate_existing=True
        )
        if row is None:
            return None
        return AppointmentRecord(
            id=row.id,
            variant=self.name,
            status=row.status,
            owner_id=row.user_id,
        )

    async def set_status(self, appointment_id: str, status: str) -> bool:
        result = await self.session.execute(
            update(PatientAppointment)
            .where(PatientAppointment.id == appointment_id)
            .values(status=status)
        )
        return result.rowcount > 0

    async def resolve_notification_recipient(self, record: AppointmentRecord) -> str | None:
        return record.owner_id


class ScheduledAppointments(AppointmentVariant):
    """Staff-scheduled appointments; the patient is reached through their account link."""

    name = "scheduled"
    confirmed_status = AppointmentStatus.CONFIRMED.value

    async def find_by_id(self, appointment_id: str) -> AppointmentRecord | None:
        row = await self.session.get(Appointment, appointment_id, populate_existing=True)
        if row is None:
            return None
        return AppointmentRecord(
            id=row.id,
            variant=self.name,
            status=row.status,
            patient_id=row.patient_id,
        )

    async def set_status(self, appointment_id: str, status: str) -> bool:
        result = await self.session.execute(
            update(Appointment)
            .where(Appointment.id == appointment_id)
            .values(status=status)
        )
        return result.rowcount > 0

    async def resolve_notification_recipient(self, record: AppointmentRecord) -> str | None:
        if record.patient_id is None:
            return None
        result = await self.session.execute(
            select(PatientAccount.user_id)
            .where(PatientAccount.patient_id == record.patient_id)
            .limit(1)
        )
        return result.scalar_one_or_none()


def default_variants(session: AsyncSession) -> list[AppointmentVariant]:
    """Variants in probe order."""
    return [
        SelfServiceAppointments(session),
        ScheduledAppointments(session),
    ]
