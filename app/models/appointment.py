"""Appointment models.

Appointments live in two differently shaped tables: requests patients book
themselves and appointments scheduled by staff. Voice-call confirmation
treats both as one entity type.
"""

from datetime import date, time
from enum import Enum

from sqlalchemy import Date, Integer, String, Text, Time
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin


class PatientAppointmentStatus(str, Enum):
    """Status of a self-service appointment request."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class AppointmentStatus(str, Enum):
    """Status of a staff-scheduled appointment."""

    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class PatientAppointment(Base, TimestampMixin):
    """Appointment requested by a patient through self-service booking.

    The owning identity is stored directly, so the patient to notify is
    always known.
    """

    __tablename__ = "patient_appointments"

    user_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        nullable=False,
        index=True,
    )
    doctor_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        nullable=True,
    )
    department_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        nullable=True,
    )

    # Contact details as entered by the patient
    patient_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    patient_phone: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
    )
    patient_email: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    preferred_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )
    # Free-form slot label, e.g. "morning" or "14:30"
    preferred_time: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
    )
    appointment_type: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
    )
    notes: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=PatientAppointmentStatus.PENDING.value,
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<PatientAppointment {self.patient_name} {self.preferred_date} ({self.status})>"


class Appointment(Base, TimestampMixin):
    """Appointment scheduled by staff against a clinical patient record."""

    __tablename__ = "appointments"

    patient_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        nullable=False,
        index=True,
    )
    doctor_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        nullable=False,
        index=True,
    )
    appointment_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        index=True,
    )
    appointment_time: Mapped[time] = mapped_column(
        Time,
        nullable=False,
    )
    # Minutes
    duration: Mapped[int] = mapped_column(
        Integer,
        default=30,
        nullable=False,
    )
    type: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
    )
    notes: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=AppointmentStatus.SCHEDULED.value,
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<Appointment {self.patient_id} {self.appointment_date} ({self.status})>"


class PatientAccount(Base, TimestampMixin):
    """Link between a login identity and a clinical patient record."""

    __tablename__ = "patient_accounts"

    user_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        unique=True,
        nullable=False,
        index=True,
    )
    patient_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<PatientAccount {self.user_id} -> {self.patient_id}>"
