"""Seed a development database with workflow data.

Creates an administrator, a patient with one self-service appointment and
one staff-scheduled appointment, and prints bearer tokens for both so the
API and the voice webhook can be exercised by hand.

Run after migrations (or with INIT_DB_ON_STARTUP=true in dev).
"""

import asyncio
from datetime import date, time, timedelta
from uuid import uuid4

from sqlalchemy import select

from app.core.security import create_access_token
from app.db.init_db import bootstrap_admin, create_tables
from app.db.session import AsyncSessionLocal
from app.models.appointment import Appointment, PatientAccount, PatientAppointment
from app.models.role import AppRole, RoleAssignment

ADMIN_EMAIL = "admin@medicare.local"
PATIENT_EMAIL = "patient@medicare.local"


async def seed() -> dict:
    """Insert seed rows and return the identities and appointment ids."""
    await create_tables()

    async with AsyncSessionLocal() as session:
        existing = await session.scalar(
            select(RoleAssignment).where(RoleAssignment.role == AppRole.ADMIN.value).limit(1)
        )
        admin_id = existing.user_id if existing else str(uuid4())
        if not existing:
            await bootstrap_admin(session, admin_id)

        patient_user_id = str(uuid4())
        patient_record_id = str(uuid4())
        session.add(PatientAccount(user_id=patient_user_id, patient_id=patient_record_id))

        self_service = PatientAppointment(
            user_id=patient_user_id,
            patient_name="Test Patient",
            patient_phone="+1 555 0100",
            patient_email=PATIENT_EMAIL,
            preferred_date=date.today() + timedelta(days=3),
            preferred_time="morning",
            appointment_type="consultation",
        )
        scheduled = Appointment(
            patient_id=patient_record_id,
            doctor_id=str(uuid4()),
            appointment_date=date.today() + timedelta(days=5),
            appointment_time=time(14, 30),
            duration=30,
            type="follow_up",
        )
        session.add_all([self_service, scheduled])
        await session.commit()

        return {
            "admin_id": admin_id,
            "patient_user_id": patient_user_id,
            "self_service_appointment_id": self_service.id,
            "scheduled_appointment_id": scheduled.id,
        }


async def main() -> None:
    seeded = await seed()

    print("=" * 60)
    print("WORKFLOW DATA SEEDED")
    print("=" * 60)
    print()
    for key, value in seeded.items():
        print(f"  {key}: {value}")
    print()
    print("Admin token:")
    print(f"  {create_access_token(seeded['admin_id'], additional_claims={'email': ADMIN_EMAIL})}")
    print("Patient token:")
    print(
        f"  {create_access_token(seeded['patient_user_id'], additional_claims={'email': PATIENT_EMAIL})}"
    )


if __name__ == "__main__":
    asyncio.run(main())
