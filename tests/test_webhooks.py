"""Voice platform webhook tests."""

from datetime import date
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.main import app
from app.models.appointment import PatientAppointment

WEBHOOK_URL = "/api/v1/webhooks/voice"


@pytest.fixture
async def appointment(async_session: AsyncSession) -> PatientAppointment:
    appointment = PatientAppointment(
        user_id=str(uuid4()),
        patient_name="Priya Shah",
        preferred_date=date(2025, 6, 2),
    )
    async_session.add(appointment)
    await async_session.commit()
    return appointment


@pytest.mark.asyncio
async def test_tool_call_batch(api_client: AsyncClient, appointment: PatientAppointment) -> None:
    payload = {
        "message": {
            "type": "tool-calls",
            "toolCalls": [
                {
                    "id": "call_1",
                    "type": "function",
                    "function": {
                        "name": "confirmAppointment",
                        "arguments": f'{{"appointmentId": "{appointment.id}"}}',
                    },
                },
                {
                    "id": "call_2",
                    "type": "function",
                    "function": {"name": "rescheduleAppointment", "arguments": {"appointmentId": appointment.id}},
                },
            ],
        }
    }

    response = await api_client.post(WEBHOOK_URL, json=payload)

    assert response.status_code == 200
    assert response.json() == {
        "results": [
            {"toolCallId": "call_1", "result": "Appointment confirmed successfully. Database updated."},
            {"toolCallId": "call_2", "result": "Reschedule request noted. A staff member will call back."},
        ]
    }


@pytest.mark.asyncio
async def test_top_level_tool_calls(api_client: AsyncClient) -> None:
    payload = {
        "toolCalls": [
            {
                "id": "call_1",
                "function": {"name": "confirmAppointment", "arguments": {"appointmentId": str(uuid4())}},
            }
        ]
    }

    response = await api_client.post(WEBHOOK_URL, json=payload)

    assert response.json() == {
        "results": [
            {"toolCallId": "call_1", "result": "Could not find appointment with that ID to confirm."}
        ]
    }


@pytest.mark.asyncio
async def test_other_events_are_acknowledged(api_client: AsyncClient) -> None:
    response = await api_client.post(WEBHOOK_URL, json={"message": {"type": "status-update"}})

    assert response.status_code == 200
    assert response.json() == {"received": True}


@pytest.mark.asyncio
@pytest.mark.parametrize("body", ["not json", "[1, 2, 3]"])
async def test_body_must_be_json_object(api_client: AsyncClient, body: str) -> None:
    response = await api_client.post(
        WEBHOOK_URL,
        content=body,
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert "error" in response.json()


@pytest.mark.asyncio
async def test_storage_unavailable() -> None:
    session = MagicMock()
    session.execute = AsyncMock(side_effect=OperationalError("SELECT 1", {}, Exception("connection refused")))

    async def override_get_db():
        yield session

    app.dependency_overrides[get_db] = override_get_db
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.post(
                WEBHOOK_URL,
                json={"message": {"type": "tool-calls", "toolCalls": []}},
            )
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert "error" in response.json()


@pytest.mark.asyncio
async def test_malformed_call_does_not_abort_batch(api_client: AsyncClient) -> None:
    appointment_id = str(uuid4())
    payload = {
        "message": {
            "type": "tool-calls",
            "toolCalls": [
                {"id": "a", "function": {"name": "rescheduleAppointment", "arguments": {"appointmentId": appointment_id}}},
                {"id": "b", "function": {"name": ["confirmAppointment"], "arguments": {}}},
                {"id": "c", "function": {"name": "rescheduleAppointment", "arguments": {"appointmentId": appointment_id}}},
            ],
        }
    }

    response = await api_client.post(WEBHOOK_URL, json=payload)

    assert response.status_code == 200
    results = response.json()["results"]
    assert [r["toolCallId"] for r in results] == ["a", "b", "c"]
    assert results[0]["result"] == "Reschedule request noted. A staff member will call back."
    assert "not handled" in results[1]["result"]
    assert results[2]["result"] == "Reschedule request noted. A staff member will call back."
