"""API tests for staff access, notifications and permission requests."""

from uuid import uuid4

import pytest
from httpx import AsyncClient


async def file_request(client: AsyncClient, headers: dict, role: str = "doctor"):
    return await client.post(
        "/api/v1/staff-access/requests",
        json={"full_name": "Dana Reyes", "requested_role": role},
        headers=headers,
    )


class TestStaffAccessEndpoints:
    """Request submission and administrator decisions over HTTP."""

    @pytest.mark.asyncio
    async def test_submit_requires_authentication(self, api_client: AsyncClient) -> None:
        response = await api_client.post(
            "/api/v1/staff-access/requests",
            json={"full_name": "Dana Reyes", "requested_role": "doctor"},
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_submit_and_status(
        self,
        api_client: AsyncClient,
        admin_id: str,
        applicant_headers: dict,
    ) -> None:
        response = await file_request(api_client, applicant_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["request"]["status"] == "pending"
        assert data["request"]["email"] == "new.staff@medicare.local"
        assert data["request"]["needs_reclassification"] is False
        assert data["administrators_notified"] == 1
        assert data["notification_failures"] == 0

        status_response = await api_client.get(
            "/api/v1/staff-access/status", headers=applicant_headers
        )
        assert status_response.json() == {"status": "pending"}

    @pytest.mark.asyncio
    async def test_duplicate_submission_conflicts(
        self,
        api_client: AsyncClient,
        admin_id: str,
        applicant_headers: dict,
    ) -> None:
        await file_request(api_client, applicant_headers)

        response = await file_request(api_client, applicant_headers, role="nurse")

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_unsupported_role(
        self,
        api_client: AsyncClient,
        admin_id: str,
        applicant_headers: dict,
    ) -> None:
        response = await file_request(api_client, applicant_headers, role="surgeon")

        assert response.status_code == 400
        assert "surgeon" in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_admin_approves_request(
        self,
        api_client: AsyncClient,
        admin_headers: dict,
        applicant_headers: dict,
    ) -> None:
        request_id = (await file_request(api_client, applicant_headers)).json()["request"]["id"]

        response = await api_client.post(
            f"/api/v1/staff-access/requests/{request_id}/decision",
            json={"decision": "approve"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["status"] == "approved"

        status_response = await api_client.get(
            "/api/v1/staff-access/status", headers=applicant_headers
        )
        assert status_response.json() == {"status": "approved"}

        again = await api_client.post(
            f"/api/v1/staff-access/requests/{request_id}/decision",
            json={"decision": "reject"},
            headers=admin_headers,
        )
        assert again.status_code == 409

    @pytest.mark.asyncio
    async def test_decision_on_unknown_request(
        self,
        api_client: AsyncClient,
        admin_headers: dict,
    ) -> None:
        response = await api_client.post(
            f"/api/v1/staff-access/requests/{uuid4()}/decision",
            json={"decision": "approve"},
            headers=admin_headers,
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_non_admin_cannot_list_or_decide(
        self,
        api_client: AsyncClient,
        admin_id: str,
        applicant_headers: dict,
    ) -> None:
        request_id = (await file_request(api_client, applicant_headers)).json()["request"]["id"]

        listing = await api_client.get("/api/v1/staff-access/requests", headers=applicant_headers)
        decision = await api_client.post(
            f"/api/v1/staff-access/requests/{request_id}/decision",
            json={"decision": "approve"},
            headers=applicant_headers,
        )

        assert listing.status_code == 403
        assert decision.status_code == 403

    @pytest.mark.asyncio
    async def test_admin_lists_requests_and_history(
        self,
        api_client: AsyncClient,
        admin_headers: dict,
        applicant_headers: dict,
    ) -> None:
        request_id = (
            await file_request(api_client, applicant_headers, role="cashier")
        ).json()["request"]["id"]

        listing = await api_client.get(
            "/api/v1/staff-access/requests",
            params={"status": "pending"},
            headers=admin_headers,
        )
        history = await api_client.get(
            f"/api/v1/staff-access/requests/{request_id}/history",
            headers=admin_headers,
        )

        assert listing.status_code == 200
        [item] = listing.json()
        assert item["requested_role"] == "receptionist"
        assert item["original_requested_role"] == "cashier"
        assert item["role_note"] == "REQUESTING CASHIER"
        assert item["needs_reclassification"] is True
        assert history.status_code == 200
        assert [e["action"] for e in history.json()] == ["staff_access_requested"]


class TestNotificationEndpoints:
    """Notification listing and acknowledgement over HTTP."""

    @pytest.mark.asyncio
    async def test_admin_sees_and_acknowledges_request_notification(
        self,
        api_client: AsyncClient,
        admin_headers: dict,
        applicant_headers: dict,
    ) -> None:
        await file_request(api_client, applicant_headers)

        listing = await api_client.get("/api/v1/notifications", headers=admin_headers)
        count = await api_client.get("/api/v1/notifications/unread-count", headers=admin_headers)

        [notification] = listing.json()
        assert notification["type"] == "approval_request"
        assert notification["entity_type"] == "staff_request"
        assert count.json() == {"unread": 1}

        forbidden = await api_client.post(
            f"/api/v1/notifications/{notification['id']}/read", headers=applicant_headers
        )
        assert forbidden.status_code == 403

        marked = await api_client.post(
            f"/api/v1/notifications/{notification['id']}/read", headers=admin_headers
        )
        assert marked.status_code == 200
        assert marked.json()["is_read"] is True

    @pytest.mark.asyncio
    async def test_mark_unknown_notification(
        self,
        api_client: AsyncClient,
        applicant_headers: dict,
    ) -> None:
        response = await api_client.post(
            f"/api/v1/notifications/{uuid4()}/read", headers=applicant_headers
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_mark_all_read(
        self,
        api_client: AsyncClient,
        admin_headers: dict,
        make_headers,
    ) -> None:
        for _ in range(2):
            await file_request(api_client, make_headers(str(uuid4()), "applicant@medicare.local"))

        response = await api_client.post("/api/v1/notifications/read-all", headers=admin_headers)
        count = await api_client.get("/api/v1/notifications/unread-count", headers=admin_headers)

        assert response.json() == {"updated": 2}
        assert count.json() == {"unread": 0}


class TestPermissionRequestEndpoints:
    """Permission escalation over HTTP."""

    @pytest.mark.asyncio
    async def test_request_is_routed_to_admins(
        self,
        api_client: AsyncClient,
        admin_headers: dict,
        applicant_headers: dict,
    ) -> None:
        response = await api_client.post(
            "/api/v1/permission-requests",
            json={
                "action_description": "delete patient records",
                "justification": "Duplicate record",
            },
            headers=applicant_headers,
        )

        assert response.status_code == 202
        assert response.json()["administrators_notified"] == 1

        listing = await api_client.get("/api/v1/permission-requests", headers=admin_headers)
        [item] = listing.json()
        assert item["type"] == "permission_request"
        assert item["message"] == (
            "new.staff@medicare.local requests to delete patient records. "
            "Reason: Duplicate record"
        )

    @pytest.mark.asyncio
    async def test_blank_justification(
        self,
        api_client: AsyncClient,
        admin_id: str,
        applicant_headers: dict,
    ) -> None:
        response = await api_client.post(
            "/api/v1/permission-requests",
            json={"action_description": "delete patient records", "justification": "  "},
            headers=applicant_headers,
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_no_administrators(
        self,
        api_client: AsyncClient,
        applicant_headers: dict,
    ) -> None:
        response = await api_client.post(
            "/api/v1/permission-requests",
            json={"action_description": "delete patient records", "justification": "Needed"},
            headers=applicant_headers,
        )

        assert response.status_code == 503
