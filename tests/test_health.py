"""Health endpoint tests."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError
from starlette.requests import Request

from app.db.session import get_db
from app.main import app, workflow_exception_handler
from app.services.errors import NotFoundError


@pytest.mark.asyncio
async def test_health_check(api_client: AsyncClient) -> None:
    """Test health check endpoint returns ok status."""
    response = await api_client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_health_check_ready(api_client: AsyncClient) -> None:
    """Test readiness check reaches the database."""
    response = await api_client.get("/api/v1/health/ready")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_health_check_not_ready_without_database() -> None:
    session = MagicMock()
    session.execute = AsyncMock(side_effect=OperationalError("SELECT 1", {}, Exception("down")))

    async def override_get_db():
        yield session

    app.dependency_overrides[get_db] = override_get_db
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/api/v1/health/ready")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 503


@pytest.mark.asyncio
async def test_root_endpoint(api_client: AsyncClient) -> None:
    """Test root endpoint returns service info."""
    response = await api_client.get("/")

    assert response.status_code == 200
    data = response.json()
    assert data["service"] == "MediCare Staff Workflow API"
    assert "version" in data


@pytest.mark.asyncio
async def test_unmapped_workflow_error_returns_its_message() -> None:
    request = Request({"type": "http", "method": "GET", "path": "/api/v1/example", "headers": []})

    response = await workflow_exception_handler(request, NotFoundError("Nothing here."))

    assert response.status_code == 400
    assert json.loads(response.body) == {"detail": "Nothing here."}
