"""Pytest configuration and fixtures."""

import os

# Configure settings before the app is imported
os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from collections.abc import AsyncGenerator
from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import StaticPool
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.security import create_access_token
from app.db.base import Base
from app.db.session import get_db
from app.main import app
from app.models.role import AppRole, RoleAssignment
from app.services.realtime import RealtimeChannel, get_realtime_channel


# Use SQLite for testing (simpler than spinning up postgres)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="function")
async def async_engine():
    """Create async test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture(scope="function")
async def async_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create async database session for tests."""
    async_session_maker = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

    async with async_session_maker() as session:
        yield session


@pytest.fixture
def channel() -> RealtimeChannel:
    """Fresh realtime channel isolated from the process-wide one."""
    return RealtimeChannel()


@pytest.fixture
async def api_client(
    async_session: AsyncSession,
    channel: RealtimeChannel,
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the app with overridden dependencies."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield async_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_realtime_channel] = lambda: channel

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


def new_identity() -> str:
    """Identities are UUIDs issued by the identity provider."""
    return str(uuid4())


async def grant_role(session: AsyncSession, user_id: str, role: AppRole) -> RoleAssignment:
    assignment = RoleAssignment(user_id=user_id, role=role.value)
    session.add(assignment)
    await session.commit()
    return assignment


@pytest.fixture
async def admin_id(async_session: AsyncSession) -> str:
    """Identity holding the admin role."""
    user_id = new_identity()
    await grant_role(async_session, user_id, AppRole.ADMIN)
    return user_id


@pytest.fixture
async def second_admin_id(async_session: AsyncSession) -> str:
    """Another administrator."""
    user_id = new_identity()
    await grant_role(async_session, user_id, AppRole.ADMIN)
    return user_id


@pytest.fixture
def applicant_id() -> str:
    """Identity of a newly registered staff member with no role yet."""
    return new_identity()


def auth_headers_for(user_id: str, email: str | None = None) -> dict[str, str]:
    """Authorization headers carrying a token for an identity."""
    claims = {"email": email} if email else None
    token = create_access_token(subject=user_id, additional_claims=claims)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(admin_id: str) -> dict[str, str]:
    return auth_headers_for(admin_id, "admin@medicare.local")


@pytest.fixture
def applicant_headers(applicant_id: str) -> dict[str, str]:
    return auth_headers_for(applicant_id, "new.staff@medicare.local")


@pytest.fixture
def make_headers():
    """Factory for authorization headers of arbitrary identities."""
    return auth_headers_for


@pytest.fixture
def make_identity():
    """Factory for fresh identities."""
    return new_identity


@pytest.fixture
def grant(async_session: AsyncSession):
    """Grant a role to an identity."""

    async def _grant(user_id: str, role: AppRole) -> RoleAssignment:
        return await grant_role(async_session, user_id, role)

    return _grant
