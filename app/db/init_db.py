"""Database initialization utilities."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.db.base import Base
from app.db.session import engine
from app.models.role import AppRole, RoleAssignment

logger = logging.getLogger(__name__)


async def create_tables() -> None:
    """Create all database tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created")


async def bootstrap_admin(session: AsyncSession, admin_id: str | None = None) -> RoleAssignment | None:
    """Grant the admin role to the configured identity if no admin exists.

    Staff access can only be approved by an administrator, so the first
    one has to be seeded.

    Args:
        session: Database session
        admin_id: Identity to promote (defaults to settings.bootstrap_admin_id)

    Returns:
        Created assignment or None if an admin already exists
    """
    admin_id = admin_id or settings.bootstrap_admin_id
    if not admin_id:
        logger.info("No bootstrap admin configured, skipping")
        return None

    result = await session.execute(
        select(RoleAssignment).where(RoleAssignment.role == AppRole.ADMIN.value).limit(1)
    )
    if result.scalar_one_or_none():
        logger.info("Admin already exists, skipping bootstrap")
        return None

    assignment = RoleAssignment(user_id=admin_id, role=AppRole.ADMIN.value)
    session.add(assignment)
    await session.commit()

    logger.warning(f"Granted admin role to bootstrap identity {admin_id}")
    return assignment


async def init_db(session: AsyncSession) -> None:
    """Initialize database with required data.

    Args:
        session: Database session
    """
    await create_tables()
    await bootstrap_admin(session)
    logger.info("Database initialization complete")
