"""Audit event service for append-only audit logging."""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import audit_logger
from app.models.audit_event import ActorType, AuditEvent


async def write_audit_event(
    session: AsyncSession,
    actor_type: ActorType,
    actor_id: str | None,
    action: str,
    entity_type: str,
    entity_id: str | None,
    metadata: dict[str, Any] | None = None,
    actor_email: str | None = None,
    action_category: str | None = None,
    description: str | None = None,
) -> AuditEvent:
    """Record an audit event.

    The event is added and flushed; committing is left to the caller so the
    event lands in the same transaction as the change it describes.

    Args:
        session: Database session
        actor_type: Type of actor (system, admin, user, voice_agent)
        actor_id: Identity of the actor
        action: Action performed (e.g., "staff_access_requested")
        entity_type: Type of entity affected (e.g., "staff_request")
        entity_id: ID of the affected entity
        metadata: Additional context as JSON
        actor_email: Email of the actor (for easier querying)
        action_category: Category of action (staff_access, escalation, appointment)
        description: Human-readable description

    Returns:
        Created AuditEvent instance
    """
    event = AuditEvent(
        actor_type=actor_type.value,
        actor_id=actor_id,
        actor_email=actor_email,
        action=action,
        action_category=action_category,
        entity_type=entity_type,
        entity_id=entity_id,
        event_metadata=metadata,
        description=description,
    )

    session.add(event)
    await session.flush()

    audit_logger.log(
        action=action,
        actor_type=actor_type.value,
        actor_id=actor_id,
        entity_type=entity_type,
        entity_id=entity_id or "none",
        metadata=metadata,
    )

    return event


class AuditService:
    """Read access to audit events.

    Audit events are created via write_audit_event().
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_entity_history(
        self,
        entity_type: str,
        entity_id: str,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get audit history for a specific entity, newest first."""
        result = await self.session.execute(
            select(AuditEvent)
            .where(AuditEvent.entity_type == entity_type)
            .where(AuditEvent.entity_id == entity_id)
            .order_by(AuditEvent.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
