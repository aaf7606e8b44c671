"""Role storage and the role compatibility shim.

A RoleAssignment row is the only authority for whether an identity is
staff. Role storage currently accepts a narrower set of roles than the
registration form offers, so roles storage cannot hold are recorded as an
accepted role plus an annotation for an administrator to reclassify.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.role import AppRole, RoleAssignment
from app.services.errors import UnsupportedRoleError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoleCoercion:
    """Outcome of mapping a requested role onto role storage."""

    stored_role: str
    requested_role: str
    note: str | None = None

    @property
    def coerced(self) -> bool:
        return self.stored_role != self.requested_role


class RoleCompatibilityShim:
    """Maps intake roles onto roles the storage layer accepts."""

    def __init__(
        self,
        accepted_roles: list[str] | None = None,
        fallbacks: dict[str, str] | None = None,
        default_role: str | None = None,
    ) -> None:
        self.accepted_roles = set(
            accepted_roles if accepted_roles is not None else settings.storage_roles
        )
        self.fallbacks = fallbacks if fallbacks is not None else settings.role_fallbacks
        self.default_role = default_role or settings.role_fallback_default

    def coerce(self, role: str) -> RoleCoercion:
        """Return the role to store for a requested role.

        Raises:
            UnsupportedRoleError: If neither the role nor its fallback is accepted
        """
        if role in self.accepted_roles:
            return RoleCoercion(stored_role=role, requested_role=role)

        target = self.fallbacks.get(role, self.default_role)
        if target not in self.accepted_roles:
            raise UnsupportedRoleError(
                f"The role '{role}' cannot be recorded yet. "
                "Please choose another role or contact an administrator."
            )

        logger.info(f"Role '{role}' stored as '{target}' pending manual reclassification")
        return RoleCoercion(
            stored_role=target,
            requested_role=role,
            note=f"REQUESTING {role.upper()}",
        )


class RoleStore:
    """Read and write access to role assignments."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_assignment(self, user_id: str) -> RoleAssignment | None:
        result = await self.session.execute(
            select(RoleAssignment).where(RoleAssignment.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_role(self, user_id: str) -> str | None:
        """Return the role held by an identity, or None if not staff."""
        assignment = await self.get_assignment(user_id)
        return assignment.role if assignment else None

    async def is_admin(self, user_id: str) -> bool:
        return await self.get_role(user_id) == AppRole.ADMIN.value

    async def list_admin_ids(self) -> list[str]:
        """Return the identities of every administrator."""
        result = await self.session.execute(
            select(RoleAssignment.user_id)
            .where(RoleAssignment.role == AppRole.ADMIN.value)
            .order_by(RoleAssignment.created_at)
        )
        return list(result.scalars().all())

    async def assign_role(
        self,
        user_id: str,
        role: str,
        granted_by: str | None = None,
    ) -> RoleAssignment:
        """Create or replace the role for an identity.

        The assignment is added to the session but not committed; the
        caller commits it together with whatever state change granted it.

        Raises:
            UnsupportedRoleError: If role storage does not accept the role
        """
        if role not in settings.storage_roles:
            raise UnsupportedRoleError(f"Role storage does not accept the role '{role}'.")

        assignment = await self.get_assignment(user_id)
        if assignment is None:
            assignment = RoleAssignment(
                user_id=user_id,
                role=role,
                granted_by=granted_by,
            )
            self.session.add(assignment)
        else:
            assignment.role = role
            assignment.granted_by = granted_by

        await self.session.flush()
        return assignment
