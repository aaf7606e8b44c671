"""FastAPI dependency injection utilities."""

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import decode_access_token
from app.db.session import get_db
from app.services.realtime import RealtimeChannel, get_realtime_channel
from app.services.roles import RoleStore
from app.utils.ids import is_valid_uuid

# Security scheme
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CallerIdentity:
    """Authenticated caller as described by the bearer token."""

    id: str
    email: str | None = None


def identity_from_token(payload: dict | None) -> CallerIdentity | None:
    """Build the caller identity from a decoded token, if it names one."""
    if not payload:
        return None
    subject = payload.get("sub")
    if not is_valid_uuid(subject):
        return None
    return CallerIdentity(id=subject, email=payload.get("email"))


async def get_current_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> dict | None:
    """Extract and decode the current JWT token.

    Args:
        credentials: Bearer token credentials

    Returns:
        Decoded token payload or None
    """
    if not credentials:
        return None

    return decode_access_token(credentials.credentials)


async def get_current_identity(
    token: Annotated[dict | None, Depends(get_current_token)],
) -> CallerIdentity:
    """Get the authenticated caller.

    Raises:
        HTTPException: If the token is missing or invalid
    """
    identity = identity_from_token(token)
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return identity


async def get_current_admin(
    identity: Annotated[CallerIdentity, Depends(get_current_identity)],
    session: Annotated[AsyncSession, Depends(get_db)],
) -> CallerIdentity:
    """Get the authenticated caller, who must hold the admin role.

    Raises:
        HTTPException: If the caller is not an administrator
    """
    if not await RoleStore(session).is_admin(identity.id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator access required",
        )
    return identity


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db)]
CurrentIdentity = Annotated[CallerIdentity, Depends(get_current_identity)]
CurrentAdmin = Annotated[CallerIdentity, Depends(get_current_admin)]
Channel = Annotated[RealtimeChannel, Depends(get_realtime_channel)]
