"""API v1 router aggregating all endpoints."""

from fastapi import APIRouter

from app.api.v1 import (
    escalations,
    health,
    notifications,
    realtime,
    staff_access,
    webhooks,
)

api_router = APIRouter()

# Health check
api_router.include_router(
    health.router,
    prefix="/health",
    tags=["health"],
)

# Staff onboarding
api_router.include_router(
    staff_access.router,
    prefix="/staff-access",
    tags=["staff-access"],
)

# Permission escalation
api_router.include_router(
    escalations.router,
    prefix="/permission-requests",
    tags=["permission-requests"],
)

# Notifications
api_router.include_router(
    notifications.router,
    prefix="/notifications",
    tags=["notifications"],
)

# Voice platform
api_router.include_router(
    webhooks.router,
    prefix="/webhooks",
    tags=["webhooks"],
)

# Realtime
api_router.include_router(
    realtime.router,
    prefix="/realtime",
    tags=["realtime"],
)
