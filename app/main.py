"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1.router import api_router
from app.core.config import settings
from app.core.logging import setup_logging
from app.db.init_db import init_db
from app.db.session import AsyncSessionLocal
from app.services.errors import WorkflowError
from app.services.realtime import realtime_channel

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)

SERVICE_NAME = "MediCare Staff Workflow API"
SERVICE_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    # Startup
    logger.info(f"Starting {SERVICE_NAME} (env={settings.env})")

    # Local databases get tables and the bootstrap administrator
    if settings.init_db_on_startup and settings.is_dev:
        logger.info("Initializing database and bootstrap administrator...")
        async with AsyncSessionLocal() as session:
            await init_db(session)

    yield

    # Shutdown; open websockets release their own subscriptions
    logger.info(
        f"Shutting down {SERVICE_NAME} "
        f"({realtime_channel.subscriber_count} realtime subscriptions open)"
    )


# Create FastAPI application
app = FastAPI(
    title=SERVICE_NAME,
    description="Staff onboarding, permission escalation and voice-call appointment confirmation",
    version=SERVICE_VERSION,
    docs_url="/docs" if settings.is_dev else None,
    redoc_url="/redoc" if settings.is_dev else None,
    openapi_url="/openapi.json" if settings.is_dev else None,
    lifespan=lifespan,
)

# Staff dashboard dev servers only; deployed behind the same origin
if settings.is_dev:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


# Workflow errors an endpoint did not map to a specific status
@app.exception_handler(WorkflowError)
async def workflow_exception_handler(request: Request, exc: WorkflowError) -> JSONResponse:
    """Return the workflow error's user-facing message."""
    logger.warning(f"Unmapped workflow error on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": exc.message},
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unhandled exceptions."""
    logger.exception(f"Unhandled exception on {request.url.path}: {exc}")

    # Don't expose internal errors in production
    if settings.is_prod:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc)},
    )


# Include API router
app.include_router(api_router, prefix="/api/v1")


# Root endpoint
@app.get("/", include_in_schema=False)
async def root() -> dict:
    """Service information."""
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "docs": "/docs" if settings.is_dev else "Disabled in production",
    }
