"""Health check endpoints."""

from fastapi import APIRouter, Request

from coursegate.config import get_settings
from coursegate.core.database import AsyncCassandraConnection


router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
async def liveness() -> dict[str, str]:
    """Liveness probe - checks if the application is running."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness(request: Request) -> dict[str, str | bool]:
    """Readiness probe - ready once the progress store is wired."""
    settings = get_settings()
    services_ready = getattr(request.app.state, "gating_service", None) is not None
    return {
        "status": "ready" if services_ready else "degraded",
        "environment": settings.environment,
        "database": AsyncCassandraConnection.is_connected(),
        "services": services_ready,
    }


@router.get("")
async def health() -> dict[str, str]:
    """General health check endpoint."""
    settings = get_settings()
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }
