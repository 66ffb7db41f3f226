"""Health check endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from vidshield.api.dependencies import get_container
from vidshield.api.lifespan import ServiceContainer

router = APIRouter(tags=["health"])

Container = Annotated[ServiceContainer, Depends(get_container)]


@router.get("/health")
async def health_check(container: Container):
    """Basic health check."""
    return {
        "status": "healthy",
        "service": container.settings.app.name,
        "version": container.settings.app.version,
    }


@router.get("/health/db")
async def database_health(container: Container):
    """Check database connectivity."""
    error = await container.database.ping()
    if error is None:
        return {"status": "healthy", "database": "connected"}
    return JSONResponse(
        status_code=503,
        content={"status": "unhealthy", "database": "disconnected", "error": error},
    )


@router.get("/health/pipelines")
async def pipeline_health(container: Container):
    """Report processing supervisor state."""
    supervisor = container.supervisor
    return {
        "status": "healthy" if supervisor.accepting else "draining",
        "active_pipelines": supervisor.active_count,
        "broadcast_backend": str(container.settings.broadcast.backend),
    }
