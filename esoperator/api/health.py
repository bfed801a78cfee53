"""
Health check endpoints for the operator process.
Provides liveness and readiness probes.
"""
from datetime import datetime, timezone

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from esoperator.config.settings import settings

router = APIRouter()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/")
async def health_check():
    """
    Basic health check endpoint.
    Returns current status and version.
    """
    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.environment,
        "timestamp": _now(),
    }


@router.get("/live")
async def liveness():
    """
    Kubernetes liveness probe.
    Indicates whether the process should be restarted.
    """
    return {"status": "alive", "timestamp": _now()}


@router.get("/ready")
async def readiness(request: Request):
    """
    Kubernetes readiness probe.
    Ready once the pod deletion watcher is running, since deletions issued
    before that would never be observed.
    """
    watcher = getattr(request.app.state, "watcher", None)
    expectations = getattr(request.app.state, "expectations", None)
    pending = len(expectations.snapshot()) if expectations is not None else 0

    if watcher is None or not watcher.running:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "watcher": "stopped",
                "timestamp": _now(),
            },
        )

    return {
        "status": "ready",
        "watcher": "running",
        "resources_with_pending_deletions": pending,
        "timestamp": _now(),
    }
