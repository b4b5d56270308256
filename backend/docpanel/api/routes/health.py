"""Health Probes — liveness and readiness for container orchestration.

Invariants:
    - GET /health/ always returns 200 if the process is up
    - GET /health/ready returns 503 until the stream controller exists
"""

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe."""
    return {"status": "healthy", "service": "docpanel-api", "version": "0.1.0"}


@router.get("/ready")
async def readiness_check(request: Request):
    controller = getattr(request.app.state, "controller", None)
    if controller is None:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "reason": "controller_unavailable"},
        )
    return {
        "status": "ready",
        "active_streams": len(controller.registry),
        "cached_documents": len(controller.cache),
    }
