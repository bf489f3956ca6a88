"""
Health check endpoints.

/api/health is a liveness check; /api/ready also queries the
municipality dataset and the info cache.
"""

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from gemeinde_info.core.config import settings

router = APIRouter()


@router.get("/api/health")
async def health_check() -> dict:
    """Basic health check."""
    return {"status": "healthy"}


@router.get("/api/ready")
async def readiness_check(request: Request) -> JSONResponse:
    """Readiness check: 503 until the service is wired and both stores answer."""
    service = getattr(request.app.state, "authority_info_service", None)
    if service is None:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "starting", "storage": settings.storage_backend},
        )

    checks = await service.check_stores()
    ready = all(result == "ok" for result in checks.values())
    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if ready else "degraded",
            "storage": service.settings.storage_backend,
            "ai_enabled": service.settings.ai_enabled,
            **checks,
        },
    )
