"""
Health Check Routes - System health and monitoring endpoints.

These endpoints are used for:
1. Load balancer health checks
2. Kubernetes liveness/readiness probes
3. Monitoring dashboards
"""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from aichat import __version__
from aichat.core.logging_config import get_logger
from aichat.models.common import LivenessResponse
from aichat.services.health_service import HealthService, get_health_service

logger = get_logger(__name__)

router = APIRouter(
    prefix="/health",
    tags=["Health"],
)


@router.get(
    "",
    summary="Backing service health",
    description="""
    Probes Supabase, PostgreSQL, MongoDB (when configured), the vector
    database and Redis in parallel.

    Returns 200 when every service is healthy, 503 when any is not.
    """
)
async def health_check(service: HealthService = Depends(get_health_service)) -> JSONResponse:
    status_code, body = await service.check_all()
    return JSONResponse(status_code=status_code, content=body)


@router.get(
    "/live",
    response_model=LivenessResponse,
    summary="Liveness check endpoint",
)
async def liveness_check() -> LivenessResponse:
    """Confirms the process is serving requests; checks no dependencies."""
    logger.debug("Liveness check requested")
    return LivenessResponse(version=__version__)
