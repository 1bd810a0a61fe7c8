"""Health check endpoint."""

import time

from fastapi import APIRouter, Request

from ...config.logging import get_logger
from ...ormdb.database import check_database_health
from ..models.responses import HealthResponse, HealthStatus

logger = get_logger(__name__)
router = APIRouter()

API_VERSION = "1.0.0"

# Track application start time for uptime calculation
_app_start_time = time.time()


@router.get("/health", response_model=HealthResponse, summary="Health Check")
async def health_check(request: Request) -> HealthResponse:
    """
    Report liveness and database connectivity.

    The endpoint itself always succeeds; a failing database is reported as
    ``unhealthy`` in the body.
    """
    db_health = check_database_health()
    overall_status = "healthy" if db_health["status"] == "healthy" else "unhealthy"

    logger.debug("Health check completed", status=overall_status)
    return HealthResponse(
        success=True,
        health=HealthStatus(
            status=overall_status,
            services={"database": db_health},
            uptime_seconds=time.time() - _app_start_time,
            version=API_VERSION,
        ),
        request_id=getattr(request.state, "request_id", None),
    )
