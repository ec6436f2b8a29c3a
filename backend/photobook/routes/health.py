"""
Photobook Backend — Health Check Route
========================================

What:  Liveness/readiness probe for Docker and load balancers.
How:   SELECT 1 against the engine. The database is the only critical
       dependency, so the status is healthy or unhealthy.
"""

import logging
import time

from fastapi import APIRouter, Response
from sqlalchemy import text

from photobook import __version__
from photobook.database import get_engine
from photobook.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(response: Response) -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        response.status_code = 503
        logger.warning("Health check: database unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
