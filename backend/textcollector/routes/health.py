"""
TextCollector — Health Check Route
===================================

What:  GET /health: is the data file reachable, which version, how long up.
How:   Runs SELECT 1 against the store. The only critical dependency is the
       store, so the status is either healthy (200) or unhealthy (503).
"""

import logging
import time

from fastapi import APIRouter, Depends, Response, status

from textcollector import __version__
from textcollector.database import Database
from textcollector.dependencies import get_database
from textcollector.schemas.snippet import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(
    response: Response,
    database: Database = Depends(get_database),
) -> HealthResponse:
    if await database.ping():
        db_status, overall = "connected", "healthy"
    else:
        db_status, overall = "disconnected", "unhealthy"
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        logger.warning("Health check: snippet store unreachable")

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
