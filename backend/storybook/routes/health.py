"""
Storybook Backend - Health Check Route
========================================

What:  GET /health for container and load balancer probes.
How:   Runs SELECT 1 against the database. The app can't serve a single page
       without its database, so a failed probe means "unhealthy" (HTTP 503).
"""

import logging
import time

from fastapi import APIRouter, Response
from sqlalchemy import text

from storybook import __version__
from storybook.database import engine
from storybook.schemas.story import HealthResponse

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
        async with engine.connect() as conn:
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
