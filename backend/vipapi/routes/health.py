"""
VIP Travel API - Health Check Route
====================================

What:  Health endpoint for monitoring and load balancer probes.
How:   Pings the database and reports the asset store's readiness state.
Who:   Docker health checks, uptime monitors.

Status levels:
    healthy:    database reachable, asset store READY          (HTTP 200)
    degraded:   database reachable, asset store not READY yet  (HTTP 200)
    unhealthy:  database unreachable                           (HTTP 503)

The readiness middleware skips /health, so this endpoint never triggers
initialization itself; it only reports.
"""

import logging
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from vipapi import __version__
from vipapi.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(request: Request):
    store = request.app.state.asset_store
    connection = request.app.state.db_connection

    db_status = "connected"
    overall = "healthy"

    try:
        async with connection.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        connection.mark_disconnected()
        logger.warning("Health check: database unreachable: %s", str(e))

    store_status = store.state.value
    if overall == "healthy" and not store.is_ready:
        overall = "degraded"

    report = HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        asset_store=store_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    if overall == "unhealthy":
        return JSONResponse(status_code=503, content=report.model_dump())
    return report
