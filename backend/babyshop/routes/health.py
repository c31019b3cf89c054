"""
BabyShop Backend — Health Check Route
=====================================

What:  GET /api/health for Docker health checks and uptime monitors.
How:   `SELECT 1` through the application's Database, then the vision
       service status. Both checks are lightweight.

Status levels:
    - healthy:   database reachable and vision available (or disabled on purpose)
    - degraded:  database reachable, vision unavailable or circuit open
    - unhealthy: database unreachable
"""

import logging
import time

from fastapi import APIRouter, Request

from babyshop import __version__
from babyshop.exceptions import BabyShopError
from babyshop.schemas.common import HealthResponse
from babyshop.services.gemini_service import CircuitBreaker, gemini_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Health"])

_start_time = time.time()


async def vision_status() -> str:
    if not gemini_service.enabled:
        return "disabled"
    if gemini_service.circuit_breaker.state == CircuitBreaker.OPEN:
        return "circuit_open"
    if await gemini_service.health_check():
        return "available"
    return "unavailable"


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(request: Request) -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        await request.app.state.database.query("SELECT 1 AS ok")
    except BabyShopError as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", e.message)

    vision = await vision_status()
    if vision in ("circuit_open", "unavailable") and overall == "healthy":
        overall = "degraded"

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        vision=vision,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
