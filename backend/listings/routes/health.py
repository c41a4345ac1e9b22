"""
Listings Backend — Health Check Route
=======================================

What:  Health check endpoint for monitoring and container probes.
How:   Checks the active item store and the image directory.

Status levels:
    - healthy:   store reachable and image directory present (HTTP 200)
    - unhealthy: either check failed (HTTP 503)
"""

import logging
import time
from pathlib import Path

from fastapi import APIRouter, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from listings import __version__
from listings.config import settings
from listings.schemas.item import HealthResponse
from listings.services.image_service import image_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


async def _check_store() -> str:
    if settings.store_backend == "json":
        parent = Path(settings.items_json_path).resolve().parent
        return "connected" if parent.is_dir() else "disconnected"

    from listings.database import engine
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Health check: database unreachable: %s", str(e))
        return "disconnected"
    return "connected"


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(response: Response) -> HealthResponse:
    """
    Check the item store and image directory.

    Database: executes SELECT 1 (relational backend), or checks that the
    items.json directory exists (flat-file backend).
    """
    store_status = await _check_store()
    images_status = "available" if image_service.image_dir.is_dir() else "missing"

    overall = "healthy"
    if store_status != "connected" or images_status != "available":
        overall = "unhealthy"
        response.status_code = 503

    return HealthResponse(
        status=overall,
        version=__version__,
        store=store_status,
        store_backend=settings.store_backend,
        images=images_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
