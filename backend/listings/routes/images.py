"""
Listings Backend — Image Route Handler
========================================

What:  GET /image/{image_filename} serves stored item images.
Who:   Called by <img> tags built from an item's image_filename.

Behaviour:
    - name not ending in .jpg, or not a bare file name → 400
    - file missing → the default image, status 200
    - default image missing as well → 404
"""

import logging

from fastapi import APIRouter
from fastapi.responses import FileResponse

from listings.schemas.item import ErrorResponse
from listings.services.image_service import image_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Images"])


@router.get(
    "/image/{image_filename}",
    summary="Serve an item image",
    responses={
        200: {"description": "Image file (or the default image)", "content": {"image/jpeg": {}}},
        400: {"description": "Invalid image name", "model": ErrorResponse},
        404: {"description": "Default image missing", "model": ErrorResponse},
    },
)
async def get_image(image_filename: str) -> FileResponse:
    path = image_service.resolve_image(image_filename)
    return FileResponse(
        path=str(path),
        media_type="image/jpeg",
        headers={"Cache-Control": "public, max-age=86400"},
    )
