"""
Listings Backend — Item Route Handlers
========================================

What:  GET /, POST /items, GET /items, GET /items/{id}, GET /search.
How:   Extract form/path/query values, delegate to ItemService, return JSON.
Who:   Called by the web frontend (ItemList, Listing form).

Request Flow (POST /items):
    1. Client sends multipart/form-data with name, category and image
    2. `image` is either an uploaded file (bytes are stored) or a plain
       form string holding a server-side path (only hashed)
    3. ItemService hashes, stores and inserts
    4. Return {"message": "item received: <name>"}
"""

import logging

from fastapi import APIRouter, Depends, Form, Query, Request
from starlette.datastructures import UploadFile

from listings.schemas.item import (
    ErrorResponse,
    ItemListResponse,
    ItemResponse,
    MessageResponse,
)
from listings.services.item_service import item_service
from listings.services.item_store import ItemStore, get_item_store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Items"])


@router.get(
    "/",
    response_model=MessageResponse,
    summary="Liveness greeting",
)
async def root() -> MessageResponse:
    return MessageResponse(message="Hello, world!")


@router.post(
    "/items",
    response_model=MessageResponse,
    responses={
        200: {"description": "Item stored", "model": MessageResponse},
        500: {"description": "Image or store failure", "model": ErrorResponse},
    },
    summary="Submit a new item",
    description=(
        "Multipart form with `name`, `category` and `image`. An uploaded image is "
        "stored under the SHA-256 of its bytes plus `.jpg`."
    ),
)
async def add_item(
    request: Request,
    name: str = Form(default=""),
    category: str = Form(default=""),
    store: ItemStore = Depends(get_item_store),
) -> MessageResponse:
    """
    Create an item from form data.

    The `image` field is read from the parsed form directly: FastAPI
    parameters cannot declare "file or string" for a single field.
    """
    form = await request.form()
    image = form.get("image")

    if isinstance(image, UploadFile):
        content = await image.read()
        logger.info(
            "Received item upload: name=%s, image=%s (%d bytes)",
            name,
            image.filename or "unknown",
            len(content),
        )
        try:
            return await item_service.add_item(
                store, name=name, category=category, image_content=content
            )
        finally:
            await image.close()

    return await item_service.add_item(
        store, name=name, category=category, image_path=image or None
    )


@router.get(
    "/items",
    response_model=ItemListResponse,
    summary="List all items",
)
async def list_items(store: ItemStore = Depends(get_item_store)) -> ItemListResponse:
    return await item_service.list_items(store)


@router.get(
    "/items/{item_id}",
    response_model=ItemResponse,
    responses={
        200: {"description": "The item", "model": ItemResponse},
        404: {"description": "Item not found", "model": ErrorResponse},
    },
    summary="Get a single item by id",
)
async def get_item(item_id: int, store: ItemStore = Depends(get_item_store)) -> ItemResponse:
    """
    Args:
        item_id: integer path parameter; non-integers get FastAPI's 422.
    """
    return await item_service.get_item(store, item_id)


@router.get(
    "/search",
    response_model=ItemListResponse,
    summary="Search items by name",
    description="Substring match on item names. An empty keyword returns every item.",
)
async def search_items(
    keyword: str = Query(default="", description="Substring to look for in item names"),
    store: ItemStore = Depends(get_item_store),
) -> ItemListResponse:
    return await item_service.search_items(store, keyword)
