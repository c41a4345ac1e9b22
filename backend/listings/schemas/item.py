"""
Listings Backend — Pydantic Request/Response Schemas
======================================================

What:  Pydantic models defining the API contract with the web frontend.
How:   FastAPI uses these models to serialize responses and generate the
       OpenAPI documentation. ItemListResponse doubles as the on-disk format
       of items.json for the flat-file store.

Item JSON shape:
    {"id": 1, "name": "shoes", "category": "fashion", "image_filename": "<sha256>.jpg"}
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    """Plain confirmation body, e.g. {"message": "item received: shoes"}."""
    message: str = Field(description="Human-readable message")


class ItemResponse(BaseModel):
    """
    What:  Full representation of a listed item.
    Who:   Returned by GET /items/{id}, and as array entries of list/search.
    """
    id: int = Field(description="Item identifier, assigned at insertion")
    name: str = Field(description="Item name")
    category: str = Field(description="Category name")
    image_filename: str = Field(
        default="",
        description="Content-hash file name of the item image, served by GET /image/{name}",
    )

    model_config = {"from_attributes": True}


class ItemListResponse(BaseModel):
    """Wrapper for GET /items and GET /search."""
    items: List[ItemResponse] = Field(default_factory=list, description="Items in id order")


# ══════════════════════════════════════════════════════════════════════════
# Error & Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Fields:
        error: Machine-readable error code (e.g., "validation_error", "not_found")
        message: Human-readable description
        details: Optional extra context (e.g., which field failed validation)
        request_id: Correlation ID for tracing this error in server logs
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service and dependency status."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    store: str = Field(description="Item store status: connected, disconnected")
    store_backend: str = Field(description="Active item store: sql or json")
    images: str = Field(description="Image directory status: available, missing")
    uptime_seconds: float = Field(description="Seconds since service started")
