"""
Listings Backend — Custom Exception Hierarchy
===============================================

What:  Application-specific exceptions for the failure modes of the API.
How:   Each exception carries a user-facing message and a context dict.
       Handlers registered in main.py turn them into JSON error bodies.
Who:   Raised by services and stores.

    ListingsError (base)
    ├── ValidationError    → 400 Bad Request
    ├── NotFoundError      → 404 Not Found
    ├── FileStorageError   → 500 Internal Server Error
    └── DatabaseError      → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class ListingsError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  Description safe to put in an API response
        context:  Debug info for the log; returned to clients only for
                  validation errors
    """

    default_message = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.context = dict(context or {})
        super().__init__(self.message)


class ValidationError(ListingsError):
    """
    Client input was rejected, e.g. GET /image/x.png.

    Response body:
        {
            "error": "validation_error",
            "message": "Image path does not end with .jpg",
            "details": {"field": "image_filename", "filename": "x.png"}
        }
    """

    default_message = "Validation failed"

    def __init__(
        self,
        message: Optional[str] = None,
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, context)
        self.field = field
        if field:
            self.context["field"] = field


class NotFoundError(ListingsError):
    """
    An item id that was never inserted, or a missing default image.

    Stores return None for missing rows; the service layer raises this.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        label = resource.capitalize()
        if resource_id:
            message = f"{label} with ID '{resource_id}' was not found"
        else:
            message = f"{label} not found"
        super().__init__(message, context)
        self.context["resource"] = resource
        if resource_id:
            self.context["resource_id"] = resource_id


class FileStorageError(ListingsError):
    """Writing into the image directory failed (disk full, permissions)."""

    default_message = "File storage operation failed"


class DatabaseError(ListingsError):
    """
    A store operation failed: lost connection, constraint violation,
    unreadable items.json. Clients only ever see a generic message.
    """

    default_message = "A database error occurred. Please try again later."
