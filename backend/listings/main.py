"""
Listings Backend — FastAPI Application Factory
================================================

What:  Builds the ASGI app serving the listing API.
How:   create_app() wires middleware, error mapping and routers onto a
       FastAPI instance; `app` below is the process-wide instance.
Who:   Called by uvicorn (uvicorn listings.main:app) and by `python -m listings`.

Request path:
    RequestID → RequestLogging → CORS → router
        items:  GET /   POST /items   GET /items   GET /items/{id}   GET /search
        images: GET /image/{name}
        health: GET /health

Error mapping:
    ValidationError → 400    NotFoundError → 404    everything else → 500
    Every error body is {"error", "message", "request_id"} plus "details"
    for validation failures.

Lifecycle:
    Startup:  logging → image directory → tables (relational store)
    Shutdown: dispose database engine (close all pooled connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from listings import __version__
from listings.config import settings
from listings.database import create_tables, dispose_engine
from listings.exceptions import (
    DatabaseError,
    FileStorageError,
    ListingsError,
    NotFoundError,
    ValidationError,
)
from listings.middleware.logging import RequestLoggingMiddleware
from listings.middleware.request_id import RequestIDMiddleware, request_id_var
from listings.routes import health, images, items

logger = logging.getLogger(__name__)

GENERIC_SERVER_MESSAGE = "An internal error occurred. Please try again later."


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Route every logger to stdout at the configured level.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-request / per-statement chatter from dependencies
    for noisy in ("uvicorn.access", "sqlalchemy.engine", "aiosqlite", "multipart"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Prepare the image directory and schema; release the engine on exit."""
    setup_logging()
    logger.info("Listings Backend %s starting (store=%s)", __version__, settings.store_backend)

    image_dir = Path(settings.image_dir)
    image_dir.mkdir(parents=True, exist_ok=True)
    logger.info("Image directory: %s", image_dir.resolve())
    if not settings.default_image_path.is_file():
        logger.warning("Default image %s is missing; image misses will return 404", settings.default_image_path)

    if settings.store_backend == "sql" and settings.db_create_tables:
        await create_tables()

    logger.info(
        "Listening on http://%s:%d, CORS origin %s",
        settings.backend_host,
        settings.backend_port,
        settings.front_url,
    )

    yield

    logger.info("Listings Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Error Mapping
# ══════════════════════════════════════════════════════════════════════════

def error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    """Build the JSON error body shared by every handler."""
    body: Dict[str, Any] = {"error": error, "message": message}
    if details is not None:
        body["details"] = details
    body["request_id"] = request_id_var.get("")
    return JSONResponse(status_code=status_code, content=body)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map domain exceptions onto HTTP responses.

    Storage and database failures are logged with their context and
    answered with a generic message; paths and SQL never reach the client.
    SQLAlchemyError is a backstop for driver errors that escape a store.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Rejected %s: %s", request_id_var.get(""), request.url.path, exc.message)
        return error_response(400, "validation_error", exc.message, details=exc.context)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return error_response(404, "not_found", exc.message)

    @app.exception_handler(DatabaseError)
    @app.exception_handler(FileStorageError)
    async def handle_storage_error(request: Request, exc: ListingsError):
        logger.error(
            "[%s] %s: %s | Context: %s",
            request_id_var.get(""),
            type(exc).__name__,
            exc.message,
            exc.context,
        )
        return error_response(500, "server_error", GENERIC_SERVER_MESSAGE)

    @app.exception_handler(SQLAlchemyError)
    async def handle_sqlalchemy_error(request: Request, exc: SQLAlchemyError):
        logger.error("[%s] Unhandled database error: %s", request_id_var.get(""), exc, exc_info=True)
        return error_response(500, "server_error", GENERIC_SERVER_MESSAGE)

    @app.exception_handler(ListingsError)
    async def handle_listings_error(request: Request, exc: ListingsError):
        logger.error("[%s] Application error: %s", request_id_var.get(""), exc.message)
        return error_response(500, "server_error", exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", request_id_var.get(""), exc, exc_info=True)
        return error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="Listings API",
        description=(
            "Marketplace listing backend: submit items with an image, list them, "
            "fetch them by id and search them by name."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Added last runs first: RequestID → Logging → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["GET", "PUT", "POST", "DELETE"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(items.router)
    app.include_router(images.router)
    app.include_router(health.router)

    return app


app = create_app()
