"""
Listings Backend — Application Configuration
==============================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or a .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by every module that needs configuration values.
When:  Loaded once at module import time.

Environment variables are case-insensitive, so both `FRONT_URL` and
`front_url` set the CORS origin.
"""

from pathlib import Path
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have development defaults that match the layout of the
    repository (SQLite database under ./db, images under ./images).
    """

    # ── Store ─────────────────────────────────────────────────────────────
    # What: Which persistence backend serves the item endpoints
    # Values: "sql" (relational, two tables) or "json" (flat items.json file)
    store_backend: str = Field(default="sql")

    # What: Async SQLAlchemy connection string
    # Format: sqlite+aiosqlite:///<path> or postgresql+asyncpg://user:pw@host/db
    database_url: str = Field(
        default="sqlite+aiosqlite:///./db/mercari.sqlite3",
        description="Async database connection URL",
    )

    # Pool sizing is ignored for SQLite URLs (see database.py)
    db_pool_size: int = Field(default=5, ge=1, le=100)
    db_max_overflow: int = Field(default=10, ge=0, le=50)
    db_pool_pre_ping: bool = Field(default=True)

    # What: Create missing tables at startup
    # Alembic migrations remain the path for existing databases
    db_create_tables: bool = Field(default=True)

    # What: Location of the flat-file store used when store_backend == "json"
    items_json_path: str = Field(default="./items.json")

    # ── Image Directory ───────────────────────────────────────────────────
    # What: Flat directory holding content-hash-named images
    image_dir: str = Field(default="./images")

    # What: Served in place of any requested image that is not on disk
    default_image: str = Field(default="default.jpg")

    # What: Suffix appended to every content hash and required by GET /image
    image_extension: str = Field(default=".jpg")

    # ── CORS ──────────────────────────────────────────────────────────────
    # What: The single frontend origin allowed to call the API
    front_url: str = Field(default="http://localhost:3000")

    @property
    def cors_origins_list(self) -> List[str]:
        """CORS middleware expects a list; FRONT_URL names exactly one origin."""
        return [self.front_url.strip()]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=9000, ge=1024, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @field_validator("store_backend")
    @classmethod
    def validate_store_backend(cls, v: str) -> str:
        """Only the relational and flat-file stores exist."""
        normalized = v.lower().strip()
        if normalized not in {"sql", "json"}:
            raise ValueError(f"Invalid store_backend '{v}'. Must be 'sql' or 'json'")
        return normalized

    @field_validator("image_extension")
    @classmethod
    def validate_image_extension(cls, v: str) -> str:
        ext = v.lower().strip()
        return ext if ext.startswith(".") else f".{ext}"

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @property
    def default_image_path(self) -> Path:
        return Path(self.image_dir) / self.default_image


# Singleton instance, imported throughout the application
settings = Settings()
