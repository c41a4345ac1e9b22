"""
Listings Backend — Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Environment variables are set before any `listings` import, so the
       settings singleton, engine and image service all point at a
       throwaway directory.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── database: tables created before, dropped after, engine disposed
    ├── db_session: unit of work on the test database
    ├── temp_image_dir: empty image directory for ImageService tests
    ├── sample_image_bytes: minimal JPEG content
    └── test_client: HTTPX AsyncClient bound to the FastAPI app
"""

import os
import tempfile

# Override settings for testing BEFORE any app imports
_TEST_ROOT = tempfile.mkdtemp(prefix="listings_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_ROOT}/test.sqlite3"
os.environ["IMAGE_DIR"] = os.path.join(_TEST_ROOT, "images")
os.environ["ITEMS_JSON_PATH"] = os.path.join(_TEST_ROOT, "items.json")
os.environ["STORE_BACKEND"] = "sql"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from listings.database import Base, create_tables, engine, session_scope  # noqa: E402
from listings.services.image_service import image_service  # noqa: E402

# Minimal JPEG: Start of Image (FFD8) + JFIF marker + End of Image (FFD9)
DEFAULT_IMAGE_BYTES = (
    b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
    b'\xff\xd9'
)


@pytest_asyncio.fixture
async def database():
    """Fresh schema for each test on the temporary SQLite file."""
    await create_tables()
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    # Pooled aiosqlite connections must not outlive the test's event loop
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(database):
    """A unit of work that commits when the test finishes."""
    async with session_scope() as session:
        yield session


@pytest.fixture
def temp_image_dir(tmp_path):
    image_dir = tmp_path / "images"
    image_dir.mkdir()
    return str(image_dir)


@pytest.fixture
def sample_image_bytes():
    return DEFAULT_IMAGE_BYTES


@pytest.fixture
def default_image():
    """Places the fallback image in the application's image directory."""
    path = image_service.image_dir / image_service.default_image
    path.write_bytes(DEFAULT_IMAGE_BYTES)
    yield path
    path.unlink(missing_ok=True)


@pytest_asyncio.fixture
async def test_client(database, default_image):
    """
    HTTPX AsyncClient routed straight into the ASGI app.

    ASGITransport does not run the lifespan, so `database` provides the tables.

    Usage:
        async def test_root(test_client):
            response = await test_client.get("/")
            assert response.status_code == 200
    """
    from listings.main import app
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
