"""
TextCollector — Test Configuration (conftest.py)
=================================================

What:  Shared pytest fixtures for the whole suite.
How:   Every test gets its own SQLite file under pytest's tmp_path, so tests
       exercise the real schema, foreign keys and unique constraints with
       no shared state between them.

Fixture Hierarchy:
    settings         Settings pointing at tmp_path
    └── database     opened Database (disposed after the test)
        ├── snippet_service   SnippetService/TagService pair
        ├── db_session        AsyncSession from the store
        └── test_client       HTTPX AsyncClient over the ASGI app
"""

import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Keep the developer's environment out of the test settings
for _name in list(os.environ):
    if _name.startswith("TEXTCOLLECTOR_"):
        del os.environ[_name]
os.environ["TEXTCOLLECTOR_LOG_LEVEL"] = "WARNING"

from textcollector.config import Settings  # noqa: E402
from textcollector.database import Database  # noqa: E402
from textcollector.services import create_snippet_service  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Store Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings whose data directory is a fresh temporary directory."""
    return Settings(data_dir=tmp_path / "data", log_level="WARNING")


@pytest_asyncio.fixture
async def database(settings) -> AsyncGenerator[Database, None]:
    """
    An opened store on a temporary SQLite file.

    Usage:
        async def test_something(database):
            async with database.session() as session:
                ...
    """
    db = Database(settings.resolved_database_url)
    await db.init()
    yield db
    await db.dispose()


@pytest.fixture
def snippet_service(database):
    return create_snippet_service()


@pytest_asyncio.fixture
async def db_session(database):
    async with database.session() as session:
        yield session


# ══════════════════════════════════════════════════════════════════════════
# API Client
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def app(settings, database):
    from textcollector.main import create_app

    return create_app(settings=settings, database=database)


@pytest_asyncio.fixture
async def test_client(app) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTPX AsyncClient routed straight into the FastAPI app.

    The store is already open, so the app's lifespan is not needed.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
