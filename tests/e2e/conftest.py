"""
E2E test fixtures with FastAPI HTTP client.

Modernized for pytest-asyncio 1.2.0 (October 2025):
- No event_loop fixture (removed in 1.x)
- Uses loop_scope="function" for all fixtures

E2E tests verify the full request/response cycle:
- Real FastAPI app (via httpx AsyncClient over ASGITransport)
- Real repositories and services
- Domain exceptions mapped to HTTP status codes

ASGITransport does not run the lifespan, so no redis pool is created and
notifications fall back to the logging sink.
"""

import os

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from main import app
from tests.fixtures.database import create_schema, create_test_engine, drop_schema

# Force E2E test environment
os.environ["TEST_TYPE"] = "e2e"


@pytest_asyncio.fixture(loop_scope="function")
async def e2e_engine():
    """
    Engine for E2E tests: TEST_DATABASE_URL if set, in-memory SQLite otherwise.
    Schema is created/dropped per test for complete isolation.
    """
    engine = create_test_engine()
    await create_schema(engine)

    yield engine

    await drop_schema(engine)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(e2e_engine):
    async with AsyncSession(e2e_engine, expire_on_commit=False) as session:
        yield session


@pytest_asyncio.fixture
async def async_client(db_session):
    """
    Async HTTP client for E2E testing with dependency override.

    The client uses the test database session via dependency injection,
    ensuring all HTTP requests use the same isolated test database.
    """

    async def override_get_db():
        """Override get_db dependency to use test session."""
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        yield client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def created_room(async_client, sample_room_data):
    """Six-member room created through the API."""
    response = await async_client.post("/api/v1/rooms/", json=sample_room_data)
    assert response.status_code == 201
    return response.json()
