"""
Unit test fixtures with SQLite and mocked dependencies.

Modernized for pytest-asyncio 1.2.0 (October 2025):
- No event_loop fixture (removed in 1.x)
- Uses loop_scope="function" for all fixtures
- Clean separation: SQLite for speed, mocks for isolation

Unit tests should be:
- Fast (< 5s total)
- Isolated (no external dependencies)
- Deterministic (no flakiness)
"""

import os
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from app.interfaces.notification_sink import INotificationSink
from app.repositories.post_repository import PostRepository
from app.repositories.room_repository import RoomRepository
from app.services.activity_monitor import ActivityMonitor
from app.services.expiration_sweeper import ExpirationSweeper
from app.services.post_service import PostService
from app.services.room_service import RoomService
from tests.fixtures import PostFactory, ReplyFactory, RoomFactory
from tests.fixtures.database import SQLITE_MEMORY_URL, create_schema, create_test_engine

# Force unit test environment
os.environ["TEST_TYPE"] = "unit"


# ============================================================================
# Database Fixtures (SQLite in-memory)
# ============================================================================


@pytest_asyncio.fixture(loop_scope="function")
async def unit_engine():
    """
    SQLite in-memory engine for unit tests.

    Function-scoped for maximum isolation.
    Uses StaticPool to maintain in-memory database during test.
    """
    engine = create_test_engine(SQLITE_MEMORY_URL)
    await create_schema(engine)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(unit_engine):
    """
    Isolated database session for each unit test.

    Each test gets a fresh session. Factories handle their own commits.
    """
    async with AsyncSession(unit_engine, expire_on_commit=False) as session:
        yield session


# ============================================================================
# Mock Fixtures
# ============================================================================


@pytest.fixture
def mock_notification_sink():
    """Mock notification sink implementing INotificationSink."""
    return AsyncMock(spec=INotificationSink)


# ============================================================================
# Repository and Service Fixtures
# ============================================================================


@pytest.fixture
def room_repo(db_session):
    return RoomRepository(db_session)


@pytest.fixture
def post_repo(db_session):
    return PostRepository(db_session)


@pytest.fixture
def activity_monitor(db_session, room_repo, post_repo, test_settings):
    return ActivityMonitor(db=db_session, room_repo=room_repo, post_repo=post_repo, config=test_settings)


@pytest.fixture
def room_service(db_session, room_repo, post_repo, activity_monitor, mock_notification_sink, test_settings):
    return RoomService(
        db=db_session,
        room_repo=room_repo,
        post_repo=post_repo,
        activity_monitor=activity_monitor,
        notification_sink=mock_notification_sink,
        config=test_settings,
    )


@pytest.fixture
def post_service(db_session, post_repo, room_repo, test_settings):
    return PostService(db=db_session, post_repo=post_repo, room_repo=room_repo, config=test_settings)


@pytest.fixture
def expiration_sweeper(db_session, post_repo, mock_notification_sink, test_settings):
    return ExpirationSweeper(
        db=db_session,
        post_repo=post_repo,
        notification_sink=mock_notification_sink,
        config=test_settings,
    )


# ============================================================================
# Factory Fixtures
# ============================================================================


@pytest.fixture
def room_factory():
    """Room factory for creating test rooms with their roster."""
    return RoomFactory


@pytest.fixture
def post_factory():
    """Post factory for creating test posts."""
    return PostFactory


@pytest.fixture
def reply_factory():
    """Reply factory for creating test replies."""
    return ReplyFactory


@pytest_asyncio.fixture
async def test_room(db_session, room_factory):
    """Quick access to a six-member inactive room."""
    return await room_factory.create(db_session)
