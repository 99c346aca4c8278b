"""
Integration test fixtures for ARQ worker tasks.

Tasks open their own sessions through ``ctx["db_manager"]``; here that
manager hands out the test session so the effects can be inspected directly.
Runs on in-memory SQLite unless TEST_DATABASE_URL points at PostgreSQL.
"""

import os

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from tests.fixtures.database import create_schema, create_test_engine, drop_schema

# Force integration test environment
os.environ["TEST_TYPE"] = "integration"


class DummyDBManager:
    """Minimal db_manager stub exposing get_session for ARQ task context."""

    def __init__(self, session):
        self._session = session

    async def get_session(self):
        yield self._session


@pytest_asyncio.fixture(loop_scope="function")
async def integration_engine():
    engine = create_test_engine()
    await create_schema(engine)

    yield engine

    await drop_schema(engine)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(integration_engine):
    async with AsyncSession(integration_engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
def arq_ctx(db_session):
    """ARQ job context without a redis pool, so notifications go to the logging sink."""
    return {"db_manager": DummyDBManager(db_session), "job_try": 1}
