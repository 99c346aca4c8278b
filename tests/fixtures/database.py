"""
Database engines for the test suite.

Unit and E2E tests run against in-memory SQLite by default. E2E tests switch
to PostgreSQL when TEST_DATABASE_URL points at one, for production parity
(row locks are only enforced there).
"""

import os

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

import app.models  # noqa: F401
from app.core.database import Base

SQLITE_MEMORY_URL = "sqlite+aiosqlite:///:memory:"


def create_test_engine(database_url: str | None = None) -> AsyncEngine:
    """
    Create an engine for tests.
    :param database_url: Explicit URL, defaults to TEST_DATABASE_URL or in-memory SQLite
    :return: Async engine
    """
    database_url = database_url or os.getenv("TEST_DATABASE_URL") or SQLITE_MEMORY_URL

    if not database_url.startswith("sqlite"):
        # NullPool keeps asyncpg connections off the per-test event loops
        return create_async_engine(database_url, poolclass=NullPool, echo=False)

    engine = create_async_engine(
        database_url,
        poolclass=StaticPool,
        echo=False,
        connect_args={"check_same_thread": False},
    )

    # Enable foreign key constraints for SQLite
    @event.listens_for(engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


async def create_schema(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_schema(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
