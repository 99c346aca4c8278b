"""Database session management for ARQ worker processes."""

from contextvars import ContextVar
from typing import AsyncGenerator

import structlog
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings

logger = structlog.get_logger(__name__)

# Job ID of the task currently holding a session, for log correlation.
db_session_context: ContextVar[str | None] = ContextVar("db_session_context", default=None)


class ARQDatabaseManager:
    """
    Owns the engine and session factory of a worker process.

    Workers run outside the FastAPI lifespan, so they get their own engine
    instead of sharing the application's module-level one.
    """

    def __init__(self, database_url: str | None = None):
        self.database_url = database_url or settings.database_url
        self.engine: AsyncEngine | None = None
        self.session_factory: async_sessionmaker[AsyncSession] | None = None

    async def connect(self) -> None:
        self.engine = create_async_engine(self.database_url, echo=False, pool_pre_ping=True)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            autoflush=False,
            expire_on_commit=False,
        )
        logger.info("arq_db_connected")

    async def disconnect(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None
            self.session_factory = None
        logger.info("arq_db_disconnected")

    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Yield a session for one task run.
        :return: Async session, closed when the task is done with it
        """
        if self.session_factory is None:
            raise RuntimeError("ARQDatabaseManager.connect() must be called before get_session()")

        async with self.session_factory() as session:
            logger.debug("arq_session_opened", job_id=db_session_context.get())
            yield session
