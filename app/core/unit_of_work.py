from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import TransactionFailureException

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def transaction(db: AsyncSession, operation: str) -> AsyncIterator[AsyncSession]:
    """
    Run a block of writes as one atomic unit.

    Commits when the block exits cleanly, rolls back on any exception.
    Store errors (including those raised by the final commit) are re-raised
    as TransactionFailureException; domain errors propagate unchanged.
    :param db: Session the block writes through
    :param operation: Operation name used in log events
    """
    try:
        yield db
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("transaction_failed", operation=operation, error=str(e))
        raise TransactionFailureException(f"{operation} failed: {e}") from e
    except BaseException:
        await db.rollback()
        raise
