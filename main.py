import os
from contextlib import asynccontextmanager

import structlog
import uvicorn
from arq import create_pool
from arq.connections import RedisSettings
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

from app.api.v1.endpoints.post_router import router as posts_router
from app.api.v1.endpoints.room_router import router as rooms_router
from app.core.clock import utcnow
from app.core.config import settings
from app.core.database import create_tables, drop_tables
from app.core.exceptions import (
    ConflictException,
    DomainException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from app.core.logging_config import configure_logging
from app.implementations.arq_notification_sink import ArqNotificationSink
from app.implementations.logging_notification_sink import LoggingNotificationSink

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan event handler for startup and shutdown.
    """
    configure_logging()
    logger.info("app_starting", app_name=settings.app_name)

    if os.getenv("RESET_DB") == "true":
        logger.warning("database_reset", reason="RESET_DB=true")
        await drop_tables()

    await create_tables()

    redis_settings = RedisSettings.from_dsn(settings.redis_url)
    redis_settings.conn_retries = 0
    try:
        app.state.arq_pool = await create_pool(redis_settings)
        app.state.notification_sink = ArqNotificationSink(app.state.arq_pool)
    except (RedisError, OSError) as e:
        logger.warning("arq_pool_unavailable", error=str(e), fallback="logging_sink")
        app.state.arq_pool = None
        app.state.notification_sink = LoggingNotificationSink()

    yield

    if app.state.arq_pool is not None:
        await app.state.arq_pool.aclose()
    logger.info("app_stopped")


app = FastAPI(
    title=settings.app_name,
    description="Anonymous peer-support rooms with expiring posts",
    docs_url="/docs",
    lifespan=lifespan,
)


# ============================================================================
# Exception Handlers (Convert Domain Exceptions → HTTP Responses)
# ============================================================================


def _error_response(status_code: int, exc: DomainException) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "detail": exc.message,
            "error_code": exc.error_code,
            "timestamp": utcnow().isoformat(),
        },
    )


@app.exception_handler(NotFoundException)
async def not_found_exception_handler(request: Request, exc: NotFoundException) -> JSONResponse:
    """Handle resource not found exceptions."""
    return _error_response(status.HTTP_404_NOT_FOUND, exc)


@app.exception_handler(ForbiddenException)
async def forbidden_exception_handler(request: Request, exc: ForbiddenException) -> JSONResponse:
    """Handle non-member access."""
    return _error_response(status.HTTP_403_FORBIDDEN, exc)


@app.exception_handler(ValidationException)
async def validation_exception_handler(request: Request, exc: ValidationException) -> JSONResponse:
    """Handle validation exceptions."""
    return _error_response(status.HTTP_400_BAD_REQUEST, exc)


@app.exception_handler(ConflictException)
async def conflict_exception_handler(request: Request, exc: ConflictException) -> JSONResponse:
    """Handle duplicates and illegal state transitions."""
    return _error_response(status.HTTP_409_CONFLICT, exc)


@app.exception_handler(DomainException)
async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    """Fallback handler for all other domain exceptions."""
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc)


# ============================================================================
# Router Registration
# ============================================================================

API_V1_PREFIX = "/api/v1"

app.include_router(rooms_router, prefix=API_V1_PREFIX)
app.include_router(posts_router, prefix=API_V1_PREFIX)


@app.get("/")
def root():
    return {
        "message": f"Welcome to {settings.app_name}",
        "status": "running",
        "version": "1.0.0",
        "docs": "/docs",
        "endpoints": {
            "rooms": "/api/v1/rooms",
            "posts": "/api/v1/posts",
        },
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
