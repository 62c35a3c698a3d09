"""
FastAPI Application Entry Point.

This is the main application file for the Field Operations Backend.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fieldops.app.core.config import settings
from fieldops.app.api.v1.router import router as api_v1_router
from fieldops.app.core.observability import ObservabilityMiddleware, configure_logging, logger
from fieldops.app.core.redis_client import ping_redis
from fieldops.app.db.session import engine, Base
from fieldops.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from fieldops.app.models.user import User
from fieldops.app.models.audit_log import AuditLog
from fieldops.app.models.mission import Mission
from fieldops.app.models.mission_event import MissionEvent
from fieldops.app.models.location_log import LocationLog
from fieldops.app.models.rate_card import RateCard


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Configures logging.
    2. Creates database tables on startup.
    """
    configure_logging()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("%s started", settings.app_name)
    yield
    await engine.dispose()


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Mission lifecycle, live tracking and pricing for field operations",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Redis only backs the live-position cache, so a Redis outage degrades
    the service rather than failing it.
    """
    redis_ok = await ping_redis()
    return {
        "status": "healthy" if redis_ok else "degraded",
        "app_name": settings.app_name,
        "version": settings.api_version,
        "redis": redis_ok,
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": "Welcome to the Field Operations Backend API",
        "docs": "/docs",
        "health": "/health",
    }
