"""
FastAPI application factory.

* Registers routes for auth, trips, drivers, complaints and admin.
* Disposes the DB engine and the Redis pool on shutdown.
* Applies rate limiting and the domain exception handlers.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from ridehail.api.errors import register_exception_handlers
from ridehail.api.middleware import limiter
from ridehail.api.routes import admin, auth, complaints, drivers, trips
from ridehail.config import settings
from ridehail.infrastructure.database import engine
from ridehail.infrastructure.redis_client import close_redis

logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Release pooled connections on shutdown."""
    logger.info("Ride-hailing API starting")
    yield
    await engine.dispose()
    await close_redis()
    logger.info("Ride-hailing API stopped")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Ride-Hailing API",
        description=(
            "Drivers propose trips, riders browse and accept them, and "
            "completion settles the fare between the driver's wallet and "
            "the platform.  Rider complaints pause or ban drivers."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    register_exception_handlers(app)

    # Routers
    app.include_router(auth.router, prefix="/api/v1")
    app.include_router(trips.router, prefix="/api/v1")
    app.include_router(drivers.router, prefix="/api/v1")
    app.include_router(complaints.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
