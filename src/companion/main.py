"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (schema sync, Redis, the
engine). Logging, error handlers, middleware, CORS, routers and the
avatar file mount are all registered here.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError

from companion import __version__
from companion.api import api_router
from companion.config import settings
from companion.db.engine import engine
from companion.db.models import Base
from companion.errors import register_exception_handlers
from companion.logging import configure_logging
from companion.middleware.rate_limit import RateLimitMiddleware
from companion.middleware.request_id import RequestIdMiddleware
from companion.middleware.security import SecurityHeadersMiddleware
from companion.redis_client import close_redis, init_redis
from companion.services.user_service import avatar_dir

logger = structlog.get_logger()

AVATAR_URL_PATH = "/static/images/avatar"


async def sync_schema() -> None:
    """Create any missing tables from the models (COMPANION_SYNC_DB)."""
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("companion.db_synced")
    except (SQLAlchemyError, OSError) as e:
        logger.error("companion.db_sync_failed", error=str(e))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` at
    shutdown. Neither a failed schema sync nor a missing Redis stops
    the server from starting.
    """
    logger.info(
        "companion.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    if settings.sync_db:
        await sync_schema()

    try:
        await init_redis()
        logger.info("companion.redis_connected", url=settings.redis_url)
    except (RedisError, OSError) as e:
        logger.warning("companion.redis_unavailable", error=str(e))

    yield

    logger.info("companion.shutdown")
    await close_redis()
    await engine.dispose()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    configure_logging(settings)

    app = FastAPI(
        title="MyLife Companion",
        description="Tasks, calendar, health and mood tracking for one person at a time",
        version=__version__,
        lifespan=lifespan,
    )
    register_exception_handlers(app)

    # ── Middleware stack ──────────────────────────────────────
    # Starlette runs middleware in reverse order of registration.
    # Request flow: CORS → RateLimit → Security → RequestId → handler
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        auth_rpm=settings.rate_limit_auth_rpm,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    # Uploaded avatars; the directory may not exist until the first upload.
    app.mount(
        AVATAR_URL_PATH,
        StaticFiles(directory=avatar_dir(), check_dir=False),
        name="avatars",
    )

    return app


# Default app instance (used by uvicorn: companion.main:app)
app = create_app()
