"""Helpdesk dispatch service — FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.exceptions import RedisError

from helpdesk.adapters.persistence.database import engine
from helpdesk.adapters.redis_queue.client import close_redis, get_redis
from helpdesk.config import settings
from helpdesk.infrastructure.api.routes_health import router as health_router
from helpdesk.infrastructure.api.routes_organizations import router as organizations_router
from helpdesk.infrastructure.api.routes_tickets import router as tickets_router

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    try:
        async with engine.begin():
            pass  # Connection pool warmed up
        logger.info("Database connection established")
    except Exception as e:
        logger.warning("Database not available on startup: %s", e)
    try:
        await get_redis().ping()
        logger.info("Redis connection established")
    except (RedisError, OSError) as e:
        # Round-robin degrades to least-active until Redis is back.
        logger.warning("Redis not available on startup: %s", e)
    yield
    await close_redis()
    await engine.dispose()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Helpdesk — ticket dispatch engine",
        description="Multi-tenant ticket auto-assignment and role-scoped access",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routers
    app.include_router(health_router, prefix="/api")
    app.include_router(tickets_router, prefix="/api")
    app.include_router(organizations_router, prefix="/api")

    return app


app = create_app()
