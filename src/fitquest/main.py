"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from fitquest.achievements.catalog import get_catalog
from fitquest.achievements.router import router as achievements_router
from fitquest.config import Settings, get_settings
from fitquest.database import close_db, get_session_factory, init_db
from fitquest.health.router import router as health_router
from fitquest.middleware import setup_middleware
from fitquest.notifications.router import router as notifications_router
from fitquest.notifications.sync import LocalPreferenceBroker, PreferenceBroker, PreferenceSync, RedisPreferenceBroker
from fitquest.notifications.ws import router as preferences_ws_router
from fitquest.redis_client import close_redis, get_redis, init_redis
from fitquest.workouts.router import router as workouts_router

logger = structlog.get_logger()


async def build_preference_broker(settings: Settings) -> PreferenceBroker:
    """Pick the preference broker backend from settings."""
    if settings.preference_sync_backend == "local":
        return LocalPreferenceBroker()
    await init_redis(settings.redis_url)
    return RedisPreferenceBroker(get_redis())


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()

    # Fails fast on a malformed catalog.
    catalog = get_catalog()
    logger.info("achievement_catalog_loaded", achievements=len(catalog))

    await init_db(settings.database_url)
    broker = await build_preference_broker(settings)
    await broker.start()
    app.state.preference_sync = PreferenceSync(broker, get_session_factory())

    yield

    await broker.stop()
    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="FitQuest API",
        description="Achievements, points and notifications for FitQuest workouts",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(achievements_router)
    app.include_router(workouts_router)
    app.include_router(notifications_router)
    app.include_router(preferences_ws_router)

    return app


app = create_app()
