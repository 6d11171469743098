from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from heatmap_tracker.api.routes.activity import router as activity_router
from heatmap_tracker.api.routes.auth import router as auth_router
from heatmap_tracker.api.routes.health import router as health_router
from heatmap_tracker.api.routes.tasks import router as tasks_router
from heatmap_tracker.api.routes.users import router as users_router
from heatmap_tracker.core.logging import LoggingMiddleware
from heatmap_tracker.core.logging import setup_logging
from heatmap_tracker.core.middleware import HeatmapRateLimitMiddleware
from heatmap_tracker.core.observability import init_sentry
from heatmap_tracker.db import Database
from heatmap_tracker.settings import Settings
from heatmap_tracker.settings import validate_settings


SESSION_MAX_AGE_SECONDS = 60 * 60 * 24 * 30

log = structlog.get_logger(__name__)


def create_app(
    settings: Settings | None = None, database: Database | None = None
) -> FastAPI:
    """Build the application with its own settings and database handle.

    The database is disposed when the application shuts down.
    """

    app_settings = settings or Settings()
    validate_settings(app_settings)
    setup_logging(app_settings)
    init_sentry(app_settings)

    app_database = database or Database(app_settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        log.info("application_started", environment=app_settings.environment)
        yield
        app_database.dispose()
        log.info("application_stopped")

    app = FastAPI(title="consistency-heatmap", lifespan=lifespan)
    app.state.settings = app_settings
    app.state.database = app_database

    app.add_middleware(
        HeatmapRateLimitMiddleware,
        requests_per_window=app_settings.rate_limit_per_minute,
        window_seconds=app_settings.rate_limit_window_seconds,
    )
    app.add_middleware(
        SessionMiddleware,
        secret_key=app_settings.session_secret,
        max_age=SESSION_MAX_AGE_SECONDS,
        same_site="none" if app_settings.is_production else "lax",
        https_only=app_settings.is_production,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[app_settings.client_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(tasks_router)
    app.include_router(activity_router)

    return app
