"""FastAPI application factory for Learnd.

This module provides the main application factory function that creates
and configures a FastAPI application with:
- CORS middleware for cross-origin requests
- Request logging middleware with correlation IDs
- Database connection lifecycle management
- The status-change webhook notifier
- Health, profile, lesson, analytics, export, report, onboarding and
  dashboard routes

Example usage:
    >>> from learnd.config import LearndConfig
    >>> from learnd.web.app import create_app
    >>>
    >>> app = create_app(LearndConfig())
    >>>
    >>> import uvicorn
    >>> uvicorn.run(app, host="0.0.0.0", port=8000)
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from learnd import __version__
from learnd.config import LearndConfig
from learnd.database.connection import create_all, get_engine, get_session_factory
from learnd.logging import get_logger
from learnd.notifications import StatusChangeNotifier
from learnd.web.middleware import RequestLoggingMiddleware
from learnd.web.routes.analytics import create_analytics_router
from learnd.web.routes.dashboard import create_dashboard_router
from learnd.web.routes.exports import create_exports_router
from learnd.web.routes.health import create_health_router
from learnd.web.routes.lessons import create_lessons_router
from learnd.web.routes.me import create_me_router
from learnd.web.routes.onboarding import create_onboarding_router
from learnd.web.routes.reports import create_reports_router

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage the database pool and notifier for the app's lifetime.

    SQLite databases get their tables created on startup; PostgreSQL
    deployments are expected to run the Alembic migrations first.
    """
    config: LearndConfig = app.state.config

    logger.info("app_startup_begin", host=config.web.host, port=config.web.port)

    engine = get_engine(config.database)
    if config.database.url.startswith("sqlite"):
        await create_all(engine)

    app.state.engine = engine
    app.state.session_factory = get_session_factory(engine)

    logger.info("database_pool_initialized", url_scheme=config.database.url.split(":", 1)[0])

    yield

    logger.info("app_shutdown_begin")
    await app.state.notifier.close()
    await engine.dispose()
    logger.info("database_pool_disposed")


def create_app(config: LearndConfig | None = None) -> FastAPI:
    """Create and configure a FastAPI application.

    Args:
        config: Optional LearndConfig. If None, creates default config.

    Returns:
        Configured FastAPI application instance.
    """
    if config is None:
        config = LearndConfig()

    app = FastAPI(
        title="Learnd",
        version=__version__,
        description="Project lessons-learned tracking and portfolio health",
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.notifier = StatusChangeNotifier.from_config(config.notifications)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.web.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(create_health_router())
    app.include_router(create_me_router())
    app.include_router(create_lessons_router())
    app.include_router(create_analytics_router())
    app.include_router(create_exports_router())
    app.include_router(create_reports_router())
    app.include_router(create_onboarding_router())
    app.include_router(create_dashboard_router())

    logger.info(
        "app_created",
        cors_origins=config.web.cors_origins,
        version=__version__,
    )

    return app
