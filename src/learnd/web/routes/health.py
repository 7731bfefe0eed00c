"""Health check endpoints for Learnd.

- ``GET /health/`` liveness probe
- ``GET /health/ready`` readiness probe with a database round trip
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from learnd.logging import get_logger
from learnd.web.auth import get_session_factory

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = get_logger(__name__)


class HealthResponse(BaseModel):
    status: str


class ReadinessResponse(BaseModel):
    """Readiness check response model.

    Attributes:
        status: "ok" or "unhealthy"
        database: "connected" or "disconnected"
    """

    status: str
    database: str


def create_health_router() -> APIRouter:
    """Create health check router.

    Routes:
        GET /health/ - Basic liveness check
        GET /health/ready - Readiness check with database verification
    """
    router = APIRouter(prefix="/health", tags=["health"])

    @router.get("/", response_model=HealthResponse)
    async def health() -> dict[str, Any]:
        return {"status": "ok"}

    @router.get("/ready", response_model=ReadinessResponse)
    async def readiness(
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> dict[str, Any]:
        """Verify the database accepts queries."""
        try:
            async with session_factory() as session:
                await session.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as exc:
            logger.warning("readiness_check_failed", database="disconnected", error=str(exc))
            return {"status": "unhealthy", "database": "disconnected"}

        logger.debug("readiness_check_passed", database="connected")
        return {"status": "ok", "database": "connected"}

    return router
