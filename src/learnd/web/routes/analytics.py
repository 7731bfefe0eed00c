"""Portfolio analytics endpoints for Learnd.

- ``GET /analytics/summary`` KPIs and both health distributions (all plans)
- ``GET /analytics/trends`` monthly satisfaction and status counts (Business+)
- ``GET /analytics/outliers`` red-flag projects, newest first (Business+)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from learnd.analytics import (
    Kpis,
    MonthlySatisfaction,
    StatusByMonth,
    compute_kpis,
    find_outliers,
    satisfaction_trend,
    status_by_month,
)
from learnd.database.models import Profile
from learnd.database.queries.lesson import list_lessons
from learnd.logging import get_logger
from learnd.status import (
    get_active_project_health_distribution,
    get_completed_project_health_distribution,
)
from learnd.web.auth import get_current_profile, get_session_factory, require_advanced_analytics
from learnd.web.routes.lessons import LessonResponse, parse_lifecycle_filter

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = get_logger(__name__)


class SummaryResponse(BaseModel):
    kpis: Kpis | None
    active_distribution: dict[str, int]
    completed_distribution: dict[str, int]


class TrendsResponse(BaseModel):
    satisfaction: list[MonthlySatisfaction]
    status_by_month: StatusByMonth


def create_analytics_router() -> APIRouter:
    """Create the analytics router.

    Routes:
        GET /analytics/summary - KPIs and health distributions
        GET /analytics/trends - Monthly trends (advanced analytics)
        GET /analytics/outliers - Red-flag projects (advanced analytics)
    """
    router = APIRouter(prefix="/analytics", tags=["analytics"])

    @router.get("/summary", response_model=SummaryResponse)
    async def summary(
        lifecycle_status: list[str] | None = Query(None),  # noqa: B008
        profile: Profile = Depends(get_current_profile),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> dict[str, Any]:
        statuses = parse_lifecycle_filter(lifecycle_status)
        async with session_factory() as session:
            lessons = await list_lessons(session, profile.id, lifecycle_statuses=statuses)

        return {
            "kpis": compute_kpis(lessons),
            "active_distribution": get_active_project_health_distribution(lessons),
            "completed_distribution": get_completed_project_health_distribution(lessons),
        }

    @router.get("/trends", response_model=TrendsResponse)
    async def trends(
        profile: Profile = Depends(require_advanced_analytics),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> dict[str, Any]:
        async with session_factory() as session:
            lessons = await list_lessons(session, profile.id)

        return {
            "satisfaction": satisfaction_trend(lessons),
            "status_by_month": status_by_month(lessons),
        }

    @router.get("/outliers", response_model=list[LessonResponse])
    async def outliers(
        limit: int = Query(10, ge=1, le=100),
        profile: Profile = Depends(require_advanced_analytics),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> list[LessonResponse]:
        async with session_factory() as session:
            lessons = await list_lessons(session, profile.id)

        flagged = find_outliers(lessons, limit=limit)
        logger.info("outliers_found", count=len(flagged))
        return [LessonResponse.from_lesson(lesson) for lesson in flagged]

    return router
