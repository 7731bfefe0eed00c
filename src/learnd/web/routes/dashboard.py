"""Dashboard route for the HTML portfolio view.

Renders KPI cards, the active and completed health distributions and a
project table with lifecycle and health badges, styled with Tailwind CSS.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from learnd.analytics import compute_kpis
from learnd.database.models import Profile
from learnd.database.queries.lesson import list_lessons
from learnd.logging import get_logger
from learnd.rendering import TEMPLATES_DIR, register_filters
from learnd.status import (
    classify_health,
    get_active_project_health_distribution,
    get_completed_project_health_distribution,
)
from learnd.tiers import get_tier_display_name
from learnd.web.auth import get_current_profile, get_session_factory
from learnd.web.routes.lessons import parse_lifecycle_filter

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = get_logger(__name__)

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
register_filters(templates.env)


def create_dashboard_router() -> APIRouter:
    """Create the dashboard router for HTML views."""
    router = APIRouter(prefix="/dashboard", tags=["dashboard"])

    @router.get("/", response_class=HTMLResponse)
    async def dashboard_home(
        request: Request,
        lifecycle_status: list[str] | None = Query(None),  # noqa: B008
        profile: Profile = Depends(get_current_profile),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> HTMLResponse:
        statuses = parse_lifecycle_filter(lifecycle_status)
        async with session_factory() as session:
            lessons = await list_lessons(session, profile.id, lifecycle_statuses=statuses)

        rows = [
            {
                "project_name": lesson.project_name,
                "client_name": lesson.client_name,
                "lifecycle_status": lesson.lifecycle_status,
                "health": classify_health(lesson).value,
                "satisfaction": lesson.satisfaction,
            }
            for lesson in lessons
        ]

        logger.debug("rendering_dashboard", count=len(rows))
        return templates.TemplateResponse(
            request,
            "dashboard.html",
            {
                "profile_name": profile.display_name,
                "tier_name": get_tier_display_name(profile.subscription_tier),
                "kpis": compute_kpis(lessons),
                "active_distribution": get_active_project_health_distribution(lessons),
                "completed_distribution": get_completed_project_health_distribution(lessons),
                "lessons": rows,
            },
        )

    return router
