"""Guided tour endpoints for Learnd.

Tour state is persisted per profile; each mutating endpoint loads the
state, applies one OnboardingProgress transition and saves it back.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from learnd.database.models import Profile
from learnd.database.queries.onboarding import (
    delete_progress,
    get_or_create_progress,
    save_progress,
)
from learnd.logging import get_logger
from learnd.onboarding import (
    InteractionType,
    OnboardingProgress,
    TourResolution,
    UnknownStepError,
    resolve_tour_step,
)
from learnd.sample_data import SAMPLE_INSIGHTS, get_sample_projects
from learnd.status import classify_health, get_health_status_label
from learnd.web.auth import get_current_profile, get_session_factory

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = get_logger(__name__)


class ProgressResponse(BaseModel):
    current_step: str | None
    current_path: str | None
    is_finished: bool
    completed_steps: list[str]
    sample_data_loaded: bool
    started_at: datetime
    ai_clicks: int
    completions: int
    pages_visited: list[str]


class InteractionRequest(BaseModel):
    type: InteractionType
    data: str | None = None


class SampleDataResponse(BaseModel):
    projects: list[dict[str, Any]]
    insights: dict[str, list[str]]


def _response(progress: OnboardingProgress) -> ProgressResponse:
    return ProgressResponse(
        current_path=progress.current_path,
        is_finished=progress.is_finished,
        **progress.model_dump(),
    )


def create_onboarding_router() -> APIRouter:
    """Create the onboarding router.

    Routes:
        GET /onboarding/ - Current tour state (starts a tour if none)
        POST /onboarding/next - Complete the current step and advance
        POST /onboarding/previous - Go back one step
        POST /onboarding/reset - Restart the tour with sample data
        POST /onboarding/finish - End the tour and drop its state
        POST /onboarding/steps/{step}/complete - Mark a step complete
        POST /onboarding/steps/{step} - Jump to a step
        POST /onboarding/interactions - Record an interaction
        GET /onboarding/tour/{step} - Tooltip to show for present targets
        GET /onboarding/sample-data - Demo portfolio
    """
    router = APIRouter(prefix="/onboarding", tags=["onboarding"])

    async def apply(
        session_factory: async_sessionmaker[AsyncSession],
        profile: Profile,
        transition: Callable[[OnboardingProgress], Any],
    ) -> ProgressResponse:
        async with session_factory() as session:
            progress = await get_or_create_progress(session, profile.id)
            try:
                transition(progress)
            except UnknownStepError as exc:
                logger.warning("unknown_onboarding_step", step=exc.step)
                raise HTTPException(status_code=404, detail=str(exc)) from exc
            progress = await save_progress(session, profile.id, progress)
        return _response(progress)

    @router.get("/", response_model=ProgressResponse)
    async def get_state(
        profile: Profile = Depends(get_current_profile),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> ProgressResponse:
        async with session_factory() as session:
            progress = await get_or_create_progress(session, profile.id)
        return _response(progress)

    @router.post("/next", response_model=ProgressResponse)
    async def next_step(
        profile: Profile = Depends(get_current_profile),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> ProgressResponse:
        return await apply(session_factory, profile, lambda p: p.next_step())

    @router.post("/previous", response_model=ProgressResponse)
    async def previous_step(
        profile: Profile = Depends(get_current_profile),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> ProgressResponse:
        return await apply(session_factory, profile, lambda p: p.previous_step())

    @router.post("/reset", response_model=ProgressResponse)
    async def reset(
        profile: Profile = Depends(get_current_profile),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> ProgressResponse:
        logger.info("onboarding_reset")
        return await apply(session_factory, profile, lambda p: p.reset())

    @router.post("/finish")
    async def finish(
        profile: Profile = Depends(get_current_profile),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> dict[str, bool]:
        async with session_factory() as session:
            deleted = await delete_progress(session, profile.id)
        return {"finished": True, "had_progress": deleted}

    @router.post("/steps/{step}/complete", response_model=ProgressResponse)
    async def complete_step(
        step: str,
        profile: Profile = Depends(get_current_profile),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> ProgressResponse:
        return await apply(session_factory, profile, lambda p: p.complete_step(step))

    @router.post("/steps/{step}", response_model=ProgressResponse)
    async def go_to_step(
        step: str,
        profile: Profile = Depends(get_current_profile),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> ProgressResponse:
        return await apply(session_factory, profile, lambda p: p.go_to_step(step))

    @router.post("/interactions", response_model=ProgressResponse)
    async def track_interaction(
        body: InteractionRequest,
        profile: Profile = Depends(get_current_profile),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> ProgressResponse:
        return await apply(
            session_factory, profile, lambda p: p.track_interaction(body.type, body.data)
        )

    @router.get("/tour/{step}", response_model=TourResolution)
    async def tour_step(
        step: str,
        targets: list[str] | None = Query(None),  # noqa: B008
        profile: Profile = Depends(get_current_profile),  # noqa: B008
    ) -> TourResolution:
        try:
            return resolve_tour_step(step, frozenset(targets or []))
        except UnknownStepError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc

    @router.get("/sample-data", response_model=SampleDataResponse)
    async def sample_data(
        profile: Profile = Depends(get_current_profile),  # noqa: B008
    ) -> dict[str, Any]:
        projects = []
        for project in get_sample_projects():
            health = classify_health(project)
            projects.append(
                {**project, "health": health.value, "health_label": get_health_status_label(health)}
            )
        return {"projects": projects, "insights": SAMPLE_INSIGHTS}

    return router
