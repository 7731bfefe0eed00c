"""Lesson endpoints for Learnd.

This module provides REST API endpoints for a user's project records:
- List with lifecycle, signal, text and date filters
- Create (subject to the plan's lesson quota), read and update
- Lifecycle status changes with audit trail and webhook notification

Every response carries the derived health and display labels.

Example:
    >>> from fastapi import FastAPI
    >>> from learnd.web.routes.lessons import create_lessons_router
    >>>
    >>> app = FastAPI()
    >>> app.include_router(create_lessons_router())
"""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from pydantic import BaseModel, Field, field_validator

from learnd.database.models import Lesson, Profile
from learnd.database.normalize import normalize_budget_status, normalize_timeline_status
from learnd.database.queries.lesson import (
    change_lesson_status,
    count_lessons,
    create_lesson,
    get_lesson,
    list_lessons,
    list_status_changes,
    update_lesson,
)
from learnd.lifecycle import (
    InvalidTransitionError,
    MissingStatusMetadataError,
    StatusChangeRequest,
    status_change_insights,
)
from learnd.logging import get_logger
from learnd.notifications import StatusChangeNotifier
from learnd.status import (
    BudgetStatus,
    LifecycleStatus,
    TimelineStatus,
    classify_health,
    get_health_status_label,
    get_lifecycle_status_label,
)
from learnd.tiers import UsageMetrics, check_limitation
from learnd.web.auth import get_current_profile, get_notifier, get_session_factory

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = get_logger(__name__)

BUDGET_VALUES = frozenset(s.value for s in BudgetStatus)
TIMELINE_VALUES = frozenset(s.value for s in TimelineStatus)
LIFECYCLE_VALUES = frozenset(s.value for s in LifecycleStatus)


class LessonResponse(BaseModel):
    """A lesson with its derived health.

    Attributes:
        health: Derived health value (healthy, at-risk, ... mixed)
        health_label: Display label for health
        lifecycle_label: Display label for lifecycle status
    """

    id: UUID
    created_by: UUID
    project_name: str
    client_name: str | None
    role: str
    lifecycle_status: str
    satisfaction: int | None
    budget_status: str | None
    timeline_status: str | None
    scope_change: bool
    notes: str | None
    created_at: datetime
    updated_at: datetime
    health: str
    health_label: str
    lifecycle_label: str

    @classmethod
    def from_lesson(cls, lesson: Lesson) -> LessonResponse:
        health = classify_health(lesson)
        return cls(
            id=lesson.id,
            created_by=lesson.created_by,
            project_name=lesson.project_name,
            client_name=lesson.client_name,
            role=lesson.role,
            lifecycle_status=lesson.lifecycle_status,
            satisfaction=lesson.satisfaction,
            budget_status=lesson.budget_status,
            timeline_status=lesson.timeline_status,
            scope_change=lesson.scope_change,
            notes=lesson.notes,
            created_at=lesson.created_at,
            updated_at=lesson.updated_at,
            health=health.value,
            health_label=get_health_status_label(health),
            lifecycle_label=get_lifecycle_status_label(lesson.lifecycle_status),
        )


def _canonical_budget(value: str | None) -> str | None:
    normalized = normalize_budget_status(value)
    if normalized is not None and normalized not in BUDGET_VALUES:
        raise ValueError(f"budget_status must be one of {sorted(BUDGET_VALUES)}")
    return normalized


def _canonical_timeline(value: str | None) -> str | None:
    normalized = normalize_timeline_status(value)
    if normalized is not None and normalized not in TIMELINE_VALUES:
        raise ValueError(f"timeline_status must be one of {sorted(TIMELINE_VALUES)}")
    return normalized


class LessonCreate(BaseModel):
    """Submitted project record. Budget and timeline accept known spellings."""

    project_name: str = Field(..., min_length=1, max_length=200)
    role: str = Field(..., min_length=1, max_length=100)
    client_name: str | None = Field(default=None, max_length=200)
    lifecycle_status: LifecycleStatus = LifecycleStatus.active
    satisfaction: int | None = Field(default=None, ge=1, le=5)
    budget_status: str | None = None
    timeline_status: str | None = None
    scope_change: bool = False
    notes: str | None = None

    @field_validator("budget_status")
    @classmethod
    def validate_budget(cls, value: str | None) -> str | None:
        return _canonical_budget(value)

    @field_validator("timeline_status")
    @classmethod
    def validate_timeline(cls, value: str | None) -> str | None:
        return _canonical_timeline(value)


class LessonUpdate(BaseModel):
    """Partial update; only fields that are sent are applied."""

    project_name: str | None = Field(default=None, min_length=1, max_length=200)
    role: str | None = Field(default=None, min_length=1, max_length=100)
    client_name: str | None = Field(default=None, max_length=200)
    satisfaction: int | None = Field(default=None, ge=1, le=5)
    budget_status: str | None = None
    timeline_status: str | None = None
    scope_change: bool | None = None
    notes: str | None = None

    @field_validator("budget_status")
    @classmethod
    def validate_budget(cls, value: str | None) -> str | None:
        return _canonical_budget(value)

    @field_validator("timeline_status")
    @classmethod
    def validate_timeline(cls, value: str | None) -> str | None:
        return _canonical_timeline(value)


class StatusChangeResponse(BaseModel):
    id: UUID
    lesson_id: UUID
    previous_status: str
    new_status: str
    reason: str
    details: dict[str, Any]
    changed_by: UUID
    created_at: datetime

    model_config = {"from_attributes": True}


class StatusChangeResult(BaseModel):
    lesson: LessonResponse
    change: StatusChangeResponse
    insights: list[str]


def parse_lifecycle_filter(values: list[str] | None) -> list[str] | None:
    """Validate a lifecycle filter; None or empty means every status.

    Raises:
        HTTPException: 400 for an unknown status.
    """
    if not values:
        return None
    invalid = [value for value in values if value not in LIFECYCLE_VALUES]
    if invalid:
        logger.warning("invalid_status_filter", values=invalid)
        raise HTTPException(status_code=400, detail=f"Invalid lifecycle status: {', '.join(invalid)}")
    return list(values)


def parse_signal_filter(kind: str, value: str | None) -> str | None:
    """Validate a budget or timeline filter; ``any`` disables it.

    Raises:
        HTTPException: 400 for an unknown value.
    """
    if value is None or value == "any":
        return None
    if kind == "budget":
        normalized, allowed = normalize_budget_status(value), BUDGET_VALUES
    else:
        normalized, allowed = normalize_timeline_status(value), TIMELINE_VALUES
    if normalized not in allowed:
        logger.warning("invalid_status_filter", kind=kind, value=value)
        raise HTTPException(status_code=400, detail=f"Invalid {kind} status: {value}")
    return normalized


def check_date_window(date_from: date | None, date_to: date | None) -> None:
    if date_from is not None and date_to is not None and date_from > date_to:
        logger.warning("invalid_date_window", date_from=str(date_from), date_to=str(date_to))
        raise HTTPException(status_code=400, detail="date_from must not be after date_to")


def create_lessons_router() -> APIRouter:
    """Create lessons router with endpoints.

    Routes:
        GET /lessons/ - List the caller's lessons with optional filters
        POST /lessons/ - Create a lesson
        GET /lessons/{lesson_id} - Get a lesson
        PATCH /lessons/{lesson_id} - Update a lesson's fields
        POST /lessons/{lesson_id}/status - Change lifecycle status
        GET /lessons/{lesson_id}/status-history - Lifecycle audit trail
    """
    router = APIRouter(prefix="/lessons", tags=["lessons"])

    @router.get("/", response_model=list[LessonResponse])
    async def list_lessons_endpoint(
        lifecycle_status: list[str] | None = Query(  # noqa: B008
            None, description="Lifecycle statuses to include (default all)"
        ),
        budget: str | None = Query(None, description="under, on, over or any"),
        timeline: str | None = Query(None, description="early, on-time, late or any"),
        min_satisfaction: int | None = Query(None, ge=1, le=5),
        scope_change: bool | None = Query(None),
        project_name: str | None = Query(None, description="Project name contains"),
        client_name: str | None = Query(None, description="Client name contains"),
        date_from: date | None = Query(None),
        date_to: date | None = Query(None),
        profile: Profile = Depends(get_current_profile),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> list[LessonResponse]:
        statuses = parse_lifecycle_filter(lifecycle_status)
        budget_status = parse_signal_filter("budget", budget)
        timeline_status = parse_signal_filter("timeline", timeline)
        check_date_window(date_from, date_to)

        async with session_factory() as session:
            lessons = await list_lessons(
                session,
                owner_id=profile.id,
                lifecycle_statuses=statuses,
                budget_status=budget_status,
                timeline_status=timeline_status,
                min_satisfaction=min_satisfaction,
                scope_change=scope_change,
                project_name=project_name,
                client_name=client_name,
                date_from=date_from,
                date_to=date_to,
            )

        logger.info("lessons_listed", count=len(lessons), lifecycle_status=statuses)
        return [LessonResponse.from_lesson(lesson) for lesson in lessons]

    @router.post("/", response_model=LessonResponse, status_code=201)
    async def create_lesson_endpoint(
        body: LessonCreate,
        profile: Profile = Depends(get_current_profile),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> LessonResponse:
        """Create a lesson.

        Raises:
            HTTPException: 403 when the plan's lesson quota is used up
        """
        async with session_factory() as session:
            used = await count_lessons(session, profile.id)
            tier = profile.subscription_tier
            limitation = check_limitation(
                "lessons", UsageMetrics.for_tier(tier, lessons_used=used), tier
            )
            if limitation.is_blocked:
                logger.info("lesson_quota_reached", lessons_used=used, tier=tier)
                raise HTTPException(
                    status_code=403,
                    detail=f"{limitation.message}. {limitation.upgrade_prompt}",
                )

            lesson = await create_lesson(
                session,
                created_by=profile.id,
                project_name=body.project_name,
                role=body.role,
                client_name=body.client_name,
                lifecycle_status=body.lifecycle_status.value,
                satisfaction=body.satisfaction,
                budget_status=body.budget_status,
                timeline_status=body.timeline_status,
                scope_change=body.scope_change,
                notes=body.notes,
            )

        return LessonResponse.from_lesson(lesson)

    @router.get("/{lesson_id}", response_model=LessonResponse)
    async def get_lesson_endpoint(
        lesson_id: UUID,
        profile: Profile = Depends(get_current_profile),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> LessonResponse:
        async with session_factory() as session:
            lesson = await get_lesson(session, lesson_id, profile.id)

        if lesson is None:
            logger.warning("lesson_not_found", lesson_id=str(lesson_id))
            raise HTTPException(status_code=404, detail=f"Lesson {lesson_id} not found")

        return LessonResponse.from_lesson(lesson)

    @router.patch("/{lesson_id}", response_model=LessonResponse)
    async def update_lesson_endpoint(
        lesson_id: UUID,
        body: LessonUpdate,
        profile: Profile = Depends(get_current_profile),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> LessonResponse:
        updates = body.model_dump(exclude_unset=True)
        for required in ("project_name", "role", "scope_change"):
            if required in updates and updates[required] is None:
                raise HTTPException(status_code=422, detail=f"{required} cannot be null")

        async with session_factory() as session:
            if await get_lesson(session, lesson_id, profile.id) is None:
                logger.warning("lesson_not_found", lesson_id=str(lesson_id))
                raise HTTPException(status_code=404, detail=f"Lesson {lesson_id} not found")
            lesson = await update_lesson(session, lesson_id, profile.id, updates)

        return LessonResponse.from_lesson(lesson)

    @router.post("/{lesson_id}/status", response_model=StatusChangeResult)
    async def change_status_endpoint(
        lesson_id: UUID,
        body: StatusChangeRequest,
        background_tasks: BackgroundTasks,
        profile: Profile = Depends(get_current_profile),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
        notifier: StatusChangeNotifier | None = Depends(get_notifier),  # noqa: B008
    ) -> dict[str, Any]:
        """Change a lesson's lifecycle status.

        Raises:
            HTTPException: 404 unknown lesson, 409 transition not allowed,
                422 missing reason/summary/satisfaction/blockers
        """
        async with session_factory() as session:
            if await get_lesson(session, lesson_id, profile.id) is None:
                logger.warning("lesson_not_found", lesson_id=str(lesson_id))
                raise HTTPException(status_code=404, detail=f"Lesson {lesson_id} not found")
            try:
                lesson, change = await change_lesson_status(session, lesson_id, profile.id, body)
            except InvalidTransitionError as exc:
                raise HTTPException(status_code=409, detail=str(exc)) from exc
            except MissingStatusMetadataError as exc:
                raise HTTPException(status_code=422, detail=str(exc)) from exc

        insights = status_change_insights(change.new_status, change.details, change.previous_status)

        if notifier is not None:
            background_tasks.add_task(
                notifier.notify_status_change, lesson, change, insights, profile.id
            )

        return {
            "lesson": LessonResponse.from_lesson(lesson),
            "change": StatusChangeResponse.model_validate(change),
            "insights": insights,
        }

    @router.get("/{lesson_id}/status-history", response_model=list[StatusChangeResponse])
    async def status_history_endpoint(
        lesson_id: UUID,
        profile: Profile = Depends(get_current_profile),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> list[StatusChangeResponse]:
        async with session_factory() as session:
            try:
                changes = await list_status_changes(session, lesson_id, profile.id)
            except ValueError as exc:
                logger.warning("lesson_not_found", lesson_id=str(lesson_id))
                raise HTTPException(status_code=404, detail=str(exc)) from exc

        return [StatusChangeResponse.model_validate(change) for change in changes]

    return router
