"""Lesson CRUD and lifecycle query functions for Learnd.

Every function is scoped to the owning profile: a lesson that belongs to
someone else behaves exactly like a missing one. Budget and timeline
values are normalized here, on the way in, so the health classifier only
ever sees canonical vocabulary.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from learnd.database.models.lesson import Lesson
from learnd.database.models.status_change import LessonStatusChange
from learnd.database.normalize import (
    normalize_budget_status,
    normalize_lesson_fields,
    normalize_timeline_status,
)
from learnd.lifecycle import (
    StatusChangeRequest,
    build_status_change_details,
    validate_status_change,
)
from learnd.sample_data import get_sample_projects
from learnd.status import LifecycleStatus

logger = structlog.get_logger(__name__)

UPDATABLE_FIELDS: frozenset[str] = frozenset(
    {
        "project_name",
        "client_name",
        "role",
        "satisfaction",
        "budget_status",
        "timeline_status",
        "scope_change",
        "notes",
    }
)


def _check_lifecycle_status(status: str) -> str:
    valid = {s.value for s in LifecycleStatus}
    if status not in valid:
        raise ValueError(f"Unknown lifecycle status: {status}")
    return status


def _check_satisfaction(satisfaction: int | None) -> None:
    if satisfaction is not None and not 1 <= satisfaction <= 5:
        raise ValueError(f"Satisfaction must be between 1 and 5, got {satisfaction}")


def _day_start(value: date) -> datetime:
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


async def create_lesson(
    session: AsyncSession,
    created_by: UUID,
    project_name: str,
    role: str,
    client_name: str | None = None,
    lifecycle_status: str = LifecycleStatus.active.value,
    satisfaction: int | None = None,
    budget_status: str | None = None,
    timeline_status: str | None = None,
    scope_change: bool = False,
    notes: str | None = None,
    created_at: datetime | None = None,
) -> Lesson:
    """Create a new lesson.

    Args:
        session: Active async database session.
        created_by: UUID of the owning profile.
        project_name: Project title.
        role: The submitter's role on the project.
        client_name: Optional client name.
        lifecycle_status: Initial lifecycle status (default active).
        satisfaction: Client satisfaction 1-5.
        budget_status: Budget outcome in any known spelling.
        timeline_status: Timeline outcome in any known spelling.
        scope_change: Whether scope changed.
        notes: Free-text notes.
        created_at: Optional creation timestamp (imports and demo data).

    Returns:
        The newly created Lesson instance.

    Raises:
        ValueError: If lifecycle status or satisfaction is out of range.
    """
    _check_lifecycle_status(lifecycle_status)
    _check_satisfaction(satisfaction)

    lesson = Lesson(
        created_by=created_by,
        project_name=project_name,
        role=role,
        client_name=client_name,
        lifecycle_status=lifecycle_status,
        satisfaction=satisfaction,
        budget_status=normalize_budget_status(budget_status),
        timeline_status=normalize_timeline_status(timeline_status),
        scope_change=scope_change,
        notes=notes,
    )
    if created_at is not None:
        lesson.created_at = created_at
        lesson.updated_at = created_at

    session.add(lesson)
    await session.commit()
    await session.refresh(lesson)

    logger.info(
        "lesson_created",
        lesson_id=str(lesson.id),
        created_by=str(created_by),
        lifecycle_status=lifecycle_status,
    )

    return lesson


async def get_lesson(
    session: AsyncSession,
    lesson_id: UUID,
    owner_id: UUID,
) -> Lesson | None:
    """Retrieve a lesson owned by ``owner_id``.

    Returns:
        The Lesson instance if found and owned, None otherwise.
    """
    stmt = select(Lesson).where(Lesson.id == lesson_id, Lesson.created_by == owner_id)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def list_lessons(
    session: AsyncSession,
    owner_id: UUID,
    lifecycle_statuses: list[str] | None = None,
    budget_status: str | None = None,
    timeline_status: str | None = None,
    min_satisfaction: int | None = None,
    scope_change: bool | None = None,
    project_name: str | None = None,
    client_name: str | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    limit: int | None = None,
) -> list[Lesson]:
    """List a profile's lessons with optional filters.

    Args:
        session: Active async database session.
        owner_id: UUID of the owning profile.
        lifecycle_statuses: Exact lifecycle values to include (None for all).
        budget_status: Budget filter, normalized before comparison.
        timeline_status: Timeline filter, normalized before comparison.
        min_satisfaction: Only rated lessons at or above this score.
        scope_change: Filter on the scope change flag.
        project_name: Case-insensitive substring of the project name.
        client_name: Case-insensitive substring of the client name.
        date_from: Inclusive lower bound on the creation date.
        date_to: Inclusive upper bound on the creation date.
        limit: Optional maximum number of rows.

    Returns:
        List of matching Lesson instances, newest first.
    """
    stmt = select(Lesson).where(Lesson.created_by == owner_id)

    if lifecycle_statuses is not None:
        stmt = stmt.where(Lesson.lifecycle_status.in_(lifecycle_statuses))

    if budget_status is not None:
        stmt = stmt.where(Lesson.budget_status == normalize_budget_status(budget_status))

    if timeline_status is not None:
        stmt = stmt.where(Lesson.timeline_status == normalize_timeline_status(timeline_status))

    if min_satisfaction is not None:
        stmt = stmt.where(Lesson.satisfaction >= min_satisfaction)

    if scope_change is not None:
        stmt = stmt.where(Lesson.scope_change == scope_change)

    if project_name:
        stmt = stmt.where(
            func.lower(Lesson.project_name).contains(project_name.strip().lower(), autoescape=True)
        )

    if client_name:
        stmt = stmt.where(
            func.lower(Lesson.client_name).contains(client_name.strip().lower(), autoescape=True)
        )

    if date_from is not None:
        stmt = stmt.where(Lesson.created_at >= _day_start(date_from))

    if date_to is not None:
        stmt = stmt.where(Lesson.created_at < _day_start(date_to + timedelta(days=1)))

    stmt = stmt.order_by(Lesson.created_at.desc())
    if limit is not None:
        stmt = stmt.limit(limit)

    result = await session.execute(stmt)
    return list(result.scalars().all())


async def count_lessons(session: AsyncSession, owner_id: UUID) -> int:
    """Number of lessons owned by a profile (for usage limits)."""
    stmt = select(func.count()).select_from(Lesson).where(Lesson.created_by == owner_id)
    result = await session.execute(stmt)
    return int(result.scalar_one())


async def update_lesson(
    session: AsyncSession,
    lesson_id: UUID,
    owner_id: UUID,
    updates: dict[str, Any],
) -> Lesson:
    """Apply field updates to a lesson.

    Lifecycle status is not updatable here; use change_lesson_status.

    Args:
        session: Active async database session.
        lesson_id: UUID of the lesson to update.
        owner_id: UUID of the owning profile.
        updates: Field name to new value.

    Returns:
        The updated Lesson instance.

    Raises:
        ValueError: If the lesson is not found, a field is not updatable
            or satisfaction is out of range.
    """
    unknown = set(updates) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Fields not updatable: {', '.join(sorted(unknown))}")

    lesson = await get_lesson(session, lesson_id, owner_id)
    if lesson is None:
        raise ValueError(f"Lesson {lesson_id} not found")

    normalized = normalize_lesson_fields(updates)
    if "satisfaction" in normalized:
        _check_satisfaction(normalized["satisfaction"])

    for name, value in normalized.items():
        setattr(lesson, name, value)

    await session.commit()
    await session.refresh(lesson)

    logger.info(
        "lesson_updated",
        lesson_id=str(lesson_id),
        fields=sorted(normalized),
    )

    return lesson


async def change_lesson_status(
    session: AsyncSession,
    lesson_id: UUID,
    owner_id: UUID,
    request: StatusChangeRequest,
) -> tuple[Lesson, LessonStatusChange]:
    """Move a lesson to a new lifecycle status and record the audit entry.

    Completing with a final satisfaction also writes it to the lesson's
    satisfaction.

    Returns:
        Tuple of the updated Lesson and the new LessonStatusChange.

    Raises:
        ValueError: If the lesson is not found.
        InvalidTransitionError: If the transition is not allowed.
        MissingStatusMetadataError: If required audit fields are missing.
    """
    lesson = await get_lesson(session, lesson_id, owner_id)
    if lesson is None:
        raise ValueError(f"Lesson {lesson_id} not found")

    previous_status = lesson.lifecycle_status
    validate_status_change(previous_status, request, lesson_id=str(lesson_id))

    details = build_status_change_details(request)
    change = LessonStatusChange(
        lesson_id=lesson.id,
        previous_status=previous_status,
        new_status=request.new_status.value,
        reason=request.reason.strip(),
        details=details,
        changed_by=owner_id,
    )

    lesson.lifecycle_status = request.new_status.value
    if request.new_status == LifecycleStatus.completed and request.final_satisfaction is not None:
        lesson.satisfaction = request.final_satisfaction

    session.add(change)
    await session.commit()
    await session.refresh(lesson)
    await session.refresh(change)

    logger.info(
        "lesson_status_changed",
        lesson_id=str(lesson_id),
        previous_status=previous_status,
        new_status=request.new_status.value,
    )

    return lesson, change


async def list_status_changes(
    session: AsyncSession,
    lesson_id: UUID,
    owner_id: UUID,
) -> list[LessonStatusChange]:
    """Audit trail of a lesson, oldest change first.

    Raises:
        ValueError: If the lesson is not found.
    """
    if await get_lesson(session, lesson_id, owner_id) is None:
        raise ValueError(f"Lesson {lesson_id} not found")

    stmt = (
        select(LessonStatusChange)
        .where(LessonStatusChange.lesson_id == lesson_id)
        .order_by(LessonStatusChange.created_at.asc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def seed_sample_lessons(
    session: AsyncSession,
    owner_id: UUID,
    now: datetime | None = None,
) -> list[Lesson]:
    """Load the demo portfolio for a profile.

    Creation dates are spread back from ``now`` so trends have several
    months to show.

    Returns:
        The created Lesson instances, in sample order.
    """
    now = now or datetime.now(timezone.utc)
    lessons: list[Lesson] = []
    for index, project in enumerate(get_sample_projects()):
        created_at = now - timedelta(days=12 * index)
        lesson = Lesson(
            created_by=owner_id,
            project_name=project["project_name"],
            role=project["role"],
            client_name=project.get("client_name"),
            lifecycle_status=project.get("lifecycle_status", LifecycleStatus.active.value),
            satisfaction=project.get("satisfaction"),
            budget_status=project.get("budget_status"),
            timeline_status=project.get("timeline_status"),
            scope_change=bool(project.get("scope_change")),
            notes=project.get("notes"),
            created_at=created_at,
            updated_at=created_at,
        )
        session.add(lesson)
        lessons.append(lesson)

    await session.commit()
    for lesson in lessons:
        await session.refresh(lesson)

    logger.info("sample_lessons_seeded", owner_id=str(owner_id), count=len(lessons))

    return lessons
