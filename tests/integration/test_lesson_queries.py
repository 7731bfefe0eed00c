"""Integration tests for lesson query functions.

Covers CRUD, owner scoping, status normalization on the way in, the
filter set used by the API and exports, lifecycle changes with their
audit trail, and demo portfolio seeding.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from learnd.database.models import Profile
from learnd.database.queries.lesson import (
    change_lesson_status,
    count_lessons,
    create_lesson,
    get_lesson,
    list_lessons,
    list_status_changes,
    seed_sample_lessons,
    update_lesson,
)
from learnd.database.queries.profile import create_profile
from learnd.lifecycle import (
    InvalidTransitionError,
    MissingStatusMetadataError,
    StatusChangeRequest,
)
from learnd.status import LifecycleStatus


@pytest.mark.asyncio
async def test_create_lesson_with_all_fields(db_session: AsyncSession, profile: Profile) -> None:
    lesson = await create_lesson(
        db_session,
        created_by=profile.id,
        project_name="Warehouse Scanner App",
        role="Tech Lead",
        client_name="Northwind",
        satisfaction=4,
        budget_status="on",
        timeline_status="on-time",
        scope_change=True,
        notes="Barcode SDK licence arrived late",
    )

    assert lesson.id is not None
    assert lesson.created_by == profile.id
    assert lesson.lifecycle_status == "active"
    assert lesson.satisfaction == 4
    assert lesson.scope_change is True
    assert lesson.created_at is not None


@pytest.mark.asyncio
async def test_create_lesson_normalizes_legacy_spellings(
    db_session: AsyncSession, profile: Profile
) -> None:
    lesson = await create_lesson(
        db_session,
        created_by=profile.id,
        project_name="Legacy Import",
        role="PM",
        budget_status="Over_Budget",
        timeline_status="behind_schedule",
    )

    assert lesson.budget_status == "over"
    assert lesson.timeline_status == "late"


@pytest.mark.asyncio
async def test_create_lesson_rejects_bad_values(db_session: AsyncSession, profile: Profile) -> None:
    with pytest.raises(ValueError, match="lifecycle status"):
        await create_lesson(
            db_session,
            created_by=profile.id,
            project_name="P",
            role="R",
            lifecycle_status="archived",
        )

    with pytest.raises(ValueError, match="Satisfaction"):
        await create_lesson(
            db_session, created_by=profile.id, project_name="P", role="R", satisfaction=6
        )


@pytest.mark.asyncio
async def test_get_lesson_is_owner_scoped(db_session: AsyncSession, profile: Profile) -> None:
    other = await create_profile(db_session, email="other@example.com")
    lesson = await create_lesson(db_session, created_by=profile.id, project_name="Mine", role="Dev")

    assert await get_lesson(db_session, lesson.id, profile.id) is not None
    assert await get_lesson(db_session, lesson.id, other.id) is None
    assert await get_lesson(db_session, uuid4(), profile.id) is None


@pytest.mark.asyncio
async def test_list_lessons_newest_first(db_session: AsyncSession, profile: Profile) -> None:
    now = datetime.now(timezone.utc)
    for days_ago, name in ((30, "Oldest"), (1, "Newest"), (10, "Middle")):
        await create_lesson(
            db_session,
            created_by=profile.id,
            project_name=name,
            role="Dev",
            created_at=now - timedelta(days=days_ago),
        )

    lessons = await list_lessons(db_session, profile.id)

    assert [lesson.project_name for lesson in lessons] == ["Newest", "Middle", "Oldest"]


@pytest.mark.asyncio
async def test_list_lessons_filters(db_session: AsyncSession, profile: Profile) -> None:
    await create_lesson(
        db_session,
        created_by=profile.id,
        project_name="Portal Rebuild",
        role="Dev",
        client_name="Acme Corp",
        satisfaction=5,
        budget_status="under",
        timeline_status="early",
    )
    await create_lesson(
        db_session,
        created_by=profile.id,
        project_name="Data Migration",
        role="Dev",
        client_name="Globex",
        lifecycle_status="completed",
        satisfaction=2,
        budget_status="over",
        timeline_status="late",
        scope_change=True,
    )
    await create_lesson(
        db_session,
        created_by=profile.id,
        project_name="Unrated Spike",
        role="Dev",
        lifecycle_status="on_hold",
    )

    async def names(**filters: object) -> set[str]:
        lessons = await list_lessons(db_session, profile.id, **filters)
        return {lesson.project_name for lesson in lessons}

    assert await names(lifecycle_statuses=["completed"]) == {"Data Migration"}
    assert await names(lifecycle_statuses=["active", "on_hold"]) == {
        "Portal Rebuild",
        "Unrated Spike",
    }
    assert await names(budget_status="over") == {"Data Migration"}
    assert await names(budget_status="Over_Budget") == {"Data Migration"}
    assert await names(timeline_status="ahead_of_schedule") == {"Portal Rebuild"}
    assert await names(min_satisfaction=3) == {"Portal Rebuild"}
    assert await names(scope_change=True) == {"Data Migration"}
    assert await names(project_name="PORTAL") == {"Portal Rebuild"}
    assert await names(client_name="glob") == {"Data Migration"}


@pytest.mark.asyncio
async def test_list_lessons_date_window_is_inclusive(
    db_session: AsyncSession, profile: Profile
) -> None:
    await create_lesson(
        db_session,
        created_by=profile.id,
        project_name="March",
        role="Dev",
        created_at=datetime(2024, 3, 15, 18, 30, tzinfo=timezone.utc),
    )
    await create_lesson(
        db_session,
        created_by=profile.id,
        project_name="April",
        role="Dev",
        created_at=datetime(2024, 4, 2, 9, 0, tzinfo=timezone.utc),
    )

    lessons = await list_lessons(
        db_session, profile.id, date_from=date(2024, 3, 15), date_to=date(2024, 3, 15)
    )

    assert [lesson.project_name for lesson in lessons] == ["March"]


@pytest.mark.asyncio
async def test_list_lessons_limit_and_count(db_session: AsyncSession, profile: Profile) -> None:
    for index in range(4):
        await create_lesson(db_session, created_by=profile.id, project_name=f"P{index}", role="Dev")

    assert len(await list_lessons(db_session, profile.id, limit=2)) == 2
    assert await count_lessons(db_session, profile.id) == 4


@pytest.mark.asyncio
async def test_update_lesson_normalizes_and_validates(
    db_session: AsyncSession, profile: Profile
) -> None:
    lesson = await create_lesson(db_session, created_by=profile.id, project_name="P", role="Dev")

    updated = await update_lesson(
        db_session,
        lesson.id,
        profile.id,
        {"timeline_status": "On_Schedule", "satisfaction": 3, "notes": "Kickoff went well"},
    )

    assert updated.timeline_status == "on-time"
    assert updated.satisfaction == 3
    assert updated.notes == "Kickoff went well"

    with pytest.raises(ValueError, match="not updatable"):
        await update_lesson(db_session, lesson.id, profile.id, {"lifecycle_status": "completed"})

    with pytest.raises(ValueError, match="Satisfaction"):
        await update_lesson(db_session, lesson.id, profile.id, {"satisfaction": 0})

    with pytest.raises(ValueError, match="not found"):
        await update_lesson(db_session, uuid4(), profile.id, {"notes": "x"})


@pytest.mark.asyncio
async def test_change_status_to_completed_records_audit(
    db_session: AsyncSession, profile: Profile
) -> None:
    lesson = await create_lesson(
        db_session, created_by=profile.id, project_name="P", role="Dev", satisfaction=3
    )

    updated, change = await change_lesson_status(
        db_session,
        lesson.id,
        profile.id,
        StatusChangeRequest(
            new_status=LifecycleStatus.completed,
            reason="Delivered",
            completion_summary="Shipped to production",
            final_satisfaction=5,
        ),
    )

    assert updated.lifecycle_status == "completed"
    assert updated.satisfaction == 5
    assert change.previous_status == "active"
    assert change.new_status == "completed"
    assert change.reason == "Delivered"
    assert change.details["completion_summary"] == "Shipped to production"
    assert change.details["final_satisfaction"] == 5
    assert change.changed_by == profile.id


@pytest.mark.asyncio
async def test_change_status_rejects_terminal_transition(
    db_session: AsyncSession, profile: Profile
) -> None:
    lesson = await create_lesson(
        db_session,
        created_by=profile.id,
        project_name="P",
        role="Dev",
        lifecycle_status="completed",
    )

    with pytest.raises(InvalidTransitionError):
        await change_lesson_status(
            db_session,
            lesson.id,
            profile.id,
            StatusChangeRequest(new_status=LifecycleStatus.active, reason="Reopen"),
        )

    refreshed = await get_lesson(db_session, lesson.id, profile.id)
    assert refreshed is not None
    assert refreshed.lifecycle_status == "completed"


@pytest.mark.asyncio
async def test_change_status_requires_blockers_for_hold(
    db_session: AsyncSession, profile: Profile
) -> None:
    lesson = await create_lesson(db_session, created_by=profile.id, project_name="P", role="Dev")

    with pytest.raises(MissingStatusMetadataError) as exc_info:
        await change_lesson_status(
            db_session,
            lesson.id,
            profile.id,
            StatusChangeRequest(new_status=LifecycleStatus.on_hold, reason="Waiting on client"),
        )

    assert exc_info.value.missing == ["blockers"]


@pytest.mark.asyncio
async def test_change_status_unknown_lesson(db_session: AsyncSession, profile: Profile) -> None:
    with pytest.raises(ValueError, match="not found"):
        await change_lesson_status(
            db_session,
            uuid4(),
            profile.id,
            StatusChangeRequest(new_status=LifecycleStatus.cancelled, reason="x"),
        )


@pytest.mark.asyncio
async def test_status_history_in_order(db_session: AsyncSession, profile: Profile) -> None:
    lesson = await create_lesson(db_session, created_by=profile.id, project_name="P", role="Dev")

    await change_lesson_status(
        db_session,
        lesson.id,
        profile.id,
        StatusChangeRequest(
            new_status=LifecycleStatus.on_hold, reason="Paused", blockers="Budget freeze"
        ),
    )
    await change_lesson_status(
        db_session,
        lesson.id,
        profile.id,
        StatusChangeRequest(new_status=LifecycleStatus.active, reason="Funding approved"),
    )

    history = await list_status_changes(db_session, lesson.id, profile.id)

    assert [(c.previous_status, c.new_status) for c in history] == [
        ("active", "on_hold"),
        ("on_hold", "active"),
    ]
    assert history[0].details["blockers"] == "Budget freeze"

    with pytest.raises(ValueError, match="not found"):
        await list_status_changes(db_session, uuid4(), profile.id)


@pytest.mark.asyncio
async def test_seed_sample_lessons(db_session: AsyncSession, profile: Profile) -> None:
    now = datetime(2024, 6, 30, 12, 0, tzinfo=timezone.utc)

    lessons = await seed_sample_lessons(db_session, profile.id, now=now)

    assert len(lessons) == 15
    assert await count_lessons(db_session, profile.id) == 15

    statuses = [lesson.lifecycle_status for lesson in lessons]
    assert statuses.count("completed") == 6
    assert statuses.count("cancelled") == 1

    assert all(lesson.timeline_status in {"early", "on-time", "late"} for lesson in lessons)

    listed = await list_lessons(db_session, profile.id)
    assert listed[0].project_name == lessons[0].project_name
    assert listed[-1].project_name == lessons[-1].project_name
