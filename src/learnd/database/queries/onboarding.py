"""Onboarding progress query functions for Learnd.

One progress row per profile. The tour logic lives in learnd.onboarding;
these functions convert between the persisted record and the
OnboardingProgress state machine.
"""

from __future__ import annotations

from uuid import UUID

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from learnd.database.models.onboarding import OnboardingProgressRecord
from learnd.onboarding import OnboardingProgress

logger = structlog.get_logger(__name__)


def to_progress(record: OnboardingProgressRecord) -> OnboardingProgress:
    return OnboardingProgress(
        current_step=record.current_step,
        completed_steps=list(record.completed_steps or []),
        sample_data_loaded=record.sample_data_loaded,
        started_at=record.started_at,
        ai_clicks=record.ai_clicks,
        completions=record.completions,
        pages_visited=list(record.pages_visited or []),
    )


def _apply(record: OnboardingProgressRecord, progress: OnboardingProgress) -> None:
    # Fresh list objects so the JSON columns are flagged as changed
    record.current_step = progress.current_step or "welcome"
    record.completed_steps = list(progress.completed_steps)
    record.sample_data_loaded = progress.sample_data_loaded
    record.started_at = progress.started_at
    record.ai_clicks = progress.ai_clicks
    record.completions = progress.completions
    record.pages_visited = list(progress.pages_visited)


async def get_progress(
    session: AsyncSession,
    profile_id: UUID,
) -> OnboardingProgressRecord | None:
    stmt = select(OnboardingProgressRecord).where(
        OnboardingProgressRecord.profile_id == profile_id
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_or_create_progress(
    session: AsyncSession,
    profile_id: UUID,
) -> OnboardingProgress:
    """Load a profile's tour state, starting a new tour if none exists.

    Args:
        session: Active async database session.
        profile_id: UUID of the profile taking the tour.

    Returns:
        The profile's OnboardingProgress.
    """
    record = await get_progress(session, profile_id)
    if record is not None:
        return to_progress(record)

    progress = OnboardingProgress()
    record = OnboardingProgressRecord(profile_id=profile_id)
    _apply(record, progress)
    session.add(record)
    await session.commit()

    logger.info("onboarding_started", profile_id=str(profile_id))

    return progress


async def save_progress(
    session: AsyncSession,
    profile_id: UUID,
    progress: OnboardingProgress,
) -> OnboardingProgress:
    """Persist a profile's tour state, creating the row if needed.

    Returns:
        The saved OnboardingProgress.
    """
    record = await get_progress(session, profile_id)
    if record is None:
        record = OnboardingProgressRecord(profile_id=profile_id)
        session.add(record)
    _apply(record, progress)
    await session.commit()
    await session.refresh(record)

    logger.debug(
        "onboarding_progress_saved",
        profile_id=str(profile_id),
        current_step=record.current_step,
    )

    return to_progress(record)


async def delete_progress(session: AsyncSession, profile_id: UUID) -> bool:
    """Remove a profile's tour state.

    Returns:
        True if a row was deleted, False if there was none.
    """
    stmt = delete(OnboardingProgressRecord).where(
        OnboardingProgressRecord.profile_id == profile_id
    )
    result = await session.execute(stmt)
    await session.commit()

    deleted = result.rowcount > 0
    if deleted:
        logger.info("onboarding_finished", profile_id=str(profile_id))
    return deleted
