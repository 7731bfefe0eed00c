"""Onboarding progress model for Learnd."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from learnd.database.models.base import Base, JSONType, TimestampMixin, utcnow


class OnboardingProgressRecord(TimestampMixin, Base):
    """Persisted tour state, one row per profile.

    Attributes:
        profile_id: Owner of this progress row (unique).
        current_step: Step the user is on.
        completed_steps: Steps finished so far, as a JSON list.
        sample_data_loaded: Whether the demo portfolio is shown.
        started_at: When the tour began.
        ai_clicks: Interactions with AI prompts during the tour.
        completions: Steps explicitly completed.
        pages_visited: Dashboard paths visited during the tour.
    """

    __tablename__ = "onboarding_progress"

    profile_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("profiles.id"),
        nullable=False,
        unique=True,
    )
    current_step: Mapped[str] = mapped_column(Text, nullable=False, default="welcome")
    completed_steps: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    sample_data_loaded: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    ai_clicks: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    completions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    pages_visited: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
