"""Lifecycle audit trail model for Learnd.

Each lifecycle change on a lesson appends one row recording who changed
it, why, and the status-specific details (completion summary, blockers,
restart conditions).
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from learnd.database.models.base import Base, JSONType, TimestampMixin


class LessonStatusChange(TimestampMixin, Base):
    """One entry in a lesson's lifecycle history.

    Attributes:
        id: UUID primary key (from TimestampMixin).
        lesson_id: The lesson that changed.
        previous_status: Lifecycle status before the change.
        new_status: Lifecycle status after the change.
        reason: Required free-text reason.
        details: Target-specific metadata as JSON.
        changed_by: Profile that made the change.
        created_at: When the change happened (from TimestampMixin).
    """

    __tablename__ = "lesson_status_changes"

    lesson_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("lessons.id"),
        nullable=False,
        index=True,
    )
    previous_status: Mapped[str] = mapped_column(Text, nullable=False)
    new_status: Mapped[str] = mapped_column(Text, nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    details: Mapped[dict[str, Any]] = mapped_column(
        JSONType,
        nullable=False,
        default=dict,
    )
    changed_by: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("profiles.id"),
        nullable=False,
    )

    lesson: Mapped["Lesson"] = relationship(  # noqa: F821
        "Lesson",
        back_populates="status_changes",
    )
