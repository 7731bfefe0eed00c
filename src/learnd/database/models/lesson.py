"""Lesson model for Learnd.

A lesson is one project record: the outcome signals a consultant captured
for a client engagement (satisfaction, budget, timeline, scope change) plus
descriptive fields. Project health is derived from these signals by
learnd.status and is never stored.
"""

from __future__ import annotations

import uuid

from sqlalchemy import Boolean, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from learnd.database.models.base import Base, TimestampMixin
from learnd.status import LifecycleStatus


class Lesson(TimestampMixin, Base):
    """A captured project outcome.

    Attributes:
        id: UUID primary key (from TimestampMixin).
        created_by: Owning profile.
        project_name: Project title.
        client_name: Optional client the work was done for.
        role: The submitter's role on the project.
        lifecycle_status: active, on_hold, completed or cancelled.
        satisfaction: Client satisfaction 1-5, nullable.
        budget_status: under, on or over, nullable.
        timeline_status: early, on-time or late, nullable.
        scope_change: Whether scope changed mid-project.
        notes: Free-text notes.
        created_at: Row creation timestamp (from TimestampMixin).
        updated_at: Last modification timestamp (from TimestampMixin).
        status_changes: Audit trail of lifecycle changes.
    """

    __tablename__ = "lessons"

    created_by: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("profiles.id"),
        nullable=False,
        index=True,
    )
    project_name: Mapped[str] = mapped_column(Text, nullable=False)
    client_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    role: Mapped[str] = mapped_column(Text, nullable=False)
    lifecycle_status: Mapped[str] = mapped_column(
        Text,
        default=LifecycleStatus.active.value,
        nullable=False,
    )
    satisfaction: Mapped[int | None] = mapped_column(Integer, nullable=True)
    budget_status: Mapped[str | None] = mapped_column(Text, nullable=True)
    timeline_status: Mapped[str | None] = mapped_column(Text, nullable=True)
    scope_change: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    status_changes: Mapped[list["LessonStatusChange"]] = relationship(  # noqa: F821
        "LessonStatusChange",
        back_populates="lesson",
        order_by="LessonStatusChange.created_at",
        lazy="selectin",
    )
