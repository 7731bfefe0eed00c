"""Database indexes for Learnd.

Creates indexes backing the owner-scoped lesson listings and the
status-history lookups.

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""

from __future__ import annotations

from typing import Sequence, Union

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_index("ix_lessons_created_by", "lessons", ["created_by"])

    # Dashboard and export listings filter by owner and lifecycle, newest first
    op.create_index(
        "ix_lessons_owner_lifecycle_created",
        "lessons",
        ["created_by", "lifecycle_status", "created_at"],
    )

    op.create_index(
        "ix_lesson_status_changes_lesson_id",
        "lesson_status_changes",
        ["lesson_id"],
    )


def downgrade() -> None:
    op.drop_index("ix_lesson_status_changes_lesson_id", table_name="lesson_status_changes")
    op.drop_index("ix_lessons_owner_lifecycle_created", table_name="lessons")
    op.drop_index("ix_lessons_created_by", table_name="lessons")
