"""Database query functions for Learnd.

This module provides async query functions for all database entities:
- Profile CRUD operations
- Lesson CRUD, filtering and lifecycle changes
- Onboarding progress persistence
"""

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
from learnd.database.queries.onboarding import (
    delete_progress,
    get_or_create_progress,
    save_progress,
)
from learnd.database.queries.profile import (
    create_profile,
    get_profile,
    get_profile_by_email,
    update_profile,
)

__all__ = [
    # Profile queries
    "create_profile",
    "get_profile",
    "get_profile_by_email",
    "update_profile",
    # Lesson queries
    "create_lesson",
    "get_lesson",
    "list_lessons",
    "count_lessons",
    "update_lesson",
    "change_lesson_status",
    "list_status_changes",
    "seed_sample_lessons",
    # Onboarding queries
    "get_or_create_progress",
    "save_progress",
    "delete_progress",
]
