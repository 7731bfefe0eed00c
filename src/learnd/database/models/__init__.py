"""SQLAlchemy ORM models for Learnd.

This module defines the database schema: profiles, lessons (project
records), the lifecycle audit trail and onboarding progress.

All models use SQLAlchemy 2.0 declarative style with Mapped[] type annotations.
"""

from learnd.database.models.base import Base, TimestampMixin
from learnd.database.models.lesson import Lesson
from learnd.database.models.onboarding import OnboardingProgressRecord
from learnd.database.models.profile import Profile, SubscriptionTier, UserRole
from learnd.database.models.status_change import LessonStatusChange

__all__ = [
    "Base",
    "TimestampMixin",
    "Profile",
    "UserRole",
    "SubscriptionTier",
    "Lesson",
    "LessonStatusChange",
    "OnboardingProgressRecord",
]
