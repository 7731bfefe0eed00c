"""Database layer for Learnd.

This module handles database connections, session management, the ORM
models and vocabulary normalization at the data-access boundary.

Public API:
    get_engine: Create an AsyncEngine from DatabaseConfig.
    get_session_factory: Create an async_sessionmaker from an engine.
    create_all: Create tables from model metadata.
    Base: SQLAlchemy declarative base for all models.
"""

from learnd.database.connection import create_all, get_engine, get_session_factory
from learnd.database.models import (
    Base,
    Lesson,
    LessonStatusChange,
    OnboardingProgressRecord,
    Profile,
    SubscriptionTier,
    TimestampMixin,
    UserRole,
)

__all__ = [
    "get_engine",
    "get_session_factory",
    "create_all",
    "Base",
    "TimestampMixin",
    "Profile",
    "UserRole",
    "SubscriptionTier",
    "Lesson",
    "LessonStatusChange",
    "OnboardingProgressRecord",
]
