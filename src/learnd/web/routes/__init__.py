"""FastAPI route definitions for the Learnd web interface.

This module contains API and dashboard route handlers for health checks,
the signed-in profile, lessons, analytics, exports, reports, onboarding
and the HTML dashboard.
"""

from __future__ import annotations

from learnd.web.routes.analytics import create_analytics_router
from learnd.web.routes.dashboard import create_dashboard_router
from learnd.web.routes.exports import create_exports_router
from learnd.web.routes.health import (
    HealthResponse,
    ReadinessResponse,
    create_health_router,
)
from learnd.web.routes.lessons import (
    LessonCreate,
    LessonResponse,
    LessonUpdate,
    StatusChangeResponse,
    create_lessons_router,
)
from learnd.web.routes.me import MeResponse, UsageResponse, create_me_router
from learnd.web.routes.onboarding import ProgressResponse, create_onboarding_router
from learnd.web.routes.reports import ReportRequest, create_reports_router

__all__ = [
    # Health
    "HealthResponse",
    "ReadinessResponse",
    "create_health_router",
    # Profile
    "MeResponse",
    "UsageResponse",
    "create_me_router",
    # Lessons
    "LessonCreate",
    "LessonResponse",
    "LessonUpdate",
    "StatusChangeResponse",
    "create_lessons_router",
    # Analytics, exports, reports
    "create_analytics_router",
    "create_exports_router",
    "ReportRequest",
    "create_reports_router",
    # Onboarding
    "ProgressResponse",
    "create_onboarding_router",
    # Dashboard
    "create_dashboard_router",
]
