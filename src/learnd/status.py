"""Project lifecycle and health classification for Learnd.

Health is a derived value, never stored: it is a pure function of a
project's lifecycle status, satisfaction score, budget status and timeline
status. Active work (``active`` and ``on_hold``) is graded as healthy,
at-risk or critical; everything else is graded retrospectively as
successful, underperformed or mixed.

Every function in this module accepts either objects exposing the signal
attributes (ORM rows, dataclasses, namespaces) or plain mappings, and none
of them raise for unexpected values. Missing signals count as "not a
problem".

Example usage:
    >>> from learnd.status import classify_health, get_health_status_label
    >>> project = {"lifecycle_status": "active", "satisfaction": 4,
    ...            "budget_status": "over", "timeline_status": "late"}
    >>> health = classify_health(project)
    >>> get_health_status_label(health)
    'Critical'
"""

from __future__ import annotations

import enum
from collections.abc import Iterable, Mapping
from typing import Any, TypeVar

T = TypeVar("T")


class LifecycleStatus(str, enum.Enum):
    """Where a project sits in its life.

    States:
        active: Work in progress.
        on_hold: Temporarily paused, still graded as active work.
        completed: Finished and delivered.
        cancelled: Stopped before delivery.
    """

    active = "active"
    on_hold = "on_hold"
    completed = "completed"
    cancelled = "cancelled"


class ProjectHealth(str, enum.Enum):
    """Derived health grade for a project."""

    healthy = "healthy"
    at_risk = "at-risk"
    critical = "critical"
    successful = "successful"
    underperformed = "underperformed"
    mixed = "mixed"


class BudgetStatus(str, enum.Enum):
    under = "under"
    on = "on"
    over = "over"


class TimelineStatus(str, enum.Enum):
    early = "early"
    on_time = "on-time"
    late = "late"


ACTIVE_STATUSES: frozenset[str] = frozenset(
    {LifecycleStatus.active.value, LifecycleStatus.on_hold.value}
)
COMPLETED_STATUSES: frozenset[str] = frozenset(
    {LifecycleStatus.completed.value, LifecycleStatus.cancelled.value}
)

ACTIVE_HEALTH_STATUSES: tuple[ProjectHealth, ...] = (
    ProjectHealth.healthy,
    ProjectHealth.at_risk,
    ProjectHealth.critical,
)
COMPLETED_HEALTH_STATUSES: tuple[ProjectHealth, ...] = (
    ProjectHealth.successful,
    ProjectHealth.underperformed,
    ProjectHealth.mixed,
)

LIFECYCLE_STATUS_LABELS: dict[str, str] = {
    "active": "Active",
    "on_hold": "On Hold",
    "completed": "Completed",
    "cancelled": "Cancelled",
}

HEALTH_STATUS_LABELS: dict[str, str] = {
    "healthy": "Healthy",
    "at-risk": "At Risk",
    "critical": "Critical",
    "successful": "Successful",
    "underperformed": "Underperformed",
    "mixed": "Mixed Results",
}

NEUTRAL_STYLE = "bg-gray-100 text-gray-800 border-gray-200"

HEALTH_STATUS_STYLES: dict[str, str] = {
    "healthy": "bg-green-100 text-green-800 border-green-200",
    "at-risk": "bg-yellow-100 text-yellow-800 border-yellow-200",
    "critical": "bg-red-100 text-red-800 border-red-200",
    "successful": "bg-green-100 text-green-800 border-green-200",
    "underperformed": "bg-red-100 text-red-800 border-red-200",
    "mixed": "bg-blue-100 text-blue-800 border-blue-200",
}

LIFECYCLE_STATUS_STYLES: dict[str, str] = {
    "active": "bg-blue-100 text-blue-800 border-blue-200",
    "on_hold": "bg-amber-100 text-amber-800 border-amber-200",
    "completed": "bg-green-100 text-green-800 border-green-200",
    "cancelled": "bg-gray-100 text-gray-600 border-gray-300",
}


def _value(raw: Any) -> Any:
    """Collapse enum members to their underlying value."""
    if isinstance(raw, enum.Enum):
        return raw.value
    return raw


def get_field(project: Any, name: str) -> Any:
    """Read a signal from an object attribute or a mapping key.

    Args:
        project: Record exposing the field as attribute or key.
        name: Field name.

    Returns:
        The field value (enum members unwrapped), or None when absent.
    """
    if isinstance(project, Mapping):
        return _value(project.get(name))
    return _value(getattr(project, name, None))


def _score(satisfaction: Any) -> float | None:
    # bool is an int subclass; True must not read as a score of 1
    if isinstance(satisfaction, bool):
        return None
    if isinstance(satisfaction, (int, float)):
        return satisfaction
    return None


def calculate_active_project_health(
    satisfaction: Any,
    budget_status: Any,
    timeline_status: Any,
) -> ProjectHealth:
    """Grade an in-flight project.

    A project is critical when at least two of (late, over budget,
    satisfaction below 2) hold, at-risk when any of (late, over budget,
    satisfaction below 3) holds, and healthy otherwise.

    Args:
        satisfaction: Score 1-5 or None.
        budget_status: under, on, over, None or any other string.
        timeline_status: early, on-time, late, None or any other string.

    Returns:
        ProjectHealth.healthy, at_risk or critical.
    """
    score = _score(satisfaction)
    is_behind = _value(timeline_status) == TimelineStatus.late.value
    is_over = _value(budget_status) == BudgetStatus.over.value
    very_low_sat = score is not None and score < 2
    low_sat = score is not None and score < 3

    if sum((is_behind, is_over, very_low_sat)) >= 2:
        return ProjectHealth.critical
    if is_behind or is_over or low_sat:
        return ProjectHealth.at_risk
    return ProjectHealth.healthy


def calculate_completed_project_health(
    satisfaction: Any,
    budget_status: Any,
    timeline_status: Any,
) -> ProjectHealth:
    """Grade a finished (or cancelled) project retrospectively.

    Successful requires on-time-or-early delivery, on-or-under budget and
    satisfaction of at least 4. Underperformed is any of over budget, late
    or satisfaction below 3. Everything else is mixed.
    """
    score = _score(satisfaction)
    timeline = _value(timeline_status)
    budget = _value(budget_status)

    on_time_or_early = timeline in (TimelineStatus.on_time.value, TimelineStatus.early.value)
    on_or_under = budget in (BudgetStatus.on.value, BudgetStatus.under.value)
    high_sat = score is not None and score >= 4
    low_sat = score is not None and score < 3

    if on_time_or_early and on_or_under and high_sat:
        return ProjectHealth.successful
    if budget == BudgetStatus.over.value or timeline == TimelineStatus.late.value or low_sat:
        return ProjectHealth.underperformed
    return ProjectHealth.mixed


def classify_health(project: Any) -> ProjectHealth:
    """Classify a project record into its health grade.

    Lifecycle ``active`` and ``on_hold`` use the active rules; every other
    value, including unknown or missing ones, uses the completed rules.

    Args:
        project: Object or mapping with lifecycle_status, satisfaction,
            budget_status and timeline_status.

    Returns:
        The derived ProjectHealth.
    """
    satisfaction = get_field(project, "satisfaction")
    budget_status = get_field(project, "budget_status")
    timeline_status = get_field(project, "timeline_status")

    if is_active_project(project):
        return calculate_active_project_health(satisfaction, budget_status, timeline_status)
    return calculate_completed_project_health(satisfaction, budget_status, timeline_status)


def get_lifecycle_status_label(status: Any) -> str:
    """Human-readable lifecycle label; unknown input is echoed back."""
    value = _value(status)
    return LIFECYCLE_STATUS_LABELS.get(value, value) if isinstance(value, str) else str(value)


def get_health_status_label(health: Any) -> str:
    """Human-readable health label; unknown input is echoed back."""
    value = _value(health)
    return HEALTH_STATUS_LABELS.get(value, value) if isinstance(value, str) else str(value)


def get_health_status_styles(health: Any) -> str:
    """CSS utility classes for a health badge, neutral gray when unknown."""
    value = _value(health)
    if not isinstance(value, str):
        return NEUTRAL_STYLE
    return HEALTH_STATUS_STYLES.get(value, NEUTRAL_STYLE)


def get_lifecycle_status_styles(status: Any) -> str:
    """CSS utility classes for a lifecycle badge, neutral gray when unknown."""
    value = _value(status)
    if not isinstance(value, str):
        return NEUTRAL_STYLE
    return LIFECYCLE_STATUS_STYLES.get(value, NEUTRAL_STYLE)


def is_active_project(project: Any) -> bool:
    return get_field(project, "lifecycle_status") in ACTIVE_STATUSES


def is_completed_project(project: Any) -> bool:
    return get_field(project, "lifecycle_status") in COMPLETED_STATUSES


def partition_by_lifecycle(projects: Iterable[T]) -> tuple[list[T], list[T]]:
    """Split projects into (active, completed) buckets.

    Every record lands in exactly one bucket. Records whose lifecycle status
    is missing or unrecognized go to the completed bucket, matching the
    dispatch used by classify_health.
    """
    active: list[T] = []
    completed: list[T] = []
    for project in projects:
        if is_active_project(project):
            active.append(project)
        else:
            completed.append(project)
    return active, completed


def group_projects_by_health(projects: Iterable[T]) -> dict[ProjectHealth, list[T]]:
    """Group projects by derived health. Only populated grades appear."""
    groups: dict[ProjectHealth, list[T]] = {}
    for project in projects:
        groups.setdefault(classify_health(project), []).append(project)
    return groups


def get_active_project_health_distribution(projects: Iterable[Any]) -> dict[str, int]:
    """Count health grades across the active bucket.

    Returns:
        Dict with keys healthy, at-risk, critical and total.
    """
    active, _ = partition_by_lifecycle(projects)
    distribution = {health.value: 0 for health in ACTIVE_HEALTH_STATUSES}
    for project in active:
        distribution[classify_health(project).value] += 1
    distribution["total"] = len(active)
    return distribution


def get_completed_project_health_distribution(projects: Iterable[Any]) -> dict[str, int]:
    """Count health grades across completed and cancelled projects.

    Records with a missing or unrecognized lifecycle status are left out.

    Returns:
        Dict with keys successful, underperformed, mixed and total.
    """
    completed = [project for project in projects if is_completed_project(project)]
    distribution = {health.value: 0 for health in COMPLETED_HEALTH_STATUSES}
    for project in completed:
        distribution[classify_health(project).value] += 1
    distribution["total"] = len(completed)
    return distribution


def default_lifecycle_filter() -> list[LifecycleStatus]:
    """Lifecycle statuses shown by default in project listings."""
    return [LifecycleStatus.active, LifecycleStatus.on_hold]
