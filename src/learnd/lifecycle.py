"""Project lifecycle transitions for Learnd.

This module implements the lifecycle state machine for lessons: which
status changes are allowed, which audit metadata each change requires, and
which follow-up insights a change suggests.

    active   -> on_hold, completed, cancelled
    on_hold  -> active, completed, cancelled
    completed -> (terminal)
    cancelled -> active
"""

from __future__ import annotations

from datetime import date
from typing import Any

import structlog
from pydantic import BaseModel, Field

from learnd.status import LifecycleStatus

logger = structlog.get_logger(__name__)


class LifecycleError(Exception):
    """Base class for lifecycle validation failures."""


class InvalidTransitionError(LifecycleError):
    """Raised when a status change is not allowed.

    Attributes:
        current: The current lifecycle status.
        target: The attempted target status.
        lesson_id: The lesson that failed to transition.
    """

    def __init__(self, current: str, target: str, lesson_id: str | None = None):
        self.current = current
        self.target = target
        self.lesson_id = lesson_id
        msg = f"Invalid transition from {current} to {target}"
        if lesson_id:
            msg += f" for lesson {lesson_id}"
        super().__init__(msg)


class MissingStatusMetadataError(LifecycleError):
    """Raised when a status change lacks required audit fields.

    Attributes:
        target: The attempted target status.
        missing: Names of the missing fields.
    """

    def __init__(self, target: str, missing: list[str]):
        self.target = target
        self.missing = missing
        super().__init__(
            f"Changing status to {target} requires: {', '.join(missing)}"
        )


VALID_TRANSITIONS: dict[LifecycleStatus, set[LifecycleStatus]] = {
    LifecycleStatus.active: {
        LifecycleStatus.on_hold,
        LifecycleStatus.completed,
        LifecycleStatus.cancelled,
    },
    LifecycleStatus.on_hold: {
        LifecycleStatus.active,
        LifecycleStatus.completed,
        LifecycleStatus.cancelled,
    },
    LifecycleStatus.completed: set(),  # Terminal state
    LifecycleStatus.cancelled: {LifecycleStatus.active},
}


class StatusChangeRequest(BaseModel):
    """A requested lifecycle change with its audit metadata.

    Attributes:
        new_status: Target lifecycle status.
        reason: Why the status is changing (always required).
        completion_summary: Outcome summary, required when completing.
        completion_date: Optional delivery date when completing.
        final_satisfaction: Final client satisfaction 1-5, required when completing.
        blockers: What is blocking progress, required when putting on hold.
        restart_conditions: Optional conditions for resuming an on-hold project.
    """

    new_status: LifecycleStatus
    reason: str = ""
    completion_summary: str | None = None
    completion_date: date | None = None
    final_satisfaction: int | None = Field(default=None, ge=1, le=5)
    blockers: str | None = None
    restart_conditions: str | None = None


def _coerce(status: Any) -> LifecycleStatus | None:
    try:
        return LifecycleStatus(status)
    except ValueError:
        return None


def get_valid_transitions(current: Any) -> set[LifecycleStatus]:
    """Statuses reachable from ``current``.

    An unrecognized current status may move to any known status, which lets
    legacy rows be repaired.
    """
    status = _coerce(current)
    if status is None:
        return set(LifecycleStatus)
    return set(VALID_TRANSITIONS[status])


def validate_transition(current: Any, target: Any) -> bool:
    """Return True if moving from ``current`` to ``target`` is allowed."""
    target_status = _coerce(target)
    if target_status is None:
        return False
    return target_status in get_valid_transitions(current)


def requires_additional_info(current: Any, target: Any) -> bool:
    """Whether the change needs more than a reason.

    Completing, pausing and restarting a finished project all prompt for
    extra context.
    """
    target_status = _coerce(target)
    if target_status in (LifecycleStatus.completed, LifecycleStatus.on_hold):
        return True
    return target_status == LifecycleStatus.active and _coerce(current) in (
        LifecycleStatus.completed,
        LifecycleStatus.cancelled,
    )


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


def validate_status_change(
    current: Any,
    request: StatusChangeRequest,
    lesson_id: str | None = None,
) -> None:
    """Validate a requested change against the state machine and metadata rules.

    Raises:
        InvalidTransitionError: If the transition is not allowed.
        MissingStatusMetadataError: If required audit fields are missing.
    """
    target = request.new_status
    if not validate_transition(current, target):
        current_value = current.value if isinstance(current, LifecycleStatus) else str(current)
        logger.warning(
            "invalid_lifecycle_transition",
            lesson_id=lesson_id,
            current=current_value,
            target=target.value,
        )
        raise InvalidTransitionError(current_value, target.value, lesson_id)

    missing: list[str] = []
    if _blank(request.reason):
        missing.append("reason")
    if target == LifecycleStatus.completed:
        if _blank(request.completion_summary):
            missing.append("completion_summary")
        if request.final_satisfaction is None:
            missing.append("final_satisfaction")
    elif target == LifecycleStatus.on_hold:
        if _blank(request.blockers):
            missing.append("blockers")

    if missing:
        logger.warning("status_change_metadata_missing", target=target.value, missing=missing)
        raise MissingStatusMetadataError(target.value, missing)


def build_status_change_details(request: StatusChangeRequest) -> dict[str, Any]:
    """Keep only the metadata relevant to the target status.

    Returns:
        JSON-serializable details for the audit trail.
    """
    details: dict[str, Any] = {}
    if request.new_status == LifecycleStatus.completed:
        details["completion_summary"] = request.completion_summary
        details["final_satisfaction"] = request.final_satisfaction
        if request.completion_date is not None:
            details["completion_date"] = request.completion_date.isoformat()
    elif request.new_status == LifecycleStatus.on_hold:
        details["blockers"] = request.blockers
        if request.restart_conditions:
            details["restart_conditions"] = request.restart_conditions
    return details


def status_change_insights(
    new_status: Any,
    details: dict[str, Any],
    previous_status: Any = None,
) -> list[str]:
    """Suggested follow-ups after a lifecycle change."""
    target = _coerce(new_status)
    insights: list[str] = []

    if target == LifecycleStatus.completed:
        insights.append("Project completed: extract learnings while they are fresh")
        if details.get("completion_summary"):
            insights.append("Share the completion summary with the team")
    elif target == LifecycleStatus.on_hold:
        insights.append("Project paused: address the recorded blockers")
        if details.get("restart_conditions"):
            insights.append("Review restart conditions before resuming")
    elif target == LifecycleStatus.cancelled:
        insights.append("Project cancelled: document the reasons to improve future decisions")
    elif target == LifecycleStatus.active and _coerce(previous_status) == LifecycleStatus.on_hold:
        insights.append("Project resumed: monitor health closely over the next weeks")

    return insights
