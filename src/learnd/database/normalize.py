"""Vocabulary normalization at the data-access boundary.

Budget and timeline statuses arrive in several spellings depending on the
form, import or demo fixture that produced them. These helpers map the
known variants onto the canonical members before rows are written, so the
health classifier only ever compares against one vocabulary.

Unrecognized values are returned unchanged (trimmed), so downstream
classification falls through to its default branch instead of failing.
"""

from __future__ import annotations

from typing import Any

_TIMELINE_ALIASES: dict[str, str] = {
    "early": "early",
    "ahead": "early",
    "ahead_of_schedule": "early",
    "ahead-of-schedule": "early",
    "on-time": "on-time",
    "on": "on-time",
    "on_time": "on-time",
    "ontime": "on-time",
    "on_schedule": "on-time",
    "on-schedule": "on-time",
    "late": "late",
    "delayed": "late",
    "behind": "late",
    "behind_schedule": "late",
    "behind-schedule": "late",
}

_BUDGET_ALIASES: dict[str, str] = {
    "under": "under",
    "under_budget": "under",
    "under-budget": "under",
    "on": "on",
    "on_budget": "on",
    "on-budget": "on",
    "over": "over",
    "over_budget": "over",
    "over-budget": "over",
}


def _normalize(value: str | None, aliases: dict[str, str]) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    if not stripped:
        return None
    return aliases.get(stripped.lower(), stripped)


def normalize_timeline_status(value: str | None) -> str | None:
    """Map a timeline spelling onto early, on-time or late.

    >>> normalize_timeline_status("behind_schedule")
    'late'
    """
    return _normalize(value, _TIMELINE_ALIASES)


def normalize_budget_status(value: str | None) -> str | None:
    """Map a budget spelling onto under, on or over."""
    return _normalize(value, _BUDGET_ALIASES)


def normalize_lesson_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``fields`` with status vocabularies normalized.

    Keys that are absent stay absent; other keys are passed through.
    """
    normalized = dict(fields)
    if "timeline_status" in normalized:
        normalized["timeline_status"] = normalize_timeline_status(normalized["timeline_status"])
    if "budget_status" in normalized:
        normalized["budget_status"] = normalize_budget_status(normalized["budget_status"])
    return normalized
