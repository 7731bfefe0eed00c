"""Lesson exports for Learnd.

This module produces the two export formats offered to paying users:

- CSV text (RFC 4180 quoting via the csv module)
- A paginated HTML table document with title, applied filters and a
  summary block, rendered from templates/table_document.html

Both formats carry lifecycle and health labels computed by the shared
classifier in learnd.status.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable, Sequence
from datetime import date, datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field

from learnd.analytics import as_datetime
from learnd.database.normalize import normalize_budget_status, normalize_timeline_status
from learnd.rendering import get_template_loader
from learnd.status import (
    classify_health,
    get_field,
    get_health_status_label,
    get_lifecycle_status_label,
)

MISSING = "—"

CSV_HEADERS: list[str] = [
    "Project Name",
    "Client Name",
    "Role",
    "Lifecycle Status",
    "Health Status",
    "Date Created",
    "Date Updated",
    "Satisfaction",
    "Budget Status",
    "Timeline Status",
    "Scope Change",
    "Notes",
]

TABLE_HEADERS: list[str] = [
    "Project",
    "Client",
    "Role",
    "Date Created",
    "Status",
    "Health",
    "Satisfaction",
    "Budget",
    "Timeline",
    "Scope Change",
]


class ExportFilters(BaseModel):
    """Filters applied before exporting.

    ``budget`` and ``timeline`` accept ``any`` (or None) to disable the
    filter. Date bounds are inclusive and compare calendar dates.
    """

    project_name: str | None = None
    client_name: str | None = None
    budget: str | None = None
    timeline: str | None = None
    min_satisfaction: int | None = Field(default=None, ge=1, le=5)
    date_from: date | None = None
    date_to: date | None = None


class DocumentOptions(BaseModel):
    """Presentation options for the table document."""

    title: str = "Lessons Learned Report"
    subtitle: str | None = None
    include_filters: bool = True
    include_summary: bool = True
    orientation: Literal["portrait", "landscape"] = "landscape"
    rows_per_page: int = Field(default=25, ge=1)


def _active_choice(value: str | None) -> bool:
    return bool(value) and value != "any"


def _text(value: str | None) -> str:
    return (value or "").strip()


def has_active_filters(filters: ExportFilters) -> bool:
    return bool(
        _text(filters.project_name)
        or _text(filters.client_name)
        or _active_choice(filters.budget)
        or _active_choice(filters.timeline)
        or filters.min_satisfaction is not None
        or filters.date_from is not None
        or filters.date_to is not None
    )


def format_date(value: Any) -> str:
    """Format a date, datetime or ISO string as MM/DD/YYYY."""
    if isinstance(value, datetime):
        return value.strftime("%m/%d/%Y")
    if isinstance(value, date):
        return value.strftime("%m/%d/%Y")
    parsed = as_datetime(value)
    if parsed is None:
        return MISSING
    return parsed.strftime("%m/%d/%Y")


def describe_filters(filters: ExportFilters) -> list[str]:
    """Human-readable lines describing the active filters."""
    lines: list[str] = []
    if filters.date_from is not None or filters.date_to is not None:
        start = format_date(filters.date_from) if filters.date_from else "Not specified"
        end = format_date(filters.date_to) if filters.date_to else "Not specified"
        lines.append(f"Date Range: {start} to {end}")
    if _text(filters.project_name):
        lines.append(f'Project Name: "{filters.project_name}"')
    if _text(filters.client_name):
        lines.append(f'Client Name: "{filters.client_name}"')
    if _active_choice(filters.budget):
        lines.append(f"Budget Status: {filters.budget}")
    if _active_choice(filters.timeline):
        lines.append(f"Timeline Status: {filters.timeline}")
    if filters.min_satisfaction is not None:
        lines.append(f"Minimum Satisfaction: {filters.min_satisfaction}/5")
    return lines


def _contains(haystack: Any, needle: str | None) -> bool:
    needle = _text(needle)
    if not needle:
        return True
    return isinstance(haystack, str) and needle.lower() in haystack.lower()


def _created_date(lesson: Any) -> date | None:
    created = as_datetime(get_field(lesson, "created_at"))
    return created.date() if created else None


def apply_export_filters(lessons: Iterable[Any], filters: ExportFilters) -> list[Any]:
    """Return the lessons matching every active filter, preserving order."""
    budget = normalize_budget_status(filters.budget) if _active_choice(filters.budget) else None
    timeline = (
        normalize_timeline_status(filters.timeline) if _active_choice(filters.timeline) else None
    )

    matched: list[Any] = []
    for lesson in lessons:
        if not _contains(get_field(lesson, "project_name"), filters.project_name):
            continue
        if not _contains(get_field(lesson, "client_name"), filters.client_name):
            continue
        if budget is not None and get_field(lesson, "budget_status") != budget:
            continue
        if timeline is not None and get_field(lesson, "timeline_status") != timeline:
            continue
        if filters.min_satisfaction is not None:
            score = get_field(lesson, "satisfaction")
            if not isinstance(score, int) or isinstance(score, bool):
                continue
            if score < filters.min_satisfaction:
                continue
        if filters.date_from is not None or filters.date_to is not None:
            created = _created_date(lesson)
            if created is None:
                continue
            if filters.date_from is not None and created < filters.date_from:
                continue
            if filters.date_to is not None and created > filters.date_to:
                continue
        matched.append(lesson)
    return matched


def _or_missing(value: Any) -> str:
    if value is None or value == "":
        return MISSING
    return str(value)


def format_lesson_for_export(lesson: Any) -> dict[str, str]:
    """Display values for one lesson; missing values become an em dash."""
    return {
        "project_name": _or_missing(get_field(lesson, "project_name")),
        "client_name": _or_missing(get_field(lesson, "client_name")),
        "role": _or_missing(get_field(lesson, "role")),
        "lifecycle_status": _or_missing(
            get_lifecycle_status_label(get_field(lesson, "lifecycle_status") or "")
        ),
        "health": get_health_status_label(classify_health(lesson)),
        "created_at": format_date(get_field(lesson, "created_at")),
        "updated_at": format_date(get_field(lesson, "updated_at")),
        "satisfaction": _or_missing(get_field(lesson, "satisfaction")),
        "budget_status": _or_missing(get_field(lesson, "budget_status")),
        "timeline_status": _or_missing(get_field(lesson, "timeline_status")),
        "scope_change": "Yes" if get_field(lesson, "scope_change") else "No",
        "notes": _or_missing(get_field(lesson, "notes")),
    }


def _csv_value(value: str) -> str:
    return "" if value == MISSING else value


def generate_csv_content(lessons: Iterable[Any], include_headers: bool = True) -> str:
    """Render lessons as CSV text.

    Missing values are written as empty cells; notes keep their line
    breaks inside quoted fields.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    if include_headers:
        writer.writerow(CSV_HEADERS)
    for lesson in lessons:
        row = format_lesson_for_export(lesson)
        writer.writerow(
            [
                _csv_value(row["project_name"]),
                _csv_value(row["client_name"]),
                _csv_value(row["role"]),
                _csv_value(row["lifecycle_status"]),
                row["health"],
                _csv_value(row["created_at"]),
                _csv_value(row["updated_at"]),
                _csv_value(row["satisfaction"]),
                _csv_value(row["budget_status"]),
                _csv_value(row["timeline_status"]),
                row["scope_change"],
                _csv_value(row["notes"]),
            ]
        )
    return buffer.getvalue()


def summarize_lessons(lessons: Sequence[Any]) -> dict[str, Any]:
    """Summary block for the table document."""
    scores = [
        score
        for score in (get_field(lesson, "satisfaction") for lesson in lessons)
        if isinstance(score, int) and not isinstance(score, bool)
    ]
    budget: dict[str, int] = {}
    for lesson in lessons:
        status = get_field(lesson, "budget_status") or "unknown"
        budget[status] = budget.get(status, 0) + 1
    return {
        "total": len(lessons),
        "avg_satisfaction": f"{sum(scores) / len(scores):.1f}" if scores else "N/A",
        "budget_distribution": ", ".join(f"{status}: {count}" for status, count in budget.items()),
    }


def paginate(rows: Sequence[Any], per_page: int) -> list[list[Any]]:
    """Split rows into pages; an empty input still yields one empty page."""
    if not rows:
        return [[]]
    return [list(rows[i : i + per_page]) for i in range(0, len(rows), per_page)]


def generate_table_document(
    lessons: Sequence[Any],
    filters: ExportFilters | None = None,
    options: DocumentOptions | None = None,
    generated_at: datetime | None = None,
) -> str:
    """Render a paginated HTML table document for printing or archiving.

    Args:
        lessons: Lessons to list (already filtered).
        filters: Filters that produced the list, shown in the header.
        options: Presentation options.
        generated_at: Timestamp printed in the header (defaults to now).

    Returns:
        A complete HTML document.
    """
    filters = filters or ExportFilters()
    options = options or DocumentOptions()
    generated_at = generated_at or datetime.now(timezone.utc)

    rows = [format_lesson_for_export(lesson) for lesson in lessons]
    pages = paginate(rows, options.rows_per_page)
    filter_lines = (
        describe_filters(filters)
        if options.include_filters and has_active_filters(filters)
        else []
    )

    return get_template_loader().render(
        "table_document.html",
        title=options.title,
        subtitle=options.subtitle or f"Generated on: {format_date(generated_at)}",
        orientation=options.orientation,
        filter_lines=filter_lines,
        summary=summarize_lessons(lessons) if options.include_summary else None,
        headers=TABLE_HEADERS,
        pages=pages,
        page_count=len(pages),
    )


def generate_timestamped_filename(base_name: str, extension: str, now: datetime | None = None) -> str:
    """Build ``<base>-YYYY-MM-DD-HH-MM.<ext>`` using UTC."""
    now = now or datetime.now(timezone.utc)
    return f"{base_name}-{now.strftime('%Y-%m-%d-%H-%M')}.{extension}"
