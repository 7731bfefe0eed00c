"""Unit tests for CSV and table-document exports.

Tests cover:
- Export filter matching
- CSV headers, quoting and missing values
- Paginated HTML documents with filters and summary
- Timestamped filenames
"""

from __future__ import annotations

import csv
import io
from datetime import date, datetime, timezone
from typing import Any

import pytest

from learnd.exports import (
    CSV_HEADERS,
    DocumentOptions,
    ExportFilters,
    apply_export_filters,
    describe_filters,
    format_date,
    format_lesson_for_export,
    generate_csv_content,
    generate_table_document,
    generate_timestamped_filename,
    has_active_filters,
    paginate,
)


def lesson(**fields: Any) -> dict[str, Any]:
    base: dict[str, Any] = {
        "project_name": "Atlas",
        "client_name": "Acme",
        "role": "PM",
        "lifecycle_status": "active",
        "satisfaction": 4,
        "budget_status": "on",
        "timeline_status": "on-time",
        "scope_change": False,
        "notes": None,
        "created_at": datetime(2026, 3, 4, 12, 0, tzinfo=timezone.utc),
        "updated_at": datetime(2026, 3, 5, 12, 0, tzinfo=timezone.utc),
    }
    base.update(fields)
    return base


@pytest.fixture
def lessons() -> list[dict[str, Any]]:
    return [
        lesson(),
        lesson(
            project_name="Beacon Portal",
            client_name="Globex",
            satisfaction=2,
            budget_status="over",
            timeline_status="late",
            created_at=datetime(2026, 4, 1, tzinfo=timezone.utc),
        ),
        lesson(
            project_name="Cobalt",
            client_name=None,
            lifecycle_status="completed",
            satisfaction=None,
            budget_status=None,
            timeline_status=None,
            created_at=None,
        ),
    ]


class TestFilters:
    def test_no_filters_keep_everything(self, lessons: list[dict[str, Any]]) -> None:
        assert apply_export_filters(lessons, ExportFilters()) == lessons
        assert has_active_filters(ExportFilters(budget="any")) is False

    def test_text_filters_are_case_insensitive_substrings(
        self, lessons: list[dict[str, Any]]
    ) -> None:
        matched = apply_export_filters(lessons, ExportFilters(project_name="portal"))
        assert [m["project_name"] for m in matched] == ["Beacon Portal"]

    def test_client_filter_excludes_missing_client(self, lessons: list[dict[str, Any]]) -> None:
        matched = apply_export_filters(lessons, ExportFilters(client_name="a"))
        assert [m["project_name"] for m in matched] == ["Atlas"]

    def test_budget_filter_normalizes_spelling(self, lessons: list[dict[str, Any]]) -> None:
        matched = apply_export_filters(lessons, ExportFilters(budget="over_budget"))
        assert [m["project_name"] for m in matched] == ["Beacon Portal"]

    def test_min_satisfaction_excludes_unrated(self, lessons: list[dict[str, Any]]) -> None:
        matched = apply_export_filters(lessons, ExportFilters(min_satisfaction=2))
        assert [m["project_name"] for m in matched] == ["Atlas", "Beacon Portal"]

    def test_date_window_is_inclusive(self, lessons: list[dict[str, Any]]) -> None:
        filters = ExportFilters(date_from=date(2026, 3, 4), date_to=date(2026, 3, 31))
        assert [m["project_name"] for m in apply_export_filters(lessons, filters)] == ["Atlas"]

    def test_describe_filters(self) -> None:
        filters = ExportFilters(
            date_from=date(2026, 1, 1),
            project_name="Atlas",
            budget="over",
            min_satisfaction=3,
        )
        assert describe_filters(filters) == [
            "Date Range: 01/01/2026 to Not specified",
            'Project Name: "Atlas"',
            "Budget Status: over",
            "Minimum Satisfaction: 3/5",
        ]


class TestCsv:
    def test_headers_and_rows(self, lessons: list[dict[str, Any]]) -> None:
        parsed = list(csv.reader(io.StringIO(generate_csv_content(lessons))))
        assert parsed[0] == CSV_HEADERS
        assert len(parsed) == 4
        assert parsed[1][:6] == ["Atlas", "Acme", "PM", "Active", "Healthy", "03/04/2026"]
        assert parsed[2][4] == "Critical"

    def test_missing_values_are_empty_cells(self, lessons: list[dict[str, Any]]) -> None:
        parsed = list(csv.reader(io.StringIO(generate_csv_content(lessons))))
        cobalt = parsed[3]
        assert cobalt[1] == ""
        assert cobalt[5] == ""
        assert cobalt[7] == ""
        assert cobalt[10] == "No"

    def test_quotes_commas_and_newlines(self) -> None:
        content = generate_csv_content(
            [lesson(project_name='Big, "Bold"', notes="line one\nline two")],
            include_headers=False,
        )
        parsed = list(csv.reader(io.StringIO(content)))
        assert parsed == [
            [
                'Big, "Bold"',
                "Acme",
                "PM",
                "Active",
                "Healthy",
                "03/04/2026",
                "03/05/2026",
                "4",
                "on",
                "on-time",
                "No",
                "line one\nline two",
            ]
        ]

    def test_empty_without_headers(self) -> None:
        assert generate_csv_content([], include_headers=False) == ""

    def test_display_row_uses_em_dash(self) -> None:
        row = format_lesson_for_export(lesson(client_name="", lifecycle_status=None))
        assert row["client_name"] == "—"
        assert row["lifecycle_status"] == "—"

    def test_missing_lifecycle_is_empty_cell(self) -> None:
        content = generate_csv_content(
            [lesson(lifecycle_status=None, satisfaction=4, budget_status="on")],
            include_headers=False,
        )
        parsed = list(csv.reader(io.StringIO(content)))
        assert CSV_HEADERS[3] == "Lifecycle Status"
        assert parsed[0][3] == ""
        assert parsed[0][4] == "Successful"


class TestDocument:
    def test_paginate(self) -> None:
        assert paginate([], 5) == [[]]
        assert paginate(list(range(7)), 3) == [[0, 1, 2], [3, 4, 5], [6]]

    def test_document_contents(self, lessons: list[dict[str, Any]]) -> None:
        html = generate_table_document(
            lessons,
            ExportFilters(budget="over"),
            DocumentOptions(title="Q1 Lessons", rows_per_page=2),
            generated_at=datetime(2026, 5, 1, tzinfo=timezone.utc),
        )
        assert "Q1 Lessons" in html
        assert "Generated on: 05/01/2026" in html
        assert "Budget Status: over" in html
        assert "Total Records: 3" in html
        assert "Average Satisfaction: 3.0/5" in html
        assert "Page 1 of 2" in html
        assert "Page 2 of 2" in html
        assert "A4 landscape" in html

    def test_document_without_filters_or_summary(self, lessons: list[dict[str, Any]]) -> None:
        html = generate_table_document(
            lessons,
            ExportFilters(budget="over"),
            DocumentOptions(include_filters=False, include_summary=False, orientation="portrait"),
        )
        assert "Applied Filters" not in html
        assert "Total Records" not in html
        assert "A4 portrait" in html

    def test_values_are_escaped(self) -> None:
        html = generate_table_document([lesson(project_name="<script>x</script>")])
        assert "<script>x</script>" not in html
        assert "&lt;script&gt;" in html


def test_format_date() -> None:
    assert format_date(date(2026, 12, 25)) == "12/25/2026"
    assert format_date("2026-01-02T00:00:00Z") == "01/02/2026"
    assert format_date(None) == "—"


def test_timestamped_filename() -> None:
    now = datetime(2026, 7, 8, 9, 5, tzinfo=timezone.utc)
    assert (
        generate_timestamped_filename("lessons-learned", "csv", now)
        == "lessons-learned-2026-07-08-09-05.csv"
    )
