"""Unit tests for report templates, filtering and rendering."""

from __future__ import annotations

import csv
import io
from datetime import date, datetime, timezone
from typing import Any

import pytest
from pydantic import ValidationError

from learnd.reports import (
    REPORT_CSV_HEADERS,
    REPORT_TEMPLATES,
    ReportConfig,
    filter_projects,
    generate_report,
    generate_report_csv,
    get_template_info,
    render_report_html,
)
from learnd.status import LifecycleStatus, ProjectHealth

GENERATED = datetime(2026, 6, 1, tzinfo=timezone.utc)


def project(name: str, **fields: Any) -> dict[str, Any]:
    base: dict[str, Any] = {
        "project_name": name,
        "client_name": "Acme Corp",
        "role": "Lead",
        "lifecycle_status": "active",
        "satisfaction": 4,
        "budget_status": "on",
        "timeline_status": "on-time",
        "scope_change": False,
        "notes": None,
        "created_at": datetime(2026, 3, 1, tzinfo=timezone.utc),
    }
    base.update(fields)
    return base


@pytest.fixture
def portfolio() -> list[dict[str, Any]]:
    return [
        project("Atlas"),
        project("Beacon", budget_status="over", timeline_status="late", satisfaction=3),
        project("Cobalt", lifecycle_status="completed", satisfaction=5, timeline_status="early"),
        project(
            "Delta",
            lifecycle_status="cancelled",
            client_name="Globex",
            satisfaction=2,
            notes="Ran out\nof runway",
            created_at=datetime(2026, 1, 15, tzinfo=timezone.utc),
        ),
    ]


class TestCatalog:
    def test_has_lifecycle_aware_and_legacy_templates(self) -> None:
        assert set(REPORT_TEMPLATES) == {
            "active_portfolio_health",
            "completion_analysis",
            "executive_portfolio",
            "client_performance",
            "executive",
            "detailed",
            "client",
            "custom",
        }

    def test_get_template_info(self) -> None:
        assert get_template_info("detailed").title == "Detailed Analysis"
        with pytest.raises(KeyError):
            get_template_info("quarterly")

    def test_unknown_template_rejected_by_config(self) -> None:
        with pytest.raises(ValidationError):
            ReportConfig(template="quarterly")  # type: ignore[arg-type]


class TestFiltering:
    def test_empty_filters_include_everything(self, portfolio: list[dict[str, Any]]) -> None:
        assert filter_projects(portfolio, ReportConfig()) == portfolio

    def test_lifecycle_filter_is_exact(self, portfolio: list[dict[str, Any]]) -> None:
        config = ReportConfig(lifecycle_statuses=[LifecycleStatus.completed])
        assert [p["project_name"] for p in filter_projects(portfolio, config)] == ["Cobalt"]

    def test_health_filter(self, portfolio: list[dict[str, Any]]) -> None:
        config = ReportConfig(health_filter=[ProjectHealth.critical])
        assert [p["project_name"] for p in filter_projects(portfolio, config)] == ["Beacon"]

    def test_date_and_client_filters(self, portfolio: list[dict[str, Any]]) -> None:
        config = ReportConfig(date_to=date(2026, 2, 1), client_filter="glob")
        assert [p["project_name"] for p in filter_projects(portfolio, config)] == ["Delta"]


class TestGenerateReport:
    def test_active_portfolio_health(self, portfolio: list[dict[str, Any]]) -> None:
        config = ReportConfig(
            template="active_portfolio_health",
            lifecycle_statuses=[LifecycleStatus.active, LifecycleStatus.on_hold],
        )
        report = generate_report(portfolio, config, generated_at=GENERATED)

        assert report.title == "Active Portfolio Health Report"
        assert report.subtitle_lines[0] == "Generated: 06/01/2026"
        assert "Active Projects: 2" in report.subtitle_lines[1]
        health = report.sections[0]
        assert "Healthy Projects: 1" in health.items
        assert "Critical Projects: 1" in health.items
        actions = report.sections[1].items
        assert actions[0].startswith("URGENT: 1 critical")

    def test_recommendations_can_be_disabled(self, portfolio: list[dict[str, Any]]) -> None:
        config = ReportConfig(template="active_portfolio_health", include_recommendations=False)
        report = generate_report(portfolio, config)
        assert [s.heading for s in report.sections] == ["Portfolio Health Status"]

    def test_executive_portfolio(self, portfolio: list[dict[str, Any]]) -> None:
        report = generate_report(portfolio, ReportConfig(), generated_at=GENERATED)
        assert report.subtitle_lines[1] == (
            "Portfolio Overview: 4 Total Projects (2 Active, 2 Completed)"
        )
        insights = report.sections[2].items
        assert "Client Relationships: 2 active client relationships" in insights
        assert report.analytics.total == 4

    def test_legacy_executive_uses_portfolio_sections(
        self, portfolio: list[dict[str, Any]]
    ) -> None:
        report = generate_report(portfolio, ReportConfig(template="executive"))
        assert report.title == "Executive Summary"
        assert report.sections[0].heading == "Active Projects Status"

    def test_client_audience_gets_client_summary(self, portfolio: list[dict[str, Any]]) -> None:
        config = ReportConfig(template="client_performance", audience="client")
        report = generate_report(portfolio, config)
        assert report.subtitle_lines[0] == "Client: All Clients"
        assert report.sections[-1].items[0] == "Strong partnership with consistent delivery quality"

    def test_detailed_lists_rows(self, portfolio: list[dict[str, Any]]) -> None:
        report = generate_report(portfolio, ReportConfig(template="detailed"))
        assert len(report.rows) == 4
        assert report.rows[1]["health"] == "Critical"

    def test_risk_register(self, portfolio: list[dict[str, Any]]) -> None:
        report = generate_report(portfolio, ReportConfig(include_risks=True))
        risks = report.sections[-1]
        assert risks.heading == "Risk Register"
        assert any(item.startswith("Beacon (Acme Corp)") for item in risks.items)

    def test_empty_portfolio(self) -> None:
        report = generate_report([], ReportConfig())
        assert report.sections[0].items == ["No active projects in portfolio"]

    def test_render_html(self, portfolio: list[dict[str, Any]]) -> None:
        html = render_report_html(generate_report(portfolio, ReportConfig(template="detailed")))
        assert "<h1" in html
        assert "Detailed Analysis" in html
        assert "Key Performance Indicators" in html
        assert "Atlas" in html


class TestReportCsv:
    def test_every_cell_quoted_and_notes_flattened(
        self, portfolio: list[dict[str, Any]]
    ) -> None:
        content = generate_report_csv(portfolio, ReportConfig())
        assert content.splitlines()[0] == ",".join(f'"{h}"' for h in REPORT_CSV_HEADERS)

        rows = list(csv.reader(io.StringIO(content)))
        delta = rows[4]
        assert delta[0] == "Delta"
        assert delta[3] == "underperformed"
        assert delta[10] == "Ran out of runway"

    def test_missing_values_use_em_dash(self) -> None:
        content = generate_report_csv(
            [project("Echo", client_name=None, satisfaction=None)], ReportConfig()
        )
        row = list(csv.reader(io.StringIO(content)))[1]
        assert row[1] == "—"
        assert row[5] == "—"

    def test_missing_lifecycle_is_not_reported_as_active(self) -> None:
        content = generate_report_csv(
            [project("Foxtrot", lifecycle_status=None), project("Golf", lifecycle_status="")],
            ReportConfig(),
        )
        rows = list(csv.reader(io.StringIO(content)))
        assert REPORT_CSV_HEADERS[2] == "Project Status"
        assert [row[2] for row in rows[1:]] == ["—", "—"]
