"""Lifecycle-aware portfolio reports for Learnd.

A report is built in two steps: the portfolio is filtered by a
ReportConfig, then a template-specific builder turns the filtered projects
and their ReportAnalytics into a Report (title, subtitle lines and sections
of bullet items). Reports render to HTML through templates/report.html or
to CSV.

Templates:
    active_portfolio_health  Active projects needing attention
    completion_analysis      Learnings from finished work
    executive_portfolio      Cross-lifecycle overview
    client_performance       One client's ongoing and finished work
    executive, custom        Served by the executive portfolio builder
    detailed                 Full project listing
    client                   Served by the client performance builder
"""

from __future__ import annotations

import csv
import io
import re
from collections.abc import Callable, Iterable, Sequence
from datetime import date, datetime, timezone
from typing import Any, Literal

import structlog
from pydantic import BaseModel, Field

from learnd.analytics import ReportAnalytics, as_datetime, compute_report_analytics, find_outliers
from learnd.exports import format_date, format_lesson_for_export
from learnd.rendering import get_template_loader
from learnd.status import (
    LifecycleStatus,
    ProjectHealth,
    classify_health,
    get_field,
    get_health_status_label,
)

logger = structlog.get_logger(__name__)

ReportTemplateName = Literal[
    "active_portfolio_health",
    "completion_analysis",
    "executive_portfolio",
    "client_performance",
    "executive",
    "detailed",
    "client",
    "custom",
]
ReportAudience = Literal["internal", "client", "executive", "team"]


class TemplateInfo(BaseModel):
    title: str
    description: str
    audience: list[str]
    focus: str


REPORT_TEMPLATES: dict[str, TemplateInfo] = {
    "active_portfolio_health": TemplateInfo(
        title="Active Portfolio Health Report",
        description="Current project status and interventions needed",
        audience=["internal", "executive", "team"],
        focus="Active projects requiring attention and optimization",
    ),
    "completion_analysis": TemplateInfo(
        title="Project Completion Analysis",
        description="Lessons learned from recently finished work",
        audience=["internal", "executive", "team"],
        focus="Completed projects patterns and learnings",
    ),
    "executive_portfolio": TemplateInfo(
        title="Executive Portfolio Summary",
        description="Combines active status with completion trends",
        audience=["executive", "client"],
        focus="High-level cross-lifecycle portfolio overview",
    ),
    "client_performance": TemplateInfo(
        title="Client Performance Review",
        description="Both ongoing work and completed project outcomes",
        audience=["client", "executive"],
        focus="Client-specific active and completed project performance",
    ),
    "executive": TemplateInfo(
        title="Executive Summary",
        description="Traditional high-level overview",
        audience=["executive"],
        focus="Overall performance metrics",
    ),
    "detailed": TemplateInfo(
        title="Detailed Analysis",
        description="Comprehensive project listing",
        audience=["internal", "team"],
        focus="Complete project details",
    ),
    "client": TemplateInfo(
        title="Client Report",
        description="Client-specific analysis",
        audience=["client"],
        focus="Client relationship management",
    ),
    "custom": TemplateInfo(
        title="Custom Report",
        description="Configurable metrics and timeframes",
        audience=["internal", "executive", "team", "client"],
        focus="User-defined parameters",
    ),
}


class ReportConfig(BaseModel):
    """What to report on and for whom.

    Empty lifecycle or health filters include everything.
    """

    template: ReportTemplateName = "executive_portfolio"
    audience: ReportAudience = "internal"
    lifecycle_statuses: list[LifecycleStatus] = Field(default_factory=list)
    health_filter: list[ProjectHealth] = Field(default_factory=list)
    date_from: date | None = None
    date_to: date | None = None
    client_filter: str | None = None
    include_risks: bool = False
    include_recommendations: bool = True


class ReportSection(BaseModel):
    heading: str
    items: list[str] = Field(default_factory=list)


class Report(BaseModel):
    """A generated report, ready to render."""

    template: str
    title: str
    subtitle_lines: list[str] = Field(default_factory=list)
    sections: list[ReportSection] = Field(default_factory=list)
    rows: list[dict[str, str]] = Field(default_factory=list)
    analytics: ReportAnalytics


def get_template_info(template: str) -> TemplateInfo:
    """Look up a template's metadata.

    Raises:
        KeyError: If the template is unknown.
    """
    return REPORT_TEMPLATES[template]


def filter_projects(data: Iterable[Any], config: ReportConfig) -> list[Any]:
    """Apply the config's lifecycle, health, date and client filters."""
    statuses = {status.value for status in config.lifecycle_statuses}
    healths = set(config.health_filter)
    client = (config.client_filter or "").strip().lower()

    selected: list[Any] = []
    for project in data:
        if statuses and get_field(project, "lifecycle_status") not in statuses:
            continue
        if healths and classify_health(project) not in healths:
            continue
        if config.date_from is not None or config.date_to is not None:
            created = as_datetime(get_field(project, "created_at"))
            if created is None:
                continue
            if config.date_from is not None and created.date() < config.date_from:
                continue
            if config.date_to is not None and created.date() > config.date_to:
                continue
        if client:
            name = get_field(project, "client_name")
            if not isinstance(name, str) or client not in name.lower():
                continue
        selected.append(project)
    return selected


def _period(config: ReportConfig) -> str:
    start = config.date_from.isoformat() if config.date_from else "All time"
    end = config.date_to.isoformat() if config.date_to else "Present"
    return f"{start} to {end}"


def _pct(part: int, whole: int) -> float:
    return part / max(whole, 1) * 100


def _risk_section(projects: Sequence[Any]) -> ReportSection:
    items = [
        f"{get_field(project, 'project_name')} ({get_field(project, 'client_name') or 'no client'}): "
        f"{get_health_status_label(classify_health(project))}"
        for project in find_outliers(projects)
    ]
    return ReportSection(heading="Risk Register", items=items or ["No red-flag projects"])


def _active_portfolio_health(
    projects: Sequence[Any], analytics: ReportAnalytics, config: ReportConfig
) -> list[ReportSection]:
    dist = analytics.health_distribution
    sections = [
        ReportSection(
            heading="Portfolio Health Status",
            items=[
                f"Healthy Projects: {dist.healthy}",
                f"At-Risk Projects: {dist.at_risk}",
                f"Critical Projects: {dist.critical}",
                f"Average Satisfaction: {analytics.avg_satisfaction:.1f}/5.0",
                f"On Budget Rate: {analytics.on_budget_rate:.1f}%",
                f"On Time Rate: {analytics.on_time_rate:.1f}%",
            ],
        )
    ]
    if config.include_recommendations:
        interventions: list[str] = []
        if dist.critical > 0:
            interventions.append(
                f"URGENT: {dist.critical} critical projects need immediate intervention"
            )
        if dist.at_risk > 0:
            interventions.append(
                f"Monitor: {dist.at_risk} at-risk projects require close attention"
            )
        if analytics.on_budget_rate < 80:
            interventions.append("Budget Review: Multiple projects showing cost overrun patterns")
        if analytics.on_time_rate < 80:
            interventions.append("Timeline Review: Delivery schedule requires optimization")
        if not interventions:
            interventions.append("Portfolio is performing within acceptable parameters")
        sections.append(ReportSection(heading="Immediate Action Required", items=interventions))
    return sections


def _completion_analysis(
    projects: Sequence[Any], analytics: ReportAnalytics, config: ReportConfig
) -> list[ReportSection]:
    dist = analytics.health_distribution
    learnings: list[str] = []
    if dist.successful > dist.underperformed:
        learnings.append("Strong delivery track record with consistent success patterns")
    else:
        learnings.append("Delivery performance shows room for improvement")
    if analytics.scope_change_rate > 30:
        learnings.append("Scope changes are a significant factor in project outcomes")
    if analytics.avg_satisfaction >= 4.0:
        learnings.append("Client satisfaction levels indicate strong delivery quality")
    else:
        learnings.append("Client satisfaction improvement opportunities identified")
    learnings.append("Apply successful project patterns to current active portfolio")

    return [
        ReportSection(
            heading="Completion Performance Analysis",
            items=[
                f"Successful Completions: {dist.successful}",
                f"Underperformed Projects: {dist.underperformed}",
                f"Mixed Results: {dist.mixed}",
                f"Average Final Satisfaction: {analytics.avg_satisfaction:.1f}/5.0",
                f"Budget Adherence: {analytics.on_budget_rate:.1f}%",
                f"Timeline Performance: {analytics.on_time_rate:.1f}%",
            ],
        ),
        ReportSection(heading="Key Learnings & Patterns", items=learnings),
    ]


def _executive_portfolio(
    projects: Sequence[Any], analytics: ReportAnalytics, config: ReportConfig
) -> list[ReportSection]:
    dist = analytics.health_distribution
    if analytics.active_projects > 0:
        active_items = [
            f"Healthy: {dist.healthy} projects",
            f"At-Risk: {dist.at_risk} projects requiring attention",
            f"Critical: {dist.critical} projects needing intervention",
        ]
        portfolio_health = (
            f"{_pct(dist.healthy, analytics.active_projects):.0f}% healthy active projects"
        )
    else:
        active_items = ["No active projects in portfolio"]
        portfolio_health = "No active projects"

    if analytics.completed_projects > 0:
        completed_items = [
            f"Successful: {dist.successful} projects",
            f"Underperformed: {dist.underperformed} projects",
            f"Mixed Results: {dist.mixed} projects",
        ]
        track_record = (
            f"{_pct(dist.successful, analytics.completed_projects):.0f}% successful completions"
        )
    else:
        completed_items = ["No completed projects in analysis period"]
        track_record = "No completed projects"

    trend = "Positive" if analytics.avg_satisfaction >= 4.0 else "Improvement Needed"
    return [
        ReportSection(heading="Active Projects Status", items=active_items),
        ReportSection(heading="Completed Projects Analysis", items=completed_items),
        ReportSection(
            heading="Strategic Insights",
            items=[
                f"Overall Portfolio Health: {portfolio_health}",
                f"Delivery Track Record: {track_record}",
                f"Client Relationships: {analytics.client_count} active client relationships",
                f"Performance Trend: {trend} ({analytics.avg_satisfaction:.1f}/5.0 satisfaction)",
            ],
        ),
    ]


def _client_performance(
    projects: Sequence[Any], analytics: ReportAnalytics, config: ReportConfig
) -> list[ReportSection]:
    dist = analytics.health_distribution
    sections: list[ReportSection] = []

    if analytics.active_projects > 0:
        sections.append(
            ReportSection(
                heading="Current Active Projects",
                items=[
                    f"Active Projects: {analytics.active_projects}",
                    f"Current Health: {dist.healthy} healthy, {dist.at_risk} at-risk",
                    f"Budget Status: {analytics.on_budget_rate:.1f}% on track",
                    f"Timeline Status: {analytics.on_time_rate:.1f}% on schedule",
                    f"Scope Management: {analytics.scope_change_rate:.1f}% change rate",
                ],
            )
        )

    if analytics.completed_projects > 0:
        duration = f"Since {config.date_from.isoformat()}" if config.date_from else "Long-term partnership"
        sections.append(
            ReportSection(
                heading="Historical Performance",
                items=[
                    f"Completed Projects: {analytics.completed_projects}",
                    f"Success Rate: {_pct(dist.successful, analytics.completed_projects):.1f}%",
                    f"Average Satisfaction: {analytics.avg_satisfaction:.1f}/5.0",
                    f"Delivery Excellence: {analytics.on_time_rate:.1f}% on-time delivery",
                    f"Partnership Duration: {duration}",
                ],
            )
        )

    if config.audience == "client":
        summary = [
            "Strong partnership with consistent delivery quality",
            "Proactive project management with regular status updates",
            "Commitment to meeting project objectives and timelines",
            "Continuous improvement in service delivery",
        ]
    else:
        summary = [
            f"Revenue Performance: {analytics.total} total projects",
            f"Client Health: {'Strong' if analytics.avg_satisfaction >= 4.0 else 'Needs Attention'}",
            f"Repeat Business: {'Yes' if analytics.completed_projects > 1 else 'First-time client'}",
            f"Risk Factors: {'Active issues present' if dist.critical > 0 else 'Low risk'}",
        ]
    sections.append(ReportSection(heading="Partnership Summary", items=summary))
    return sections


def _detailed(
    projects: Sequence[Any], analytics: ReportAnalytics, config: ReportConfig
) -> list[ReportSection]:
    return [
        ReportSection(
            heading="Key Performance Indicators",
            items=[
                f"Total Projects: {analytics.total}",
                f"Average Satisfaction: {analytics.avg_satisfaction:.1f}/5.0",
                f"On Budget Rate: {analytics.on_budget_rate:.1f}%",
                f"On Time Rate: {analytics.on_time_rate:.1f}%",
                f"Scope Change Rate: {analytics.scope_change_rate:.1f}%",
                f"Active Clients: {analytics.client_count}",
            ],
        ),
        ReportSection(heading="Project Listing"),
    ]


SectionBuilder = Callable[[Sequence[Any], ReportAnalytics, ReportConfig], list[ReportSection]]

_BUILDERS: dict[str, SectionBuilder] = {
    "active_portfolio_health": _active_portfolio_health,
    "completion_analysis": _completion_analysis,
    "executive_portfolio": _executive_portfolio,
    "client_performance": _client_performance,
    "executive": _executive_portfolio,
    "detailed": _detailed,
    "client": _client_performance,
    "custom": _executive_portfolio,
}


def _subtitle(
    template: str, analytics: ReportAnalytics, config: ReportConfig, generated: str
) -> list[str]:
    if template == "active_portfolio_health":
        return [
            f"Generated: {generated}",
            f"Active Projects: {analytics.active_projects} | Report Period: {_period(config)}",
        ]
    if template == "completion_analysis":
        return [
            f"Generated: {generated}",
            f"Completed Projects: {analytics.completed_projects} | Analysis Period: {_period(config)}",
        ]
    if template in ("client_performance", "client"):
        return [f"Client: {config.client_filter or 'All Clients'}", f"Generated: {generated}"]
    if template == "detailed":
        return [f"Report Period: {_period(config)}", f"Generated: {generated}"]
    return [
        f"Generated: {generated}",
        f"Portfolio Overview: {analytics.total} Total Projects "
        f"({analytics.active_projects} Active, {analytics.completed_projects} Completed)",
    ]


def generate_report(
    data: Iterable[Any],
    config: ReportConfig,
    generated_at: datetime | None = None,
) -> Report:
    """Filter the portfolio and build the configured report.

    Args:
        data: Lesson records (ORM rows or mappings).
        config: Template, audience and filters.
        generated_at: Timestamp printed in the subtitle (defaults to now).

    Returns:
        The assembled Report.
    """
    projects = filter_projects(data, config)
    analytics = compute_report_analytics(projects)
    info = get_template_info(config.template)
    generated = format_date(generated_at or datetime.now(timezone.utc))

    sections = _BUILDERS[config.template](projects, analytics, config)
    if config.include_risks:
        sections.append(_risk_section(projects))

    rows: list[dict[str, str]] = []
    if config.template == "detailed":
        rows = [format_lesson_for_export(project) for project in projects]

    logger.info(
        "report_generated",
        template=config.template,
        audience=config.audience,
        project_count=analytics.total,
    )

    return Report(
        template=config.template,
        title=info.title,
        subtitle_lines=_subtitle(config.template, analytics, config, generated),
        sections=sections,
        rows=rows,
        analytics=analytics,
    )


def render_report_html(report: Report) -> str:
    return get_template_loader().render("report.html", report=report)


REPORT_CSV_HEADERS: list[str] = [
    "Project Name",
    "Client",
    "Project Status",
    "Health Status",
    "Role",
    "Satisfaction",
    "Budget Status",
    "Timeline Status",
    "Scope Change",
    "Created Date",
    "Notes",
]


def generate_report_csv(data: Iterable[Any], config: ReportConfig) -> str:
    """Export the filtered portfolio as CSV with every cell quoted."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL)
    writer.writerow(REPORT_CSV_HEADERS)
    for project in filter_projects(data, config):
        satisfaction = get_field(project, "satisfaction")
        notes = get_field(project, "notes")
        writer.writerow(
            [
                get_field(project, "project_name") or "Untitled",
                get_field(project, "client_name") or "—",
                get_field(project, "lifecycle_status") or "—",
                classify_health(project).value,
                get_field(project, "role") or "—",
                "—" if satisfaction is None else str(satisfaction),
                get_field(project, "budget_status") or "—",
                get_field(project, "timeline_status") or "—",
                "Yes" if get_field(project, "scope_change") else "No",
                format_date(get_field(project, "created_at")),
                re.sub(r"[\r\n]+", " ", notes) if notes else "—",
            ]
        )
    return buffer.getvalue()
