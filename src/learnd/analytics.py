"""Portfolio analytics for Learnd.

In-memory aggregation over lesson records: headline KPIs, monthly
satisfaction trends, monthly budget/timeline counts, red-flag outliers and
the combined analytics used by report generation. Inputs may be ORM rows or
mappings; health always comes from learnd.status.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

from learnd.status import (
    ProjectHealth,
    classify_health,
    get_field,
    is_active_project,
    is_completed_project,
)

BUDGET_KEYS: tuple[str, ...] = ("under", "on", "over")
TIMELINE_KEYS: tuple[str, ...] = ("early", "on-time", "late")


class Kpis(BaseModel):
    """Headline portfolio numbers.

    Attributes:
        total: Number of records
        avg_satisfaction: Mean over rated records (0 when none are rated)
        budget_pct: Share of all records per budget status, in whole percent
        timeline_pct: Share of all records per timeline status, in whole percent
    """

    total: int
    avg_satisfaction: float
    budget_pct: dict[str, int]
    timeline_pct: dict[str, int]


class MonthlySatisfaction(BaseModel):
    month: str
    avg_satisfaction: float


class MonthlyStatusCounts(BaseModel):
    month: str
    counts: dict[str, int]


class StatusByMonth(BaseModel):
    budget: list[MonthlyStatusCounts] = Field(default_factory=list)
    timeline: list[MonthlyStatusCounts] = Field(default_factory=list)


class HealthDistribution(BaseModel):
    healthy: int = 0
    at_risk: int = 0
    critical: int = 0
    successful: int = 0
    underperformed: int = 0
    mixed: int = 0


class ReportAnalytics(BaseModel):
    """Aggregates feeding the report templates.

    Rates are percentages in the range 0-100.
    """

    total: int = 0
    avg_satisfaction: float = 0.0
    on_budget_rate: float = 0.0
    on_time_rate: float = 0.0
    scope_change_rate: float = 0.0
    client_count: int = 0
    active_projects: int = 0
    completed_projects: int = 0
    health_distribution: HealthDistribution = Field(default_factory=HealthDistribution)


def as_datetime(value: Any) -> datetime | None:
    """Parse a created_at value (datetime or ISO string)."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


def month_key(value: Any) -> str | None:
    created = as_datetime(value)
    if created is None:
        return None
    return f"{created.year:04d}-{created.month:02d}"


def _rated(rows: Iterable[Any]) -> list[float]:
    scores: list[float] = []
    for row in rows:
        score = get_field(row, "satisfaction")
        if isinstance(score, (int, float)) and not isinstance(score, bool):
            scores.append(score)
    return scores


def compute_kpis(rows: Sequence[Any]) -> Kpis | None:
    """Compute headline KPIs. Returns None for an empty portfolio."""
    if not rows:
        return None

    total = len(rows)
    scores = _rated(rows)
    avg = sum(scores) / len(scores) if scores else 0.0

    budget = dict.fromkeys(BUDGET_KEYS, 0)
    timeline = dict.fromkeys(TIMELINE_KEYS, 0)
    for row in rows:
        budget_status = get_field(row, "budget_status")
        timeline_status = get_field(row, "timeline_status")
        if budget_status in budget:
            budget[budget_status] += 1
        if timeline_status in timeline:
            timeline[timeline_status] += 1

    def pct(count: int) -> int:
        return round(count / total * 100)

    return Kpis(
        total=total,
        avg_satisfaction=avg,
        budget_pct={key: pct(count) for key, count in budget.items()},
        timeline_pct={key: pct(count) for key, count in timeline.items()},
    )


def satisfaction_trend(rows: Iterable[Any]) -> list[MonthlySatisfaction]:
    """Average satisfaction per calendar month, oldest month first.

    Months with records but no ratings report 0.
    """
    sums: dict[str, float] = {}
    counts: dict[str, int] = {}
    for row in rows:
        key = month_key(get_field(row, "created_at"))
        if key is None:
            continue
        sums.setdefault(key, 0.0)
        counts.setdefault(key, 0)
        score = get_field(row, "satisfaction")
        if isinstance(score, (int, float)) and not isinstance(score, bool):
            sums[key] += score
            counts[key] += 1

    return [
        MonthlySatisfaction(
            month=key,
            avg_satisfaction=round(sums[key] / counts[key], 2) if counts[key] else 0,
        )
        for key in sorted(sums)
    ]


def status_by_month(rows: Iterable[Any]) -> StatusByMonth:
    """Budget and timeline status counts per calendar month."""
    budget: dict[str, dict[str, int]] = {}
    timeline: dict[str, dict[str, int]] = {}
    for row in rows:
        key = month_key(get_field(row, "created_at"))
        if key is None:
            continue
        month_budget = budget.setdefault(key, dict.fromkeys(BUDGET_KEYS, 0))
        month_timeline = timeline.setdefault(key, dict.fromkeys(TIMELINE_KEYS, 0))
        budget_status = get_field(row, "budget_status")
        timeline_status = get_field(row, "timeline_status")
        if budget_status in month_budget:
            month_budget[budget_status] += 1
        if timeline_status in month_timeline:
            month_timeline[timeline_status] += 1

    return StatusByMonth(
        budget=[MonthlyStatusCounts(month=key, counts=budget[key]) for key in sorted(budget)],
        timeline=[MonthlyStatusCounts(month=key, counts=timeline[key]) for key in sorted(timeline)],
    )


def is_red_flag(row: Any) -> bool:
    score = get_field(row, "satisfaction")
    low_score = isinstance(score, (int, float)) and not isinstance(score, bool) and score <= 2
    return (
        low_score
        or get_field(row, "budget_status") == "over"
        or get_field(row, "timeline_status") == "late"
    )


def _recency(row: Any) -> float:
    created = as_datetime(get_field(row, "created_at"))
    if created is None:
        return float("-inf")
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return created.timestamp()


def find_outliers(rows: Iterable[Any], limit: int = 10) -> list[Any]:
    """Red-flag projects (satisfaction <= 2, over budget or late), newest first."""
    flagged = [row for row in rows if is_red_flag(row)]
    flagged.sort(key=_recency, reverse=True)
    return flagged[:limit]


def compute_report_analytics(rows: Sequence[Any]) -> ReportAnalytics:
    """Aggregate everything the report templates need."""
    total = len(rows)
    if total == 0:
        return ReportAnalytics()

    scores = _rated(rows)
    on_budget = sum(1 for row in rows if get_field(row, "budget_status") in ("on", "under"))
    on_time = sum(1 for row in rows if get_field(row, "timeline_status") in ("on-time", "early"))
    scope_changes = sum(1 for row in rows if get_field(row, "scope_change"))
    clients = {get_field(row, "client_name") for row in rows} - {None, ""}

    distribution = HealthDistribution()
    active = 0
    completed = 0
    for row in rows:
        if is_active_project(row):
            active += 1
        elif is_completed_project(row):
            completed += 1
        health = classify_health(row)
        field_name = "at_risk" if health == ProjectHealth.at_risk else health.value
        setattr(distribution, field_name, getattr(distribution, field_name) + 1)

    return ReportAnalytics(
        total=total,
        avg_satisfaction=sum(scores) / len(scores) if scores else 0.0,
        on_budget_rate=on_budget / total * 100,
        on_time_rate=on_time / total * 100,
        scope_change_rate=scope_changes / total * 100,
        client_count=len(clients),
        active_projects=active,
        completed_projects=completed,
        health_distribution=distribution,
    )
