"""Integration tests for export and report endpoints.

Exports and reports are gated on export permission, which either the
role (power user, admin) or the plan (Team and above) can grant.
"""

from __future__ import annotations

import csv
import io

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from learnd.database.models import Profile
from learnd.database.queries.lesson import seed_sample_lessons
from learnd.database.queries.profile import create_profile
from learnd.exports import CSV_HEADERS
from learnd.reports import REPORT_CSV_HEADERS


def headers(profile: Profile) -> dict[str, str]:
    return {"X-User-ID": str(profile.id)}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("method", "path"),
    [("GET", "/exports/csv"), ("GET", "/exports/document"), ("POST", "/reports/generate")],
)
async def test_free_basic_user_cannot_export(
    client: AsyncClient, profile: Profile, method: str, path: str
) -> None:
    response = await client.request(method, path, headers=headers(profile), json={})

    assert response.status_code == 403
    assert "Upgrade" in response.json()["detail"]


@pytest.mark.asyncio
async def test_power_user_on_free_plan_can_export(
    client: AsyncClient, db_session: AsyncSession
) -> None:
    power = await create_profile(db_session, email="power@example.com", role="power_user")

    response = await client.get("/exports/csv", headers=headers(power))

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_csv_export(
    client: AsyncClient, db_session: AsyncSession, team_profile: Profile
) -> None:
    await seed_sample_lessons(db_session, team_profile.id)

    response = await client.get("/exports/csv", headers=headers(team_profile))

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    disposition = response.headers["content-disposition"]
    assert disposition.startswith('attachment; filename="lessons-learned-')
    assert disposition.endswith('.csv"')

    rows = list(csv.reader(io.StringIO(response.text)))
    assert rows[0] == CSV_HEADERS
    assert len(rows) == 16


@pytest.mark.asyncio
async def test_csv_export_filters(
    client: AsyncClient, db_session: AsyncSession, team_profile: Profile
) -> None:
    await seed_sample_lessons(db_session, team_profile.id)

    response = await client.get(
        "/exports/csv",
        params={"lifecycle_status": "completed", "budget": "over", "include_headers": "false"},
        headers=headers(team_profile),
    )

    rows = list(csv.reader(io.StringIO(response.text)))
    assert len(rows) == 1
    assert rows[0][3] == "Completed"
    assert rows[0][8] == "over"


@pytest.mark.asyncio
async def test_csv_export_rejects_bad_filter(client: AsyncClient, team_profile: Profile) -> None:
    response = await client.get(
        "/exports/csv", params={"budget": "bankrupt"}, headers=headers(team_profile)
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_document_export(
    client: AsyncClient, db_session: AsyncSession, team_profile: Profile
) -> None:
    await seed_sample_lessons(db_session, team_profile.id)

    response = await client.get(
        "/exports/document",
        params={"title": "Quarterly Review", "orientation": "portrait"},
        headers=headers(team_profile),
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "Quarterly Review" in response.text
    assert "Mobile App Redesign" in response.text


@pytest.mark.asyncio
async def test_report_templates_listed(client: AsyncClient, profile: Profile) -> None:
    response = await client.get("/reports/templates", headers=headers(profile))

    assert response.status_code == 200
    names = {item["name"] for item in response.json()}
    assert {"active_portfolio_health", "completion_analysis", "executive_portfolio"} <= names


@pytest.mark.asyncio
async def test_generate_html_report(
    client: AsyncClient, db_session: AsyncSession, business_profile: Profile
) -> None:
    await seed_sample_lessons(db_session, business_profile.id)

    response = await client.post(
        "/reports/generate",
        json={"template": "executive_portfolio", "audience": "executive", "include_risks": True},
        headers=headers(business_profile),
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "Executive Portfolio Summary" in response.text


@pytest.mark.asyncio
async def test_generate_csv_report_with_filters(
    client: AsyncClient, db_session: AsyncSession, business_profile: Profile
) -> None:
    await seed_sample_lessons(db_session, business_profile.id)

    response = await client.post(
        "/reports/generate",
        json={
            "template": "completion_analysis",
            "lifecycle_statuses": ["completed"],
            "format": "csv",
        },
        headers=headers(business_profile),
    )

    assert response.status_code == 200
    assert "completion_analysis-report-" in response.headers["content-disposition"]
    rows = list(csv.reader(io.StringIO(response.text)))
    assert rows[0] == REPORT_CSV_HEADERS
    assert len(rows) == 7
    assert {row[2] for row in rows[1:]} == {"completed"}


@pytest.mark.asyncio
async def test_generate_report_rejects_unknown_template(
    client: AsyncClient, team_profile: Profile
) -> None:
    response = await client.post(
        "/reports/generate", json={"template": "quarterly"}, headers=headers(team_profile)
    )

    assert response.status_code == 422
