"""Report endpoints for Learnd.

- ``GET /reports/templates`` available report templates
- ``POST /reports/generate`` build a report as HTML or CSV (export permission)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse, Response
from pydantic import BaseModel

from learnd.config import LearndConfig
from learnd.database.models import Profile
from learnd.database.queries.lesson import list_lessons
from learnd.exports import generate_timestamped_filename
from learnd.logging import get_logger
from learnd.reports import (
    REPORT_TEMPLATES,
    ReportConfig,
    generate_report,
    generate_report_csv,
    render_report_html,
)
from learnd.web.auth import get_config, get_current_profile, get_session_factory, require_export

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = get_logger(__name__)


class ReportTemplateResponse(BaseModel):
    name: str
    title: str
    description: str
    audience: list[str]
    focus: str


class ReportRequest(ReportConfig):
    """Report configuration plus the output format."""

    format: Literal["html", "csv"] = "html"


def create_reports_router() -> APIRouter:
    """Create the reports router.

    Routes:
        GET /reports/templates - Template catalog
        POST /reports/generate - Generate a report
    """
    router = APIRouter(prefix="/reports", tags=["reports"])

    @router.get("/templates", response_model=list[ReportTemplateResponse])
    async def list_templates(
        profile: Profile = Depends(get_current_profile),  # noqa: B008
    ) -> list[dict[str, Any]]:
        return [{"name": name, **info.model_dump()} for name, info in REPORT_TEMPLATES.items()]

    @router.post("/generate")
    async def generate(
        body: ReportRequest,
        profile: Profile = Depends(require_export),  # noqa: B008
        config: LearndConfig = Depends(get_config),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> Response:
        report_config = ReportConfig(**body.model_dump(exclude={"format"}))

        async with session_factory() as session:
            lessons = await list_lessons(session, profile.id, limit=config.exports.max_rows)

        if body.format == "csv":
            filename = generate_timestamped_filename(f"{report_config.template}-report", "csv")
            logger.info("report_exported", template=report_config.template, format="csv")
            return Response(
                content=generate_report_csv(lessons, report_config),
                media_type="text/csv; charset=utf-8",
                headers={"Content-Disposition": f'attachment; filename="{filename}"'},
            )

        report = generate_report(lessons, report_config)
        return HTMLResponse(render_report_html(report))

    return router
