"""Export endpoints for Learnd.

Both endpoints require export permission (role or plan) and return the
caller's lessons after the export filters are applied:

- ``GET /exports/csv`` CSV attachment
- ``GET /exports/document`` paginated HTML table document
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Literal

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse, Response

from learnd.config import LearndConfig
from learnd.database.models import Lesson, Profile
from learnd.database.queries.lesson import list_lessons
from learnd.exports import (
    DocumentOptions,
    ExportFilters,
    apply_export_filters,
    generate_csv_content,
    generate_table_document,
    generate_timestamped_filename,
)
from learnd.logging import get_logger
from learnd.web.auth import get_config, get_session_factory, require_export
from learnd.web.routes.lessons import check_date_window, parse_lifecycle_filter, parse_signal_filter

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = get_logger(__name__)


def export_filters(
    project_name: str | None = Query(None),
    client_name: str | None = Query(None),
    budget: str | None = Query(None, description="under, on, over or any"),
    timeline: str | None = Query(None, description="early, on-time, late or any"),
    min_satisfaction: int | None = Query(None, ge=1, le=5),
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
) -> ExportFilters:
    """Dependency collecting export filters from the query string.

    Raises:
        HTTPException: 400 for unknown budget/timeline values or a reversed
            date window.
    """
    check_date_window(date_from, date_to)
    return ExportFilters(
        project_name=project_name,
        client_name=client_name,
        budget=parse_signal_filter("budget", budget),
        timeline=parse_signal_filter("timeline", timeline),
        min_satisfaction=min_satisfaction,
        date_from=date_from,
        date_to=date_to,
    )


async def _load(
    session_factory: async_sessionmaker[AsyncSession],
    profile: Profile,
    lifecycle_status: list[str] | None,
    filters: ExportFilters,
    max_rows: int,
) -> list[Lesson]:
    async with session_factory() as session:
        lessons = await list_lessons(
            session,
            profile.id,
            lifecycle_statuses=parse_lifecycle_filter(lifecycle_status),
            limit=max_rows,
        )
    return apply_export_filters(lessons, filters)


def create_exports_router() -> APIRouter:
    """Create the exports router.

    Routes:
        GET /exports/csv - CSV download
        GET /exports/document - Printable HTML table document
    """
    router = APIRouter(prefix="/exports", tags=["exports"])

    @router.get("/csv")
    async def export_csv(
        lifecycle_status: list[str] | None = Query(None),  # noqa: B008
        include_headers: bool = Query(True),
        filters: ExportFilters = Depends(export_filters),  # noqa: B008
        profile: Profile = Depends(require_export),  # noqa: B008
        config: LearndConfig = Depends(get_config),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> Response:
        lessons = await _load(
            session_factory, profile, lifecycle_status, filters, config.exports.max_rows
        )
        filename = generate_timestamped_filename("lessons-learned", "csv")

        logger.info("lessons_exported", format="csv", count=len(lessons))

        return Response(
            content=generate_csv_content(lessons, include_headers=include_headers),
            media_type="text/csv; charset=utf-8",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    @router.get("/document", response_class=HTMLResponse)
    async def export_document(
        lifecycle_status: list[str] | None = Query(None),  # noqa: B008
        title: str = Query("Lessons Learned Report", min_length=1, max_length=200),
        orientation: Literal["portrait", "landscape"] = Query("landscape"),
        include_filters: bool = Query(True),
        include_summary: bool = Query(True),
        filters: ExportFilters = Depends(export_filters),  # noqa: B008
        profile: Profile = Depends(require_export),  # noqa: B008
        config: LearndConfig = Depends(get_config),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> HTMLResponse:
        lessons = await _load(
            session_factory, profile, lifecycle_status, filters, config.exports.max_rows
        )
        options = DocumentOptions(
            title=title,
            orientation=orientation,
            include_filters=include_filters,
            include_summary=include_summary,
            rows_per_page=config.exports.rows_per_page,
        )

        logger.info("lessons_exported", format="document", count=len(lessons))

        return HTMLResponse(generate_table_document(lessons, filters, options))

    return router
