"""Export CLI commands.

Exports write the acting profile's lessons as CSV or as a printable HTML
table document. The profile's role or plan must allow exports.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Optional

import typer
from rich.console import Console
from sqlalchemy.ext.asyncio import AsyncSession

from learnd.cli.common import resolve_profile
from learnd.database.models import Lesson
from learnd.database.queries.lesson import list_lessons
from learnd.exports import (
    DocumentOptions,
    ExportFilters,
    apply_export_filters,
    generate_csv_content,
    generate_table_document,
)
from learnd.status import LifecycleStatus
from learnd.tiers import can_export

if TYPE_CHECKING:
    from learnd.main import AppContext

app = typer.Typer(help="Export commands")
console = Console()

ProfileOption = Annotated[
    str,
    typer.Option("--profile", "-P", help="Acting profile UUID or email"),
]
OutputOption = Annotated[
    Optional[Path],
    typer.Option("--output", "-o", help="Output file (stdout when omitted)", dir_okay=False),
]
StatusOption = Annotated[
    Optional[list[LifecycleStatus]],
    typer.Option("--status", "-s", help="Lifecycle status (repeatable)"),
]


class ExportNotAllowedError(Exception):
    """Raised when the acting profile may not export."""


def _load_for_export(
    app_ctx: AppContext,
    reference: str,
    statuses: list[LifecycleStatus] | None,
    filters: ExportFilters,
) -> list[Lesson]:
    async def _load(session: AsyncSession) -> list[Lesson]:
        owner = await resolve_profile(session, reference)
        if not can_export(owner):
            raise ExportNotAllowedError(
                "Exports are available for Team plans and above. "
                "Upgrade to download your lessons"
            )
        return await list_lessons(
            session,
            owner.id,
            lifecycle_statuses=[s.value for s in statuses] if statuses else None,
            limit=app_ctx.config.exports.max_rows,
        )

    return apply_export_filters(app_ctx.run(_load), filters)


def _write(content: str, output: Path | None, count: int) -> None:
    if output is None:
        typer.echo(content, nl=False)
        return
    output.write_text(content, encoding="utf-8")
    console.print(f"[green]Exported {count} lessons to[/green] {output}")


def _parse_date(value: str | None, what: str) -> datetime | None:
    if value is None:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d")
    except ValueError as e:
        raise typer.BadParameter(f"{what} must be YYYY-MM-DD") from e


def _filters(
    project: str | None,
    client: str | None,
    budget: str | None,
    timeline: str | None,
    min_satisfaction: int | None,
    date_from: str | None,
    date_to: str | None,
) -> ExportFilters:
    start = _parse_date(date_from, "--from")
    end = _parse_date(date_to, "--to")
    return ExportFilters(
        project_name=project,
        client_name=client,
        budget=budget,
        timeline=timeline,
        min_satisfaction=min_satisfaction,
        date_from=start.date() if start else None,
        date_to=end.date() if end else None,
    )


@app.command()
def csv(
    ctx: typer.Context,
    profile: ProfileOption,
    output: OutputOption = None,
    status: StatusOption = None,
    project: Annotated[Optional[str], typer.Option("--project")] = None,
    client: Annotated[Optional[str], typer.Option("--client")] = None,
    budget: Annotated[Optional[str], typer.Option("--budget")] = None,
    timeline: Annotated[Optional[str], typer.Option("--timeline")] = None,
    min_satisfaction: Annotated[
        Optional[int], typer.Option("--min-satisfaction", min=1, max=5)
    ] = None,
    date_from: Annotated[Optional[str], typer.Option("--from", help="YYYY-MM-DD")] = None,
    date_to: Annotated[Optional[str], typer.Option("--to", help="YYYY-MM-DD")] = None,
    no_headers: Annotated[bool, typer.Option("--no-headers")] = False,
) -> None:
    """Export lessons as CSV."""
    app_ctx: AppContext = ctx.obj
    filters = _filters(project, client, budget, timeline, min_satisfaction, date_from, date_to)

    try:
        lessons = _load_for_export(app_ctx, profile, status, filters)
    except Exception as e:
        console.print(f"[red]Error exporting lessons:[/red] {e}")
        raise typer.Exit(code=1) from e

    _write(generate_csv_content(lessons, include_headers=not no_headers), output, len(lessons))


@app.command()
def document(
    ctx: typer.Context,
    profile: ProfileOption,
    output: OutputOption = None,
    status: StatusOption = None,
    title: Annotated[str, typer.Option("--title")] = "Lessons Learned Report",
    orientation: Annotated[
        str, typer.Option("--orientation", help="portrait or landscape")
    ] = "landscape",
    project: Annotated[Optional[str], typer.Option("--project")] = None,
    client: Annotated[Optional[str], typer.Option("--client")] = None,
    budget: Annotated[Optional[str], typer.Option("--budget")] = None,
    timeline: Annotated[Optional[str], typer.Option("--timeline")] = None,
) -> None:
    """Export lessons as a printable HTML table document."""
    app_ctx: AppContext = ctx.obj
    filters = _filters(project, client, budget, timeline, None, None, None)

    try:
        options = DocumentOptions(
            title=title,
            orientation=orientation,
            rows_per_page=app_ctx.config.exports.rows_per_page,
        )
        lessons = _load_for_export(app_ctx, profile, status, filters)
    except Exception as e:
        console.print(f"[red]Error exporting lessons:[/red] {e}")
        raise typer.Exit(code=1) from e

    _write(generate_table_document(lessons, filters, options), output, len(lessons))
