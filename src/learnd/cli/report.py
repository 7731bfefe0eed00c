"""Report CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table
from sqlalchemy.ext.asyncio import AsyncSession

from learnd.cli.common import resolve_profile
from learnd.database.models import Lesson
from learnd.database.queries.lesson import list_lessons
from learnd.reports import (
    REPORT_TEMPLATES,
    ReportConfig,
    generate_report,
    generate_report_csv,
    render_report_html,
)
from learnd.status import LifecycleStatus
from learnd.tiers import can_export

if TYPE_CHECKING:
    from learnd.main import AppContext

app = typer.Typer(help="Report commands")
console = Console()


@app.command()
def templates() -> None:
    """List the available report templates."""
    table = Table(title="Report Templates")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Title", style="bold")
    table.add_column("Audience")
    table.add_column("Focus")

    for name, info in REPORT_TEMPLATES.items():
        table.add_row(name, info.title, ", ".join(info.audience), info.focus)

    console.print(table)


@app.command()
def generate(
    ctx: typer.Context,
    profile: Annotated[
        str,
        typer.Option("--profile", "-P", help="Acting profile UUID or email"),
    ],
    template: Annotated[
        str, typer.Option("--template", "-t", help="Report template name")
    ] = "executive_portfolio",
    audience: Annotated[str, typer.Option("--audience", "-a")] = "internal",
    status: Annotated[
        Optional[list[LifecycleStatus]],
        typer.Option("--status", "-s", help="Lifecycle status (repeatable)"),
    ] = None,
    client: Annotated[Optional[str], typer.Option("--client")] = None,
    include_risks: Annotated[bool, typer.Option("--include-risks")] = False,
    format: Annotated[str, typer.Option("--format", "-f", help="html or csv")] = "html",
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Output file (stdout when omitted)", dir_okay=False),
    ] = None,
) -> None:
    """Generate a portfolio report."""
    app_ctx: AppContext = ctx.obj

    if format not in ("html", "csv"):
        console.print(f"[red]Unknown format:[/red] {format}")
        raise typer.Exit(code=1)

    try:
        config = ReportConfig(
            template=template,
            audience=audience,
            lifecycle_statuses=status or [],
            client_filter=client,
            include_risks=include_risks,
        )
    except ValueError as e:
        console.print(f"[red]Invalid report options:[/red] {e}")
        raise typer.Exit(code=1) from e

    async def _load(session: AsyncSession) -> list[Lesson]:
        owner = await resolve_profile(session, profile)
        if not can_export(owner):
            raise PermissionError("Reports are available for Team plans and above")
        return await list_lessons(session, owner.id, limit=app_ctx.config.exports.max_rows)

    try:
        lessons = app_ctx.run(_load)
    except Exception as e:
        console.print(f"[red]Error generating report:[/red] {e}")
        raise typer.Exit(code=1) from e

    if format == "csv":
        content = generate_report_csv(lessons, config)
    else:
        content = render_report_html(generate_report(lessons, config))

    if output is None:
        typer.echo(content, nl=False)
        return
    output.write_text(content, encoding="utf-8")
    console.print(f"[green]Report written to[/green] {output}")
