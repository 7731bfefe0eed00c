"""Lesson management CLI commands.

This module provides CLI commands for recording lessons, listing them with
their derived health, changing lifecycle status and loading demo data.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Annotated, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from sqlalchemy.ext.asyncio import AsyncSession

from learnd.cli.common import parse_uuid, resolve_profile
from learnd.database.models import Lesson, LessonStatusChange
from learnd.database.queries.lesson import (
    change_lesson_status,
    create_lesson,
    get_lesson,
    list_lessons,
    seed_sample_lessons,
)
from learnd.lifecycle import StatusChangeRequest, status_change_insights
from learnd.status import (
    LifecycleStatus,
    classify_health,
    get_health_status_label,
    get_lifecycle_status_label,
)

if TYPE_CHECKING:
    from learnd.main import AppContext

app = typer.Typer(help="Lesson management commands")
console = Console()

HEALTH_COLORS = {
    "healthy": "green",
    "at-risk": "yellow",
    "critical": "red",
    "successful": "green",
    "underperformed": "red",
    "mixed": "yellow",
}

ProfileOption = Annotated[
    str,
    typer.Option("--profile", "-P", help="Acting profile UUID or email"),
]


def _health_cell(lesson: Lesson) -> str:
    health = classify_health(lesson)
    color = HEALTH_COLORS.get(health.value, "white")
    return f"[{color}]{get_health_status_label(health)}[/{color}]"


def _describe(lesson: Lesson) -> str:
    return (
        f"[bold]ID:[/bold] {lesson.id}\n"
        f"[bold]Project:[/bold] {lesson.project_name}\n"
        f"[bold]Client:[/bold] {lesson.client_name or '—'}\n"
        f"[bold]Role:[/bold] {lesson.role}\n"
        f"[bold]Status:[/bold] {get_lifecycle_status_label(lesson.lifecycle_status)}\n"
        f"[bold]Health:[/bold] {_health_cell(lesson)}\n"
        f"[bold]Satisfaction:[/bold] {lesson.satisfaction if lesson.satisfaction is not None else '—'}\n"
        f"[bold]Budget:[/bold] {lesson.budget_status or '—'}\n"
        f"[bold]Timeline:[/bold] {lesson.timeline_status or '—'}\n"
        f"[bold]Scope change:[/bold] {'Yes' if lesson.scope_change else 'No'}"
    )


@app.command()
def create(
    ctx: typer.Context,
    profile: ProfileOption,
    project_name: Annotated[str, typer.Option("--project", help="Project name")],
    role: Annotated[str, typer.Option("--role", help="Your role on the project")],
    client_name: Annotated[Optional[str], typer.Option("--client", help="Client name")] = None,
    status: Annotated[
        LifecycleStatus,
        typer.Option("--status", "-s", help="Lifecycle status"),
    ] = LifecycleStatus.active,
    satisfaction: Annotated[
        Optional[int],
        typer.Option("--satisfaction", min=1, max=5, help="Client satisfaction 1-5"),
    ] = None,
    budget: Annotated[Optional[str], typer.Option("--budget", help="under, on or over")] = None,
    timeline: Annotated[
        Optional[str], typer.Option("--timeline", help="early, on-time or late")
    ] = None,
    scope_change: Annotated[bool, typer.Option("--scope-change", help="Scope changed")] = False,
    notes: Annotated[Optional[str], typer.Option("--notes")] = None,
) -> None:
    """Record a new lesson."""
    app_ctx: AppContext = ctx.obj

    async def _create(session: AsyncSession) -> Lesson:
        owner = await resolve_profile(session, profile)
        return await create_lesson(
            session,
            created_by=owner.id,
            project_name=project_name,
            role=role,
            client_name=client_name,
            lifecycle_status=status.value,
            satisfaction=satisfaction,
            budget_status=budget,
            timeline_status=timeline,
            scope_change=scope_change,
            notes=notes,
        )

    try:
        lesson = app_ctx.run(_create)
    except Exception as e:
        console.print(f"[red]Error creating lesson:[/red] {e}")
        raise typer.Exit(code=1) from e

    console.print(
        Panel(
            f"[green]Lesson created successfully![/green]\n\n{_describe(lesson)}",
            title="Lesson Created",
            border_style="green",
        )
    )


@app.command(name="list")
def list_command(
    ctx: typer.Context,
    profile: ProfileOption,
    status: Annotated[
        Optional[list[LifecycleStatus]],
        typer.Option("--status", "-s", help="Lifecycle status (repeatable)"),
    ] = None,
    budget: Annotated[Optional[str], typer.Option("--budget")] = None,
    timeline: Annotated[Optional[str], typer.Option("--timeline")] = None,
    min_satisfaction: Annotated[
        Optional[int], typer.Option("--min-satisfaction", min=1, max=5)
    ] = None,
    format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format (table or json)"),
    ] = "table",
) -> None:
    """List lessons with their health."""
    app_ctx: AppContext = ctx.obj

    async def _list(session: AsyncSession) -> list[Lesson]:
        owner = await resolve_profile(session, profile)
        return await list_lessons(
            session,
            owner.id,
            lifecycle_statuses=[s.value for s in status] if status else None,
            budget_status=budget,
            timeline_status=timeline,
            min_satisfaction=min_satisfaction,
        )

    try:
        lessons = app_ctx.run(_list)
    except Exception as e:
        console.print(f"[red]Error listing lessons:[/red] {e}")
        raise typer.Exit(code=1) from e

    if format == "json":
        output = [
            {
                "id": str(lesson.id),
                "project_name": lesson.project_name,
                "client_name": lesson.client_name,
                "lifecycle_status": lesson.lifecycle_status,
                "health": classify_health(lesson).value,
                "satisfaction": lesson.satisfaction,
                "budget_status": lesson.budget_status,
                "timeline_status": lesson.timeline_status,
            }
            for lesson in lessons
        ]
        print(json.dumps(output, indent=2))
        return

    if not lessons:
        console.print("[yellow]No lessons found[/yellow]")
        return

    table = Table(title="Lessons")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Project", style="bold")
    table.add_column("Client")
    table.add_column("Status", style="magenta")
    table.add_column("Health")
    table.add_column("Sat.", justify="right")

    for lesson in lessons:
        table.add_row(
            str(lesson.id),
            lesson.project_name,
            lesson.client_name or "—",
            get_lifecycle_status_label(lesson.lifecycle_status),
            _health_cell(lesson),
            str(lesson.satisfaction) if lesson.satisfaction is not None else "—",
        )

    console.print(table)


@app.command()
def show(
    ctx: typer.Context,
    lesson_id: Annotated[str, typer.Argument(help="Lesson UUID")],
    profile: ProfileOption,
) -> None:
    """Show one lesson."""
    app_ctx: AppContext = ctx.obj

    async def _show(session: AsyncSession) -> Lesson:
        owner = await resolve_profile(session, profile)
        lesson = await get_lesson(session, parse_uuid(lesson_id, "lesson ID"), owner.id)
        if lesson is None:
            raise ValueError(f"Lesson {lesson_id} not found")
        return lesson

    try:
        lesson = app_ctx.run(_show)
    except Exception as e:
        console.print(f"[red]Error loading lesson:[/red] {e}")
        raise typer.Exit(code=1) from e

    console.print(Panel(_describe(lesson), title="Lesson", border_style="cyan"))


@app.command()
def status(
    ctx: typer.Context,
    lesson_id: Annotated[str, typer.Argument(help="Lesson UUID")],
    new_status: Annotated[LifecycleStatus, typer.Argument(help="Target lifecycle status")],
    profile: ProfileOption,
    reason: Annotated[str, typer.Option("--reason", help="Why the status changes")] = "",
    summary: Annotated[
        Optional[str], typer.Option("--summary", help="Completion summary")
    ] = None,
    final_satisfaction: Annotated[
        Optional[int],
        typer.Option("--final-satisfaction", min=1, max=5, help="Final satisfaction 1-5"),
    ] = None,
    blockers: Annotated[Optional[str], typer.Option("--blockers")] = None,
    restart_conditions: Annotated[Optional[str], typer.Option("--restart-conditions")] = None,
) -> None:
    """Change a lesson's lifecycle status."""
    app_ctx: AppContext = ctx.obj
    request = StatusChangeRequest(
        new_status=new_status,
        reason=reason,
        completion_summary=summary,
        final_satisfaction=final_satisfaction,
        blockers=blockers,
        restart_conditions=restart_conditions,
    )

    async def _change(session: AsyncSession) -> tuple[Lesson, LessonStatusChange]:
        owner = await resolve_profile(session, profile)
        return await change_lesson_status(
            session, parse_uuid(lesson_id, "lesson ID"), owner.id, request
        )

    try:
        lesson, change = app_ctx.run(_change)
    except Exception as e:
        console.print(f"[red]Error changing status:[/red] {e}")
        raise typer.Exit(code=1) from e

    insights = status_change_insights(change.new_status, change.details, change.previous_status)
    body = (
        f"[green]Status changed:[/green] {get_lifecycle_status_label(change.previous_status)}"
        f" -> {get_lifecycle_status_label(change.new_status)}\n\n{_describe(lesson)}"
    )
    if insights:
        body += "\n\n[bold]Next steps:[/bold]\n" + "\n".join(f"• {item}" for item in insights)
    console.print(Panel(body, title="Status Changed", border_style="green"))


@app.command()
def seed(
    ctx: typer.Context,
    profile: ProfileOption,
) -> None:
    """Load the fifteen-project demo portfolio."""
    app_ctx: AppContext = ctx.obj

    async def _seed(session: AsyncSession) -> list[Lesson]:
        owner = await resolve_profile(session, profile)
        return await seed_sample_lessons(session, owner.id)

    try:
        lessons = app_ctx.run(_seed)
    except Exception as e:
        console.print(f"[red]Error loading sample data:[/red] {e}")
        raise typer.Exit(code=1) from e

    console.print(f"[green]Loaded {len(lessons)} sample lessons[/green]")
