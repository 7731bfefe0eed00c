"""Main CLI entry point for Learnd.

This module provides the main Typer application with sub-commands for
profiles, lessons, exports and reports, plus the web server.

Usage:
    learnd serve --port 8000
    learnd profile create ada@example.com --tier team
    learnd lesson seed --profile ada@example.com
    learnd lesson list --profile ada@example.com --status active
    learnd export csv --profile ada@example.com --output lessons.csv
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Annotated, Optional, TypeVar

import typer
from rich.console import Console
from sqlalchemy.ext.asyncio import AsyncSession

from learnd.cli import export as export_cli
from learnd.cli import lesson as lesson_cli
from learnd.cli import profile as profile_cli
from learnd.cli import report as report_cli
from learnd.config import LearndConfig, load_config
from learnd.database.connection import create_all, get_engine, get_session_factory
from learnd.logging import setup_logging

T = TypeVar("T")

app = typer.Typer(
    name="learnd",
    help="Learnd: project lessons learned and portfolio health",
    no_args_is_help=True,
)

app.add_typer(profile_cli.app, name="profile", help="Manage profiles")
app.add_typer(lesson_cli.app, name="lesson", help="Manage lessons")
app.add_typer(export_cli.app, name="export", help="Export lessons")
app.add_typer(report_cli.app, name="report", help="Generate reports")

console = Console()


class AppContext:
    """Application context shared across CLI commands via ``ctx.obj``.

    Attributes:
        config: Loaded Learnd configuration
    """

    def __init__(self, config: LearndConfig):
        self.config = config

    def run(self, operation: Callable[[AsyncSession], Awaitable[T]]) -> T:
        """Run ``operation`` with a fresh engine and session.

        The engine lives for one command so its connections never outlive
        the event loop. SQLite databases get their tables created first.
        """

        async def _run() -> T:
            engine = get_engine(self.config.database)
            try:
                if self.config.database.url.startswith("sqlite"):
                    await create_all(engine)
                session_factory = get_session_factory(engine)
                async with session_factory() as session:
                    return await operation(session)
            finally:
                await engine.dispose()

        return asyncio.run(_run())


@app.command()
def serve(
    ctx: typer.Context,
    host: Annotated[
        Optional[str],
        typer.Option("--host", "-h", help="Host to bind to (default from config)"),
    ] = None,
    port: Annotated[
        Optional[int],
        typer.Option("--port", "-p", help="Port to bind to (default from config)"),
    ] = None,
) -> None:
    """Start the Learnd API and dashboard server."""
    import uvicorn

    from learnd.web.app import create_app

    app_ctx: AppContext = ctx.obj
    config = app_ctx.config
    bind_host = host or config.web.host
    bind_port = port or config.web.port

    console.print("[bold cyan]Starting Learnd Web Server[/bold cyan]")
    console.print(f"[dim]Host:[/dim] {bind_host}")
    console.print(f"[dim]Port:[/dim] {bind_port}")
    console.print()

    uvicorn.run(
        create_app(config),
        host=bind_host,
        port=bind_port,
        log_level=config.logging.level.lower(),
    )


@app.callback()
def main_callback(
    ctx: typer.Context,
    config_path: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file (TOML format)",
            exists=True,
            dir_okay=False,
            readable=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Load configuration, set up logging and build the command context."""
    try:
        config = load_config(config_path)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error loading configuration:[/red] {e}")
        raise typer.Exit(code=1) from e

    if verbose:
        config.logging.level = "DEBUG"
    setup_logging(config.logging)

    ctx.obj = AppContext(config)

    if verbose:
        console.print("[dim]Debug logging enabled[/dim]")


if __name__ == "__main__":
    app()
