"""Profile management CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from sqlalchemy.ext.asyncio import AsyncSession

from learnd.cli.common import resolve_profile
from learnd.database.models import Profile, SubscriptionTier, UserRole
from learnd.database.queries.profile import create_profile
from learnd.tiers import (
    get_role_tier_display_name,
    get_tier_display_name,
    permissions_for_profile,
    tier_access_for_profile,
)

if TYPE_CHECKING:
    from learnd.main import AppContext

app = typer.Typer(help="Profile management commands")
console = Console()


def _describe(profile: Profile) -> str:
    permissions = permissions_for_profile(profile)
    access = tier_access_for_profile(profile)
    return (
        f"[bold]ID:[/bold] {profile.id}\n"
        f"[bold]Email:[/bold] {profile.email}\n"
        f"[bold]Name:[/bold] {profile.display_name}\n"
        f"[bold]Role:[/bold] {profile.role} ({get_role_tier_display_name(permissions.tier)})\n"
        f"[bold]Plan:[/bold] {get_tier_display_name(profile.subscription_tier)}\n"
        f"[bold]Exports:[/bold] {'yes' if permissions.can_export or access.can_access_exports else 'no'}\n"
        f"[bold]Advanced analytics:[/bold] {'yes' if access.can_access_advanced_analytics else 'no'}"
    )


@app.command()
def create(
    ctx: typer.Context,
    email: Annotated[str, typer.Argument(help="Sign-in email address")],
    role: Annotated[
        str,
        typer.Option("--role", "-r", help="admin, power_user or basic_user"),
    ] = UserRole.basic_user.value,
    tier: Annotated[
        str,
        typer.Option("--tier", "-t", help="free, team, business or enterprise"),
    ] = SubscriptionTier.free.value,
    first_name: Annotated[Optional[str], typer.Option("--first-name")] = None,
    last_name: Annotated[Optional[str], typer.Option("--last-name")] = None,
) -> None:
    """Create a new profile."""
    app_ctx: AppContext = ctx.obj

    async def _create(session: AsyncSession) -> Profile:
        return await create_profile(
            session,
            email=email,
            role=role,
            subscription_tier=tier,
            first_name=first_name,
            last_name=last_name,
        )

    try:
        profile = app_ctx.run(_create)
    except Exception as e:
        console.print(f"[red]Error creating profile:[/red] {e}")
        raise typer.Exit(code=1) from e

    console.print(
        Panel(
            f"[green]Profile created successfully![/green]\n\n{_describe(profile)}",
            title="Profile Created",
            border_style="green",
        )
    )


@app.command()
def show(
    ctx: typer.Context,
    reference: Annotated[str, typer.Argument(help="Profile UUID or email")],
) -> None:
    """Show a profile with its permissions and plan."""
    app_ctx: AppContext = ctx.obj

    try:
        profile = app_ctx.run(lambda session: resolve_profile(session, reference))
    except Exception as e:
        console.print(f"[red]Error loading profile:[/red] {e}")
        raise typer.Exit(code=1) from e

    console.print(Panel(_describe(profile), title="Profile", border_style="cyan"))
