"""User administration CLI commands."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.auth.service import AuthService
from taskhub.database.models.user import User, UserRole
from taskhub.errors import TaskhubError

app = typer.Typer(help="User administration commands")
console = Console()


@app.command()
def create(
    email: Annotated[str, typer.Argument(help="Login email address")],
    first_name: Annotated[str, typer.Argument(help="First name")],
    last_name: Annotated[str, typer.Argument(help="Last name")],
    password: Annotated[
        str,
        typer.Option(
            "--password",
            "-p",
            prompt=True,
            hide_input=True,
            confirmation_prompt=True,
            help="Account password",
        ),
    ],
    role: Annotated[
        list[UserRole],
        typer.Option("--role", "-r", help="Role to grant (repeatable)"),
    ] = [UserRole.member],  # noqa: B006
    language: Annotated[
        str,
        typer.Option("--language", "-l", help="Preferred language code"),
    ] = "en",
) -> None:
    """Create an active user account."""
    from taskhub.main import get_app_context

    ctx = get_app_context()

    async def _create(session: AsyncSession) -> User:
        return await AuthService(session, ctx.config.auth).register(
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            preferred_language=language,
            roles=role,
        )

    try:
        user = ctx.run_in_session(_create)
    except TaskhubError as e:
        console.print(f"[red]Error creating user:[/red] {e}")
        for detail in e.errors:
            console.print(f"  - {detail}")
        raise typer.Exit(code=1) from e

    panel = Panel(
        f"[green]User created successfully![/green]\n\n"
        f"[bold]ID:[/bold] {user.id}\n"
        f"[bold]Email:[/bold] {user.email}\n"
        f"[bold]Name:[/bold] {user.full_name}\n"
        f"[bold]Roles:[/bold] {', '.join(sorted(r.value for r in user.roles))}",
        title="User Created",
        border_style="green",
    )
    console.print(panel)
