"""Database schema CLI commands."""

from __future__ import annotations

import typer
from rich.console import Console
from sqlalchemy.exc import SQLAlchemyError

from taskhub.database.connection import create_schema

app = typer.Typer(help="Database schema commands")
console = Console()


@app.command()
def init() -> None:
    """Create any missing tables.

    Intended for development and SQLite databases; PostgreSQL deployments
    should run ``alembic upgrade head`` instead.
    """
    from taskhub.main import get_app_context

    ctx = get_app_context()

    try:
        ctx.run(create_schema)
    except SQLAlchemyError as e:
        console.print(f"[red]Error creating schema:[/red] {e}")
        raise typer.Exit(code=1) from e

    console.print("[green]Database schema is up to date.[/green]")
