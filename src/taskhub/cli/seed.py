"""Seeding CLI commands.

Wraps the seeders in ``taskhub.seed`` and prints the resulting row counts.
"""

from __future__ import annotations

import random
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.errors import TaskhubError
from taskhub.seed import DatabaseSeeder, DatabaseStats, SampleDataSeeder, collect_stats

app = typer.Typer(help="Seed and inspect data")
console = Console()


def _print_stats(stats: DatabaseStats, title: str) -> None:
    table = Table(title=title)
    table.add_column("Entity", style="cyan")
    table.add_column("Rows", justify="right", style="green")
    for name, count in stats.as_dict().items():
        table.add_row(name, str(count))
    for status, count in stats.tasks_by_status.items():
        table.add_row(f"tasks ({status})", str(count), style="dim")
    console.print(table)


@app.command()
def initial() -> None:
    """Seed the fixed initial users, projects, tasks and comments."""
    from taskhub.main import get_app_context

    ctx = get_app_context()

    async def _seed(session: AsyncSession) -> DatabaseStats:
        return await DatabaseSeeder(session, ctx.config.auth).seed()

    try:
        stats = ctx.run_in_session(_seed)
    except TaskhubError as e:
        console.print(f"[red]Seeding failed:[/red] {e}")
        raise typer.Exit(code=1) from e

    _print_stats(stats, "Initial data seeded")


@app.command()
def sample(
    seed: Annotated[
        Optional[int],
        typer.Option("--seed", help="Random seed for reproducible sample data"),
    ] = None,
) -> None:
    """Add randomised sample users, projects, tasks and comments."""
    from taskhub.main import get_app_context

    ctx = get_app_context()
    rng = random.Random(seed)

    async def _seed(session: AsyncSession) -> DatabaseStats:
        return await SampleDataSeeder(session, ctx.config.auth, rng=rng).seed()

    try:
        stats = ctx.run_in_session(_seed)
    except TaskhubError as e:
        console.print(f"[red]Seeding failed:[/red] {e}")
        raise typer.Exit(code=1) from e

    _print_stats(stats, "Sample data seeded")


@app.command()
def stats() -> None:
    """Show row counts of the non-deleted entities."""
    from taskhub.main import get_app_context

    _print_stats(get_app_context().run_in_session(collect_stats), "Database statistics")
