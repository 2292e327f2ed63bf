"""Command line entry point for Taskhub.

    taskhub serve --port 8000
    taskhub db init
    taskhub seed initial
    taskhub seed sample --seed 42
    taskhub user create alice@example.com Alice Smith --role admin

Every command accepts ``--config path/to/taskhub.toml``; without it the
usual search locations and TASKHUB_* environment variables apply.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Annotated, Optional, TypeVar

import typer
from rich.console import Console
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from taskhub.cli import db as db_cli
from taskhub.cli import seed as seed_cli
from taskhub.cli import user as user_cli
from taskhub.config import TaskhubConfig, load_config
from taskhub.database.connection import get_engine, get_session_factory
from taskhub.logging import get_logger, setup_logging

T = TypeVar("T")

logger = get_logger(__name__)

app = typer.Typer(
    name="taskhub",
    help="Taskhub: project and task management backend",
    no_args_is_help=True,
)
app.add_typer(db_cli.app, name="db", help="Manage the database schema")
app.add_typer(seed_cli.app, name="seed", help="Seed and inspect data")
app.add_typer(user_cli.app, name="user", help="Manage user accounts")

console = Console()


class AppContext:
    """What a CLI command needs: the resolved config and a way to reach the database.

    Each command runs its coroutine on a fresh event loop, so the engine is
    created inside that loop and disposed before it closes.
    """

    def __init__(self, config: TaskhubConfig) -> None:
        self.config = config

    def run(self, operation: Callable[[AsyncEngine], Awaitable[T]]) -> T:
        """Run operation(engine) to completion on a new event loop."""

        async def _main() -> T:
            engine = get_engine(self.config.database)
            try:
                return await operation(engine)
            finally:
                await engine.dispose()

        return asyncio.run(_main())

    def run_in_session(self, operation: Callable[[AsyncSession], Awaitable[T]]) -> T:
        """Run operation(session) with a session that is closed afterwards."""

        async def _with_session(engine: AsyncEngine) -> T:
            async with get_session_factory(engine)() as session:
                return await operation(session)

        return self.run(_with_session)


_context: AppContext | None = None


def get_app_context() -> AppContext:
    """Return the context set up by the root callback.

    Raises:
        RuntimeError: If no command callback has initialized it.
    """
    if _context is None:
        raise RuntimeError("Application context not initialized. Call initialize_context first.")
    return _context


def initialize_context(config: TaskhubConfig) -> AppContext:
    global _context
    _context = AppContext(config)
    return _context


@app.command()
def serve(
    host: Annotated[
        Optional[str],
        typer.Option("--host", "-h", help="Bind address (default: [web] host)"),
    ] = None,
    port: Annotated[
        Optional[int],
        typer.Option("--port", "-p", help="Bind port (default: [web] port)"),
    ] = None,
) -> None:
    """Serve the HTTP API with uvicorn."""
    import uvicorn

    from taskhub.web.app import create_app

    config = get_app_context().config
    bind_host = host or config.web.host
    bind_port = port or config.web.port

    console.print(
        f"[bold cyan]Taskhub API[/bold cyan] on http://{bind_host}:{bind_port}"
        f"{config.web.api_prefix}"
    )
    uvicorn.run(
        create_app(config),
        host=bind_host,
        port=bind_port,
        log_level=config.logging.level.lower(),
        # Requests are logged by RequestLoggingMiddleware.
        access_log=False,
    )


@app.callback()
def main_callback(
    config_path: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            "-c",
            help="TOML configuration file",
            exists=True,
            dir_okay=False,
            readable=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log at DEBUG level"),
    ] = False,
) -> None:
    """Resolve configuration and logging before any sub-command runs."""
    try:
        config = load_config(config_path)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Cannot load configuration:[/red] {e}")
        raise typer.Exit(code=1) from e

    if verbose:
        config.logging.level = "DEBUG"
    setup_logging(config.logging)
    logger.debug("cli_configured", config_path=str(config_path) if config_path else None)

    initialize_context(config)


if __name__ == "__main__":
    app()
