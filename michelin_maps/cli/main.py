"""MICHELIN Maps CLI using Typer."""

from __future__ import annotations

import asyncio
import logging
import os
import signal
from collections.abc import Awaitable, Callable
from enum import Enum
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich import print as rprint
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from michelin_maps import __version__
from michelin_maps.db.engine import DatabaseError, get_session_factory, init_db, run_migrations
from michelin_maps.ingestion.config import AppConfig, ConfigError, load_config
from michelin_maps.ingestion.crawler import QueueFull
from michelin_maps.ingestion.jobs import JobResult, JobStatus, UnknownRestaurantError, backfill, scrape
from michelin_maps.ingestion.storage import CacheError

# Load .env file from current directory or project root
_env_paths = [
    Path.cwd() / ".env",
    Path(__file__).parent.parent.parent / ".env",
]
for _env_path in _env_paths:
    if _env_path.exists():
        load_dotenv(_env_path)
        break

logger = logging.getLogger(__name__)

console = Console(stderr=True)
app = typer.Typer(
    name="michelin-maps",
    help="Scrape the MICHELIN Guide and backfill award history from the Wayback Machine",
    add_completion=False,
)


class LogLevel(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    FATAL = "fatal"
    PANIC = "panic"

    def to_logging(self) -> int:
        return {
            LogLevel.DEBUG: logging.DEBUG,
            LogLevel.INFO: logging.INFO,
            LogLevel.WARNING: logging.WARNING,
            LogLevel.ERROR: logging.ERROR,
            LogLevel.FATAL: logging.CRITICAL,
            LogLevel.PANIC: logging.CRITICAL,
        }[self]


def setup_logging(level: LogLevel) -> None:
    """Route all loggers through a rich handler at the given level."""
    logging.basicConfig(
        level=level.to_logging(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(level.to_logging(), logging.WARNING))


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"michelin-maps {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit",
    ),
) -> None:
    """Scrape the MICHELIN Guide and backfill award history from the Wayback Machine."""


def _load_config(config_path: Optional[Path]) -> AppConfig:
    try:
        return load_config(config_path)
    except ConfigError as e:
        rprint(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1)


def _resolve_db_path(config: AppConfig, db: Optional[Path]) -> Optional[Path | str]:
    """--db wins, then DATABASE_URL (handled by the engine), then the config file."""
    if db is not None:
        return db
    if os.environ.get("DATABASE_URL"):
        return None
    return config.database_path


def _open_database(db_path: Optional[Path | str]):
    try:
        init_db(db_path)
    except DatabaseError as e:
        rprint(f"[red]Database error:[/red] {e}")
        raise typer.Exit(2)
    return get_session_factory(db_path)


async def _run_cancellable(job: Callable[[asyncio.Event], Awaitable[JobResult]]) -> JobResult:
    """Run a job, turning SIGINT/SIGTERM into a graceful cancel."""
    cancel = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, cancel.set)
        except (NotImplementedError, RuntimeError):
            pass
    return await job(cancel)


def _run_job(job: Callable[[asyncio.Event], Awaitable[JobResult]]) -> JobResult:
    try:
        return asyncio.run(_run_cancellable(job))
    except QueueFull as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except UnknownRestaurantError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except CacheError as e:
        rprint(f"[red]Cache error:[/red] {e}")
        raise typer.Exit(2)


@app.command("scrape")
def scrape_command(
    url: Optional[str] = typer.Argument(None, help="Scrape a single restaurant page instead of the whole guide"),
    log: LogLevel = typer.Option(LogLevel.INFO, "--log", "-l", help="Log level", case_sensitive=False),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to a YAML config file"),
    db: Optional[Path] = typer.Option(None, "--db", help="Path to the SQLite database"),
) -> None:
    """
    Scrape restaurants and awards from the live MICHELIN Guide.

    Examples:
        michelin-maps scrape
        michelin-maps scrape https://guide.michelin.com/en/singapore-region/singapore/restaurant/les-amis
    """
    setup_logging(log)
    config = _load_config(config_path)
    session_factory = _open_database(_resolve_db_path(config, db))

    result = _run_job(lambda cancel: scrape(config, session_factory, url=url, cancel=cancel))
    _display_job_result(result)
    if result.status == JobStatus.FAILED:
        raise typer.Exit(1)


@app.command("backfill")
def backfill_command(
    url: Optional[str] = typer.Argument(None, help="Backfill a single stored restaurant"),
    log: LogLevel = typer.Option(LogLevel.INFO, "--log", "-l", help="Log level", case_sensitive=False),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to a YAML config file"),
    db: Optional[Path] = typer.Option(None, "--db", help="Path to the SQLite database"),
) -> None:
    """
    Backfill historical awards from Wayback Machine snapshots.

    Examples:
        michelin-maps backfill
        michelin-maps backfill https://guide.michelin.com/en/singapore-region/singapore/restaurant/les-amis
    """
    setup_logging(log)
    config = _load_config(config_path)
    session_factory = _open_database(_resolve_db_path(config, db))

    result = _run_job(lambda cancel: backfill(config, session_factory, url=url, cancel=cancel))
    _display_job_result(result)
    if result.status == JobStatus.FAILED:
        raise typer.Exit(1)


@app.command("init-db")
def init_db_command(
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to a YAML config file"),
    db: Optional[Path] = typer.Option(None, "--db", help="Path to the SQLite database"),
    migrate: bool = typer.Option(False, "--migrate", help="Apply Alembic migrations instead of create_all"),
) -> None:
    """Initialize the database (create tables)."""
    config = _load_config(config_path)
    db_path = _resolve_db_path(config, db)

    typer.echo("Initializing database...")
    try:
        if migrate:
            run_migrations(db_path)
        else:
            init_db(db_path)
    except DatabaseError as e:
        rprint(f"[red]Database error:[/red] {e}")
        raise typer.Exit(2)
    typer.echo("Database initialized successfully!")


def _display_job_result(result: JobResult) -> None:
    """Display job result in a formatted table."""
    status = result.status.value
    status_color = {
        "completed": "green",
        "running": "blue",
        "cancelled": "yellow",
        "failed": "red",
    }.get(status, "white")

    rprint(f"\n[bold]Results:[/bold]")
    rprint(f"  Job: {result.job_name}")
    rprint(f"  Status: [{status_color}]{status}[/{status_color}]")
    if result.duration_seconds:
        rprint(f"  Duration: {result.duration_seconds:.1f}s")

    table = Table(title="Statistics", show_header=False)
    table.add_column("Metric")
    table.add_column("Count", justify="right")
    table.add_row("URLs requested", str(result.urls_requested))
    table.add_row("URLs fetched", str(result.urls_fetched))
    table.add_row("Cache hits", str(result.cache_hits))
    table.add_row("Pages failed", str(result.pages_failed))
    if result.job_name == "backfill":
        table.add_row("Snapshots found", str(result.snapshots_found))
    else:
        table.add_row("Restaurants saved", str(result.restaurants_saved))
    table.add_row("Awards created", str(result.awards_created))
    table.add_row("Awards updated", str(result.awards_updated))
    table.add_row("Awards unchanged", str(result.awards_unchanged))
    table.add_row("Records skipped", str(result.records_skipped))
    rprint(table)

    errors = result.errors
    if errors:
        rprint(f"\n[bold red]Errors ({len(errors)}):[/bold red]")
        for error in errors[:10]:  # Show first 10
            rprint(f"  • {error}")
        if len(errors) > 10:
            rprint(f"  ... and {len(errors) - 10} more")


if __name__ == "__main__":
    app()
