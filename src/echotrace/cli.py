"""Command-line interface for EchoTrace."""

from __future__ import annotations

import logging
import time
from datetime import date
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

import typer

from .client import CommandFailedError, ServiceUnavailableError, TrackerClient
from .config import DEFAULT_HOST, DEFAULT_PORT, DEFAULT_SERVICE_URL, TrackerSettings
from .paths import get_db_path, get_export_dir, get_log_path

app = typer.Typer(help="Track how much active time you spend on websites.")

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

T = TypeVar("T")


@app.callback(no_args_is_help=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs."),
    url: str = typer.Option(
        DEFAULT_SERVICE_URL, "--url", help="Base URL of the EchoTrace service."
    ),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=_LOG_FORMAT,
    )
    ctx.obj = TrackerClient(url)


@app.command()
def serve(
    host: str = typer.Option(DEFAULT_HOST, "--host", help="Interface to bind the service."),
    port: int = typer.Option(
        DEFAULT_PORT, "--port", min=1, max=65535, help="TCP port for the service."
    ),
    db_path: Optional[Path] = typer.Option(
        None, "--db", path_type=Path, help="Location of the stats SQLite database."
    ),
    tick_minutes: float = typer.Option(
        5.0,
        "--tick-interval",
        min=0.1,
        help="Minutes between periodic flushes of the open session.",
    ),
    log_file: bool = typer.Option(
        True, "--log-file/--no-log-file", help="Also write logs to the data directory."
    ),
) -> None:
    """Run the tracking service until interrupted."""
    from .server_runner import run_service

    if log_file:
        handler = logging.FileHandler(get_log_path(), encoding="utf-8")
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        logging.getLogger().addHandler(handler)

    run_service(
        host=host,
        port=port,
        db_path=db_path or get_db_path(),
        settings=TrackerSettings.from_intervals(tick_minutes=tick_minutes),
    )


@app.command()
def status(ctx: typer.Context) -> None:
    """Show today's total, top category and site, and tracking state."""
    from .reporting import SummaryPrinter

    snapshot = _call(ctx.obj.get_stats)
    SummaryPrinter(snapshot).print_popup(date.today())


@app.command()
def dashboard(
    ctx: typer.Context,
    watch: bool = typer.Option(False, "--watch", help="Keep refreshing until interrupted."),
    poll_seconds: float = typer.Option(
        5.0, "--poll-interval", min=1.0, help="Seconds between refreshes with --watch."
    ),
) -> None:
    """Print the full dashboard: totals, top sites, weekly view, projections."""
    from .reporting import SummaryPrinter

    settings = TrackerSettings.from_intervals(poll_seconds=poll_seconds)
    while True:
        snapshot = _call(ctx.obj.get_stats)
        SummaryPrinter(snapshot).print_dashboard(date.today())
        if not watch:
            return
        try:
            time.sleep(settings.poll_interval.total_seconds())
        except KeyboardInterrupt:
            return
        print()


@app.command()
def enable(ctx: typer.Context) -> None:
    """Start tracking."""
    enabled = _call(ctx.obj.toggle_tracking, True)
    typer.echo(f"Tracking is {'on' if enabled else 'off'}.")


@app.command()
def disable(ctx: typer.Context) -> None:
    """Stop tracking; the open session is committed first."""
    enabled = _call(ctx.obj.toggle_tracking, False)
    typer.echo(f"Tracking is {'on' if enabled else 'off'}.")


@app.command()
def reset(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
) -> None:
    """Delete all tracked time. The tracking toggle is kept."""
    if not yes:
        typer.confirm("Reset all data? This cannot be undone.", abort=True)
    _call(ctx.obj.reset_data)
    typer.echo("All tracked data was reset.")


@app.command()
def export(
    ctx: typer.Context,
    output_dir: Optional[Path] = typer.Option(
        None,
        "--output-dir",
        "-o",
        path_type=Path,
        help="Directory for the export file (default: your downloads folder).",
    ),
) -> None:
    """Save a JSON snapshot of all stats."""
    from .export import export_snapshot

    snapshot = _call(ctx.obj.get_stats)
    path = export_snapshot(snapshot, output_dir or get_export_dir(), date.today())
    typer.echo(f"Exported stats to {path}")


def _call(method: Callable[..., T], *args: Any) -> T:
    try:
        return method(*args)
    except ServiceUnavailableError as exc:
        typer.echo(str(exc), err=True)
        typer.echo(
            "Make sure the service is running (`echotrace serve`) and try again.", err=True
        )
        raise typer.Exit(code=1) from exc
    except CommandFailedError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc
