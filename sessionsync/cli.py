"""Command line interface for the session sync daemon."""

import logging
from datetime import datetime
from typing import Annotated, Optional

import cyclopts
import httpx
import uvicorn
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from sessionsync.config import SyncConfig
from sessionsync.exceptions import SessionSyncError
from sessionsync.server import create_app
from sessionsync.sync.queue import WriteQueue
from sessionsync.sync.service import SyncService

app = cyclopts.App(
    name="sessionsync", help="Mirror live agent sessions into a note vault"
)

load_dotenv()


def _get_console() -> Console:
    """Get a Rich console for output."""
    return Console()


def _load_config() -> SyncConfig:
    config = SyncConfig.from_env()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    return config


@app.command
def serve(
    *,
    host: Annotated[str, cyclopts.Parameter(help="Address to bind")] = "127.0.0.1",
    port: Annotated[int, cyclopts.Parameter(help="Port to bind")] = 8765,
):
    """Run the sync daemon with its HTTP event ingress.

    Example:
        sessionsync serve --port 8765
    """
    console = _get_console()
    config = _load_config()

    service = SyncService(config)
    service.start()
    console.print(
        f"[green]Syncing sessions from {config.storage_path} to {config.sink_url}[/green]"
    )
    try:
        uvicorn.run(
            create_app(service),
            host=host,
            port=port,
            log_level=config.log_level.lower(),
        )
    finally:
        service.stop()


@app.command
def queue():
    """List pending note writes in delivery order."""
    console = _get_console()
    config = _load_config()

    items = WriteQueue(config.queue_dir).list_pending()
    if not items:
        console.print("[green]Queue is empty[/green]")
        return

    table = Table(title="Pending Writes", show_header=True, header_style="bold cyan")
    table.add_column("Queued", style="dim")
    table.add_column("Op", style="cyan")
    table.add_column("Path", style="white")
    table.add_column("Retries", justify="right", style="yellow")

    for item in items:
        table.add_row(
            datetime.fromtimestamp(item.created_at).strftime("%Y-%m-%d %H:%M:%S"),
            item.operation,
            item.path,
            str(item.retry_count),
        )

    console.print(table)
    console.print(f"\n[dim]Total: {len(items)} item(s)[/dim]")


@app.command
def flush():
    """Run one flush pass against the note sink."""
    console = _get_console()
    config = _load_config()

    service = SyncService(config)
    try:
        result = service.flush()
    finally:
        service.sink.close()

    if result.skipped:
        console.print(f"[yellow]Note sink at {config.sink_url} is unreachable[/yellow]")
        return 1

    for path in result.delivered:
        console.print(f"[green]✓[/green] {path}")
    for path in result.discarded:
        console.print(f"[yellow]Discarded[/yellow] {path}")
    if result.halted:
        console.print(f"[red]✗ Halted at {result.failed}[/red]")
        return 1
    console.print(f"\n[dim]{len(result.delivered)} delivered, {len(service.queue)} pending[/dim]")


@app.command
def search(
    query: str,
    *,
    project: Annotated[
        Optional[str], cyclopts.Parameter(help="Only search this project's notes")
    ] = None,
):
    """Search synced session notes.

    Example:
        sessionsync search "login bug" --project my-app
    """
    console = _get_console()
    config = _load_config()

    service = SyncService(config)
    try:
        hits = service.sink.search(query, project)
    except httpx.HTTPError as e:
        console.print(f"[red]Search failed: {e}[/red]")
        return 1
    finally:
        service.sink.close()

    if not hits:
        console.print(f"[yellow]No session notes match '{query}'[/yellow]")
        return

    for hit in hits:
        console.print(f"[bold cyan]{hit.project}[/bold cyan] [dim]{hit.date}[/dim] {hit.path}")
        if hit.context:
            console.print(f"  {hit.context.strip()}")


@app.command
def status():
    """Show note sink health, upstream session count and queue depth."""
    console = _get_console()
    config = _load_config()

    service = SyncService(config)
    try:
        healthy = service.sink.health_check()
    finally:
        service.sink.close()

    table = Table(title="Session Sync Status", show_header=False, box=None)
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Value", style="white")
    table.add_row("Note sink", config.sink_url)
    table.add_row("Reachable", "✓ Yes" if healthy else "✗ No")
    table.add_row("Session store", str(config.storage_path))
    table.add_row("Upstream sessions", str(len(service.source.list_sessions())))
    table.add_row("Queue", str(config.queue_dir))
    table.add_row("Pending writes", str(len(service.queue)))
    console.print(table)


def main():
    try:
        app()
    except SessionSyncError as e:
        _get_console().print(f"[red]Error: {e}[/red]")
        raise SystemExit(1)
