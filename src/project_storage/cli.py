"""CLI for project storage.

Commands:
    serve                    - Run the HTTP server
    list                     - List stored projects
    info <id>                - Show project details
    put <file>               - Store a project file
    get <id>                 - Write a stored project to disk
    delete <id>              - Delete a project
    storage                  - Show storage directory diagnostics
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated, NoReturn

import typer
import uvicorn
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from project_storage import __version__
from project_storage.config import settings
from project_storage.results import Deleted, Failure, Loaded, NotFound, Saved
from project_storage.storage import ProjectStorage

app = typer.Typer(
    name="project-storage",
    help="project-storage — local storage server for .sb3 project archives",
    no_args_is_help=True,
)
console = Console()

StorageDirOption = Annotated[
    Path | None,
    typer.Option("--storage-dir", "-d", help="Storage directory (default: STORAGE_DIR)"),
]


def configure_logging(level: str) -> None:
    """Route all log records through rich at ``level``."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
        force=True,
    )


def open_storage(storage_dir: Path | None) -> ProjectStorage:
    return ProjectStorage(storage_dir or settings.storage_dir, max_size=settings.max_upload_bytes)


def fail(result: NotFound | Failure) -> NoReturn:
    """Print a storage failure and exit with status 1."""
    console.print(f"[red]Error:[/red] {result.message}")
    raise typer.Exit(1)


def format_size(size: int) -> str:
    return f"{size:,} bytes"


@app.command()
def serve(
    host: Annotated[str | None, typer.Option(help="Bind address (default: HOST)")] = None,
    port: Annotated[int | None, typer.Option(help="Port (default: PORT)")] = None,
    reload: Annotated[bool, typer.Option("--reload", help="Reload on code changes")] = False,
    storage_dir: StorageDirOption = None,
):
    """Run the project storage HTTP server."""
    configure_logging(settings.log_level)
    if storage_dir is not None:
        # The app factory reads its settings from the environment
        os.environ["STORAGE_DIR"] = str(storage_dir)
    port = port or settings.port

    console.print(f"Server listening on port {port}")
    console.print("Local .sb3 project storage enabled at /api/projects")
    if settings.fallback:
        console.print(f"Proxy host: {settings.fallback}")

    uvicorn.run(
        "project_storage.app:create_app",
        factory=True,
        host=host or settings.host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@app.command("list")
def list_projects(storage_dir: StorageDirOption = None):
    """List stored projects, most recently modified first."""
    listing = open_storage(storage_dir).list()
    if listing.error:
        console.print(f"[red]Error:[/red] {listing.error}")
        raise typer.Exit(1)

    if not listing.entries:
        console.print("[yellow]No projects stored.[/yellow]")
        return

    table = Table(title=f"Projects ({listing.count})")
    table.add_column("ID")
    table.add_column("Size", justify="right")
    table.add_column("Modified")
    for entry in listing.entries:
        table.add_row(
            entry.project_id,
            format_size(entry.size),
            entry.modified_at.isoformat(timespec="seconds"),
        )
    console.print(table)


@app.command()
def info(
    project_id: Annotated[str, typer.Argument(help="Project ID")],
    storage_dir: StorageDirOption = None,
):
    """Show details for a stored project."""
    storage = open_storage(storage_dir)
    result = storage.load(project_id)
    if not isinstance(result, Loaded):
        fail(result)

    path = storage.path_for(result.project_id)
    try:
        mtime = path.stat().st_mtime
    except FileNotFoundError:
        fail(NotFound(result.project_id))
    modified = datetime.fromtimestamp(mtime, tz=timezone.utc)
    panel_content = [
        f"[bold]ID:[/bold] {result.project_id}",
        f"[bold]Size:[/bold] {format_size(result.size)}",
        f"[bold]Path:[/bold] {path}",
        f"[bold]Modified:[/bold] {modified.isoformat(timespec='seconds')}",
    ]
    console.print(Panel("\n".join(panel_content), title="Project Details"))


@app.command()
def put(
    path: Annotated[Path, typer.Argument(help="Project file to store")],
    project_id: Annotated[
        str | None, typer.Option("--id", help="Store under this ID (overwrites)")
    ] = None,
    storage_dir: StorageDirOption = None,
):
    """Store a project file and print its ID."""
    if not path.is_file():
        console.print(f"[red]Error:[/red] File does not exist: {path}")
        raise typer.Exit(1)

    result = open_storage(storage_dir).save(path.read_bytes(), project_id)
    if not isinstance(result, Saved):
        fail(result)
    console.print(f"[green]OK[/green] → {result.project_id} ({format_size(result.size)})")


@app.command()
def get(
    project_id: Annotated[str, typer.Argument(help="Project ID")],
    output: Annotated[
        Path | None, typer.Option("--output", "-o", help="Output file (default: <id>.sb3)")
    ] = None,
    storage_dir: StorageDirOption = None,
):
    """Write a stored project to disk."""
    result = open_storage(storage_dir).load(project_id)
    if not isinstance(result, Loaded):
        fail(result)

    target = output or Path(f"{result.project_id}.sb3")
    target.write_bytes(result.data)
    console.print(f"[green]OK[/green] → {target} ({format_size(result.size)})")


@app.command()
def delete(
    project_id: Annotated[str, typer.Argument(help="Project ID")],
    storage_dir: StorageDirOption = None,
):
    """Delete a stored project."""
    result = open_storage(storage_dir).delete(project_id)
    if not isinstance(result, Deleted):
        fail(result)
    console.print(f"[green]Deleted[/green] {result.project_id}")


@app.command()
def storage(storage_dir: StorageDirOption = None):
    """Show storage directory diagnostics."""
    info = open_storage(storage_dir).stat_storage_dir()
    panel_content = [
        f"[bold]Directory:[/bold] {info.path}",
        f"[bold]Exists:[/bold] {info.exists}",
    ]
    if info.created_at:
        panel_content.append(f"[bold]Created:[/bold] {info.created_at.isoformat(timespec='seconds')}")
    if info.modified_at:
        panel_content.append(f"[bold]Modified:[/bold] {info.modified_at.isoformat(timespec='seconds')}")
    if info.error:
        panel_content.append(f"[bold]Error:[/bold] {info.error}")
    console.print(Panel("\n".join(panel_content), title="Storage"))


@app.command()
def version():
    """Print the installed version."""
    console.print(f"project-storage v{__version__}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
