# ABOUTME: The `libris init` command for creating a new library.
# ABOUTME: Creates the database schema and the books root directory.

from pathlib import Path

import click
from rich.console import Console

from libris.cli.options import db_option, root_option
from libris.config import LibrisConfig
from libris.db.connection import create_library
from libris.errors import StoreError

console = Console()


@click.command("init")
@db_option
@root_option
@click.pass_obj
def init(config: LibrisConfig, db_path: Path | None, books_root: Path | None) -> None:
    """Create a new, empty library."""
    db = db_path or config.db_path
    root = books_root or config.books_root

    try:
        create_library(db)
    except StoreError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1) from exc

    root.mkdir(parents=True, exist_ok=True)
    console.print(f"Library created in [bold]{db}[/bold], books in [bold]{root}[/bold]")
