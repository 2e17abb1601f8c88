# ABOUTME: Shared Click options and helpers for Libris CLI commands.
# ABOUTME: Provides --db/--root flags and opening the configured library.

from pathlib import Path

import click
from rich.console import Console

from libris.config import LibrisConfig
from libris.db.library import Library
from libris.errors import LibraryError

db_option = click.option(
    "--db",
    "db_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to library database (default: from config, ~/.libris/library.db).",
)

root_option = click.option(
    "--root",
    "books_root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding the library's book files (default: from config).",
)


def open_configured_library(
    config: LibrisConfig,
    db_path: Path | None,
    books_root: Path | None,
    console: Console,
) -> Library:
    """Open the library named by the flags, falling back to the config.

    Prints the error and exits with status 1 if it can't be opened.
    """
    try:
        return Library.open(db_path or config.db_path, books_root or config.books_root)
    except LibraryError as exc:
        console.print(f"[red]Error opening library:[/red] {exc}")
        raise SystemExit(1) from exc


def id_or_filename(book_or_file_id: int | None, filename: str | None) -> None:
    """Require exactly one of an ID argument or a -f filename."""
    if book_or_file_id is not None and filename:
        raise click.UsageError("Both a filename and an ID were provided")
    if book_or_file_id is None and not filename:
        raise click.UsageError("Neither a filename nor an ID was provided")
