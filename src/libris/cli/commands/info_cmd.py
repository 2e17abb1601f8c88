# ABOUTME: The `libris info` command for displaying a book and its files.
# ABOUTME: Shows title, authors, series, and each file's path, size, tags, and hash.

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from libris.cli.options import db_option, open_configured_library, root_option
from libris.config import LibrisConfig
from libris.core.naming import join_naturally

console = Console()


@click.command("info")
@click.argument("book_id", type=int)
@db_option
@root_option
@click.pass_obj
def info(config: LibrisConfig, book_id: int, db_path: Path | None, books_root: Path | None) -> None:
    """Show details for a book by ID."""
    library = open_configured_library(config, db_path, books_root, console)
    try:
        books = library.get_books_by_id([book_id])
    finally:
        library.close()

    if not books:
        console.print(f"[red]Book {book_id} not found.[/red]")
        raise SystemExit(1)

    book = books[0]
    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column("Field", style="bold", width=10)
    table.add_column("Value")

    table.add_row("ID", str(book.id))
    table.add_row("Title", book.title)
    table.add_row("Authors", join_naturally(book.authors) or "unknown")
    if book.series:
        table.add_row("Series", book.series)
    console.print(table)

    files = Table(title="Files")
    files.add_column("ID", style="dim", width=5)
    files.add_column("Filename")
    files.add_column("Size", justify="right")
    files.add_column("Tags", style="cyan")
    files.add_column("Source")

    for book_file in book.files:
        files.add_row(
            str(book_file.id),
            book_file.filename or "",
            str(book_file.size),
            ", ".join(book_file.tags),
            book_file.source or "",
        )
    console.print(files)
