# ABOUTME: The `libris update` command for editing a book's title, authors, or series.
# ABOUTME: Refuses to collide with another book; use `libris merge` for that.

from pathlib import Path

import click
from rich.console import Console

from libris.cli.options import db_option, open_configured_library, root_option
from libris.config import LibrisConfig
from libris.errors import BookExistsError, LibraryError

console = Console()


@click.command("update")
@click.argument("book_id", type=int)
@db_option
@root_option
@click.option("--title", default=None, help="New title.")
@click.option(
    "-a", "--author", "authors", multiple=True,
    help="New author list, in order (repeatable). Replaces all authors.",
)
@click.option("--series", default=None, help="New series; pass an empty string to clear it.")
@click.pass_obj
def update(
    config: LibrisConfig,
    book_id: int,
    db_path: Path | None,
    books_root: Path | None,
    title: str | None,
    authors: tuple[str, ...],
    series: str | None,
) -> None:
    """Change a book's title, authors, or series."""
    library = open_configured_library(config, db_path, books_root, console)
    try:
        books = library.get_books_by_id([book_id])
        if not books:
            console.print(f"[red]Book {book_id} not found.[/red]")
            raise SystemExit(1)

        book = books[0]
        if title is not None:
            book.title = title
        if authors:
            book.authors = list(authors)
        if series is not None:
            book.series = series or None

        try:
            changed = library.update_book(book, update_series=series is not None)
        except BookExistsError as exc:
            console.print(
                f"[red]Book {exc.book_id} already has that title and authors.[/red] "
                f"Use [bold]libris merge {exc.book_id} {book_id}[/bold] to combine them."
            )
            raise SystemExit(1) from exc
        except LibraryError as exc:
            console.print(f"[red]Error:[/red] {exc}")
            raise SystemExit(1) from exc
    finally:
        library.close()

    if changed:
        console.print(f"Updated book [bold]{book_id}[/bold].")
    else:
        console.print("[yellow]Nothing changed.[/yellow]")
