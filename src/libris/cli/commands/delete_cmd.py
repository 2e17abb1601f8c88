# ABOUTME: The `libris delete` and `libris delete-file` commands.
# ABOUTME: Remove a whole book, or one file, by ID or by library-relative filename.

from pathlib import Path

import click
from rich.console import Console

from libris.cli.options import db_option, id_or_filename, open_configured_library, root_option
from libris.config import LibrisConfig
from libris.errors import LibraryError

console = Console()

filename_option = click.option(
    "-f", "--filename",
    default=None,
    help="Filename relative to the books root, instead of an ID.",
)


@click.command("delete")
@click.argument("book_id", type=int, required=False)
@filename_option
@db_option
@root_option
@click.pass_obj
def delete(
    config: LibrisConfig,
    book_id: int | None,
    filename: str | None,
    db_path: Path | None,
    books_root: Path | None,
) -> None:
    """Delete a book and all of its files.

    Pass a book ID, or -f with the name of any file the book contains.
    """
    id_or_filename(book_id, filename)
    library = open_configured_library(config, db_path, books_root, console)
    try:
        if filename:
            book_id = library.get_book_id_by_filename(filename)
        books = library.get_books_by_id([book_id])  # type: ignore[list-item]
        if not books:
            console.print(f"[red]Book {book_id} not found.[/red]")
            raise SystemExit(1)
        book = books[0]
        console.print(f'Deleting book "{book.title}" (ID {book.id}, {len(book.files)} file(s))')
        library.delete_book(book.id)  # type: ignore[arg-type]
    except LibraryError as exc:
        console.print(f"[red]Error deleting book:[/red] {exc}")
        raise SystemExit(1) from exc
    finally:
        library.close()


@click.command("delete-file")
@click.argument("file_id", type=int, required=False)
@filename_option
@click.option(
    "-y", "--yes",
    is_flag=True,
    default=False,
    help="Delete the file even if it's the last file of a book.",
)
@db_option
@root_option
@click.pass_obj
def delete_file(
    config: LibrisConfig,
    file_id: int | None,
    filename: str | None,
    yes: bool,
    db_path: Path | None,
    books_root: Path | None,
) -> None:
    """Delete a single file from a book.

    If it is the book's only file the book goes too, so -y is required.
    """
    id_or_filename(file_id, filename)
    library = open_configured_library(config, db_path, books_root, console)
    try:
        if filename:
            file_id = library.get_file_id_by_filename(filename)
        files = library.get_files_by_id([file_id])  # type: ignore[list-item]
        if not files:
            console.print("[red]File not found.[/red]")
            raise SystemExit(1)
        book_file = files[0]

        if not yes and library.is_last_file(book_file):
            console.print(
                "[yellow]This is the last file of a book.[/yellow]\n\n"
                "Deleting this file will also delete the book associated with it.\n\n"
                "If you're sure that you want to go ahead, pass the -y flag."
            )
            raise SystemExit(2)

        console.print(f"Deleting file {book_file.filename} ({book_file.id})")
        if library.delete_file(book_file):
            console.print(f"Book {book_file.book_id} had no files left and was deleted.")
    except LibraryError as exc:
        console.print(f"[red]Error deleting file:[/red] {exc}")
        raise SystemExit(1) from exc
    finally:
        library.close()
