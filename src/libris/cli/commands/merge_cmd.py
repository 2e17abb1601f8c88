# ABOUTME: The `libris merge` command for folding several books into one.
# ABOUTME: All files of the later IDs move under the first ID.

from pathlib import Path

import click
from rich.console import Console

from libris.cli.options import db_option, open_configured_library, root_option
from libris.config import LibrisConfig
from libris.errors import LibraryError

console = Console()


@click.command("merge")
@click.argument("book_ids", nargs=-1, required=True, type=int)
@db_option
@root_option
@click.pass_obj
def merge(
    config: LibrisConfig,
    book_ids: tuple[int, ...],
    db_path: Path | None,
    books_root: Path | None,
) -> None:
    """Merge the files of all BOOK_IDS into the first one."""
    library = open_configured_library(config, db_path, books_root, console)
    try:
        library.merge_books(list(book_ids))
    except LibraryError as exc:
        console.print(f"[red]Error merging books:[/red] {exc}")
        raise SystemExit(1) from exc
    finally:
        library.close()

    console.print(f"Merged {len(book_ids) - 1} book(s) into [bold]{book_ids[0]}[/bold].")
