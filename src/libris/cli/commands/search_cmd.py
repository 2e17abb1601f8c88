# ABOUTME: The `libris search` command for full-text search of the library.
# ABOUTME: Supports field:value qualifiers and paged output.

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from libris.cli.options import db_option, open_configured_library, root_option
from libris.config import LibrisConfig
from libris.core.naming import join_naturally
from libris.errors import LibraryError

console = Console()

_MORE_RESULTS_LIMIT = 100


@click.command("search")
@click.argument("terms", nargs=-1, required=True)
@db_option
@root_option
@click.option("-l", "--limit", type=click.IntRange(min=0), default=0, help="Results per page (0 = all).")
@click.option("-o", "--offset", type=click.IntRange(min=0), default=0, help="Results to skip.")
@click.pass_obj
def search(
    config: LibrisConfig,
    terms: tuple[str, ...],
    db_path: Path | None,
    books_root: Path | None,
    limit: int,
    offset: int,
) -> None:
    """Search the library.

    All fields are searched by default; field:value limits a term to one of
    author, series, title, extension, tags, filename, source.

    \b
    Examples:
        libris search wizard first rule
        libris search series:Sword title:Phantom
    """
    library = open_configured_library(config, db_path, books_root, console)
    try:
        page = library.search_paged(
            " ".join(terms), offset=offset, limit=limit, more_results_limit=_MORE_RESULTS_LIMIT,
        )
    except LibraryError as exc:
        console.print(f"[red]Error while searching:[/red] {exc}")
        raise SystemExit(1) from exc
    finally:
        library.close()

    if not page.books:
        console.print("[yellow]No results found.[/yellow]")
        return

    table = Table()
    table.add_column("ID", style="dim", width=5)
    table.add_column("Title", style="bold")
    table.add_column("Author")
    table.add_column("Series")

    for book in page.books:
        table.add_row(
            str(book.id),
            book.title,
            join_naturally(book.authors) or "[dim]unknown[/dim]",
            book.series or "",
        )

    console.print(table)
    console.print(f"\n[dim]{len(page.books)} result(s)[/dim]")
    if page.more_results:
        more = f"{page.more_results}+" if page.more_results >= _MORE_RESULTS_LIMIT else page.more_results
        console.print(f"[dim]{more} more result(s); use --offset {offset + limit}[/dim]")
