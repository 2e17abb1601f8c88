# ABOUTME: The `libris inspect` command for previewing how a file would be imported.
# ABOUTME: Shows the candidate book parsed from a filename or EPUB metadata.

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from libris.config import LibrisConfig
from libris.core.importer import ParseError, build_candidate, compile_patterns
from libris.core.naming import join_naturally
from libris.errors import ValidationError

console = Console()


@click.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "-r", "--regexp", "regexps", multiple=True,
    help="Named regexp from the config to try (repeatable; default: default_regexps).",
)
@click.pass_obj
def inspect(config: LibrisConfig, path: Path, regexps: tuple[str, ...]) -> None:
    """Show the book record a file would be imported as."""
    try:
        patterns = compile_patterns(config.patterns(list(regexps)))
        book = build_candidate(path, patterns)
    except (ParseError, ValidationError, OSError) as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1) from exc

    book_file = book.files[0]
    table = Table(title=str(path.name), show_header=False, pad_edge=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("Title", book.title)
    table.add_row("Authors", join_naturally(book.authors) or "[dim]unknown[/dim]")
    table.add_row("Series", book.series or "[dim]none[/dim]")
    table.add_row("Extension", book_file.extension)
    table.add_row("Tags", ", ".join(book_file.tags) or "[dim]none[/dim]")
    table.add_row("Size", str(book_file.size))
    table.add_row("Hash", book_file.hash)

    console.print(table)
