# ABOUTME: The `libris import` command for adding ebook files to the library.
# ABOUTME: Parses each file into a book, then moves or copies it under the books root.

from pathlib import Path

import click
from rich.console import Console

from libris.cli.options import db_option, open_configured_library, root_option
from libris.config import LibrisConfig
from libris.core.importer import ParseError, find_ebooks, import_files
from libris.core.naming import FilenameTemplate
from libris.errors import RenderError, ValidationError

console = Console()


@click.command("import")
@click.argument(
    "paths",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, path_type=Path),
)
@db_option
@root_option
@click.option(
    "-m", "--move",
    is_flag=True,
    default=False,
    help="Move files into the library instead of copying (also set by \"move\" in config).",
)
@click.option(
    "-r", "--regexp", "regexps", multiple=True,
    help="Named regexp from the config to parse filenames with (repeatable).",
)
@click.option("-t", "--template", default=None, help="Output filename template (Jinja2).")
@click.option("-s", "--source", default=None, help="Source label recorded on each file.")
@click.pass_obj
def import_command(
    config: LibrisConfig,
    paths: tuple[Path, ...],
    db_path: Path | None,
    books_root: Path | None,
    move: bool,
    regexps: tuple[str, ...],
    template: str | None,
    source: str | None,
) -> None:
    """Import ebook files (or directories of them) into the library."""
    files = find_ebooks(list(paths))
    if not files:
        console.print("[yellow]No ebook files found.[/yellow]")
        return

    try:
        patterns = config.patterns(list(regexps))
        output_template = FilenameTemplate(template or config.output_template)
    except (ValidationError, RenderError) as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1) from exc

    console.print(f"Found [bold]{len(files)}[/bold] file(s)\n")

    library = open_configured_library(config, db_path, books_root, console)
    try:
        result = import_files(
            files,
            library,
            output_template,
            patterns=patterns,
            move=move or config.move,
            source=source,
        )
    except ParseError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1) from exc
    finally:
        library.close()

    parts = []
    if result.added:
        parts.append(f"[green]{result.added} added[/green]")
    if result.skipped:
        parts.append(f"[yellow]{result.skipped} skipped[/yellow]")
    if result.errors:
        parts.append(f"[red]{result.errors} error(s)[/red]")
    console.print(", ".join(parts))

    for path, book_id in result.skipped_details:
        console.print(f"  [dim]{path.name}:[/dim] duplicate of book {book_id}")

    if result.error_details:
        console.print(f"\n[yellow]{result.errors} file(s) could not be imported:[/yellow]")
        for path, msg in result.error_details:
            console.print(f"  [dim]{path.name}:[/dim] {msg}")
