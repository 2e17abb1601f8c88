# ABOUTME: The `libris convert` command for converting a stored file to another format.
# ABOUTME: Runs ebook-convert once per file hash and reuses the cached result.

from pathlib import Path

import click
from rich.console import Console

from libris.cli.options import db_option, open_configured_library, root_option
from libris.config import LibrisConfig
from libris.core.converter import DEFAULT_CONVERTER
from libris.errors import LibraryError

console = Console()


@click.command("convert")
@click.argument("file_id", type=int)
@click.option("--to", "extension", default="epub", show_default=True, help="Target format.")
@click.option(
    "--converter",
    default=DEFAULT_CONVERTER,
    show_default=True,
    help="Converter executable, called as CONVERTER SOURCE DESTINATION.",
)
@db_option
@root_option
@click.pass_obj
def convert(
    config: LibrisConfig,
    file_id: int,
    extension: str,
    converter: str,
    db_path: Path | None,
    books_root: Path | None,
) -> None:
    """Convert a stored file and print the path of the converted copy."""
    library = open_configured_library(config, db_path, books_root, console)
    try:
        files = library.get_files_by_id([file_id])
        if not files:
            console.print(f"[red]File {file_id} not found.[/red]")
            raise SystemExit(1)
        destination = library.convert(files[0], extension, converter)
    except LibraryError as exc:
        console.print(f"[red]Error converting file:[/red] {exc}")
        raise SystemExit(1) from exc
    finally:
        library.close()

    console.print(str(destination), soft_wrap=True)
