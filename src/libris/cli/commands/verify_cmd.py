# ABOUTME: The `libris verify` command for checking library integrity.
# ABOUTME: Detects stored files missing from disk and optional hash mismatches.

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from libris.cli.options import db_option, open_configured_library, root_option
from libris.config import LibrisConfig
from libris.core.verifier import verify_library

console = Console()


@click.command("verify")
@db_option
@root_option
@click.option(
    "--check-hash",
    is_flag=True,
    default=False,
    help="Re-hash stored files and compare against recorded hashes.",
)
@click.pass_obj
def verify(
    config: LibrisConfig, db_path: Path | None, books_root: Path | None, check_hash: bool
) -> None:
    """Verify library integrity: check for missing or changed files."""
    library = open_configured_library(config, db_path, books_root, console)
    try:
        result = verify_library(library, check_hash=check_hash)
    finally:
        library.close()

    if result.total_issues > 0:
        table = Table()
        table.add_column("File", style="dim", width=5)
        table.add_column("Book", style="dim", width=5)
        table.add_column("Filename", style="bold")
        table.add_column("Issue", style="red")

        for book_file in result.missing:
            table.add_row(str(book_file.id), str(book_file.book_id), book_file.filename, "Missing")

        for book_file in result.hash_mismatch:
            table.add_row(
                str(book_file.id), str(book_file.book_id), book_file.filename, "Hash mismatch"
            )

        console.print(table)
        console.print(
            f"\n[red]{result.total_issues} issue(s) found, {result.ok} file(s) verified.[/red]"
        )
        raise SystemExit(1)

    console.print(f"[green]All {result.ok} file(s) verified.[/green]")
