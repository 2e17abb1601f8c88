# ABOUTME: CLI package for Libris, built on Click.
# ABOUTME: Defines the root command group, logging setup, and registers subcommands.

import logging
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from libris.cli.commands import (
    convert_cmd,
    delete_cmd,
    import_cmd,
    info_cmd,
    init_cmd,
    inspect_cmd,
    merge_cmd,
    search_cmd,
    update_cmd,
    verify_cmd,
)
from libris.config import load_config
from libris.errors import ValidationError

_LOG_LEVELS = {0: logging.WARNING, 1: logging.INFO}


def _configure_logging(verbosity: int) -> None:
    """Route log records through Rich on stderr; -v for INFO, -vv for DEBUG."""
    logging.basicConfig(
        level=_LOG_LEVELS.get(verbosity, logging.DEBUG),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@click.group()
@click.version_option(package_name="libris")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to config file (default: $LIBRIS_CONFIG or ~/.libris/config.json).",
)
@click.option("-v", "--verbose", count=True, help="Log more; repeat for debug output.")
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, verbose: int) -> None:
    """Libris - a personal ebook library with deduplication and search."""
    _configure_logging(verbose)
    try:
        ctx.obj = load_config(config_path)
    except ValidationError as exc:
        raise click.ClickException(str(exc)) from exc


cli.add_command(init_cmd.init)
cli.add_command(inspect_cmd.inspect)
cli.add_command(import_cmd.import_command)
cli.add_command(search_cmd.search)
cli.add_command(info_cmd.info)
cli.add_command(update_cmd.update)
cli.add_command(merge_cmd.merge)
cli.add_command(delete_cmd.delete)
cli.add_command(delete_cmd.delete_file)
cli.add_command(verify_cmd.verify)
cli.add_command(convert_cmd.convert)
