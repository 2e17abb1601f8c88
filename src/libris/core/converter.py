# ABOUTME: Runs the external ebook-convert tool to produce other formats.
# ABOUTME: Converted files are cached under the library's cache directory by content hash.

import logging
import subprocess
from pathlib import Path

from libris.errors import ConversionError

logger = logging.getLogger(__name__)

DEFAULT_CONVERTER = "ebook-convert"


def cached_path(cache_dir: Path, file_hash: str, extension: str) -> Path:
    """Where the converted copy of a file lives: <cache>/<hash>.<ext>."""
    return cache_dir / f"{file_hash}.{extension.lstrip('.')}"


def partial_path(dst: Path) -> Path:
    """Scratch name a conversion is written to before it reaches dst."""
    return dst.with_name(f"{dst.stem}.partial{dst.suffix}")


def run_converter(src: Path, dst: Path, command: str = DEFAULT_CONVERTER) -> None:
    """Invoke ``command src <partial>`` and rename the output to dst on success.

    The partial name keeps dst's extension, which selects the output format.
    A failed run never leaves a file at dst.

    Raises:
        ConversionError: If the command can't be run, exits non-zero, or
            produces no output file.
    """
    dst.parent.mkdir(parents=True, exist_ok=True)
    partial = partial_path(dst)
    logger.info("Converting %s to %s", src, dst)
    try:
        subprocess.run(
            [command, str(src), str(partial)],
            check=True,
            capture_output=True,
        )
    except (OSError, subprocess.CalledProcessError) as exc:
        partial.unlink(missing_ok=True)
        raise ConversionError(f"Cannot convert {src}: {exc}") from exc

    if not partial.exists():
        raise ConversionError(f"{command} did not produce {dst}")
    try:
        partial.replace(dst)
    except OSError as exc:
        partial.unlink(missing_ok=True)
        raise ConversionError(f"Cannot move conversion into place at {dst}: {exc}") from exc
