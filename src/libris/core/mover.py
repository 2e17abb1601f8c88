# ABOUTME: Moves or copies book files into the library tree.
# ABOUTME: Tries an atomic rename first, falling back to copy-then-delete across devices.

import logging
import os
import shutil
from pathlib import Path

from libris.errors import FilesystemError

logger = logging.getLogger(__name__)


def copy_file(src: Path, dst: Path) -> None:
    """Copy src to dst, preserving the modification time.

    Raises:
        FilesystemError: If the copy fails. A partial dst is removed.
    """
    try:
        shutil.copy2(src, dst)
    except OSError as exc:
        dst.unlink(missing_ok=True)
        raise FilesystemError(f"Cannot copy {src} to {dst}: {exc}") from exc
    logger.info("Copied %s to %s", src, dst)


def move_file(src: Path, dst: Path) -> None:
    """Move src to dst.

    Attempts a rename, and if that fails (e.g. across filesystems), copies
    then deletes the source. Failing to delete the source after a successful
    copy is logged, not raised.
    """
    try:
        os.rename(src, dst)
    except OSError as exc:
        logger.debug("Rename %s -> %s failed (%s); falling back to copy", src, dst, exc)
    else:
        logger.info("Moved %s to %s", src, dst)
        return

    try:
        shutil.copy2(src, dst)
    except OSError as exc:
        dst.unlink(missing_ok=True)
        raise FilesystemError(f"Cannot move {src} to {dst}: {exc}") from exc

    if remove_file(src):
        logger.info("Moved %s to %s (copy/delete)", src, dst)
    else:
        logger.info("Copied %s to %s; source could not be removed", src, dst)


def move_or_copy(src: Path, dst: Path, *, move: bool) -> None:
    """Place src at dst, creating dst's parent directories first.

    Never overwrites: an existing dst is an error.

    Raises:
        FilesystemError: If dst exists, src is missing, or the transfer fails.
    """
    if os.path.lexists(dst):
        raise FilesystemError(f"Refusing to overwrite existing file {dst}")
    if not src.is_file():
        raise FilesystemError(f"Source file {src} does not exist")

    try:
        dst.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FilesystemError(f"Cannot create directory {dst.parent}: {exc}") from exc

    if move:
        move_file(src, dst)
    else:
        copy_file(src, dst)


def remove_file(path: Path) -> bool:
    """Delete a file, logging instead of raising on failure.

    Returns:
        True if the file was removed.
    """
    try:
        path.unlink()
    except OSError as exc:
        logger.warning("Error removing %s: %s", path, exc)
        return False
    return True
