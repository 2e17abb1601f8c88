# ABOUTME: Reads candidate book records from EPUB metadata using ebooklib.
# ABOUTME: Used on import when no filename pattern matches an EPUB file.

import logging
from pathlib import Path

from ebooklib import epub

from libris.metadata.parsing import split_title_and_tags
from libris.metadata.types import Book

logger = logging.getLogger(__name__)


class EpubReadError(Exception):
    """Raised when an EPUB file cannot be read or parsed."""


def _get_metadata_value(book: epub.EpubBook, namespace: str, name: str) -> str | None:
    """Extract a single metadata value from an EpubBook, or None if missing."""
    values = book.get_metadata(namespace, name)
    if not values:
        return None
    # Metadata entries are tuples of (value, attributes)
    value = values[0][0]
    return str(value).strip() if value else None


def _get_authors(book: epub.EpubBook) -> list[str]:
    """Extract all author names from an EpubBook, in document order."""
    creators = book.get_metadata("DC", "creator")
    if not creators:
        return []
    return [str(entry[0]).strip() for entry in creators if entry[0]]


def _get_calibre_series(book: epub.EpubBook) -> str | None:
    """Series from a Calibre <meta name="calibre:series" content="..."/> entry."""
    for _value, attrs in book.get_metadata("OPF", "calibre:series"):
        content = (attrs or {}).get("content")
        if content:
            return str(content).strip()
    return None


def read_epub_book(path: Path) -> Book:
    """Build a candidate Book from an EPUB's embedded metadata.

    Embedded titles are taken as-is; when there is none, the file stem is
    used with any trailing "(tag)" groups removed. The returned book has no
    files; callers attach one from describe_file().

    Raises:
        EpubReadError: If the file cannot be read or parsed.
    """
    if not path.exists():
        raise EpubReadError(f"File not found: {path}")

    try:
        book = epub.read_epub(str(path), options={"ignore_ncx": True})
    except Exception as exc:
        raise EpubReadError(f"Failed to read EPUB: {path}: {exc}") from exc

    title = _get_metadata_value(book, "DC", "title")
    if not title:
        title, _ = split_title_and_tags(path.stem)
        logger.debug("No title in %s; using %r", path, title)

    return Book(
        title=title,
        authors=_get_authors(book),
        series=_get_calibre_series(book),
    )
