# ABOUTME: Batch import pipeline: turns files on disk into library books.
# ABOUTME: Builds candidates from filename regexps or EPUB metadata, then imports each one.

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from libris.errors import DuplicateError, LibraryError
from libris.formats.epub import EpubReadError, read_epub_book
from libris.metadata.parsing import describe_file, parse_filename

if TYPE_CHECKING:
    from libris.core.naming import FilenameTemplate
    from libris.db.library import Library
    from libris.metadata.types import Book

logger = logging.getLogger(__name__)

EBOOK_EXTENSIONS: frozenset[str] = frozenset(
    {".epub", ".mobi", ".azw3", ".azw", ".pdf", ".txt", ".cbz", ".cbr", ".fb2", ".djvu"}
)


class ParseError(LibraryError):
    """Raised when no candidate book can be built for a file."""


@dataclass
class ImportResult:
    """Summary of a batch import."""

    added: int = 0
    skipped: int = 0
    errors: int = 0
    book_ids: list[int] = field(default_factory=list)
    skipped_details: list[tuple[Path, int]] = field(default_factory=list)
    error_details: list[tuple[Path, str]] = field(default_factory=list)


def find_ebooks(paths: list[Path]) -> list[Path]:
    """Expand directories into the ebook files below them; files pass through."""
    found: list[Path] = []
    for path in paths:
        if path.is_dir():
            found.extend(
                sorted(
                    p for p in path.rglob("*")
                    if p.is_file() and p.suffix.lower() in EBOOK_EXTENSIONS
                )
            )
        else:
            found.append(path)
    return found


def compile_patterns(patterns: list[tuple[str, str]]) -> list[tuple[str, re.Pattern[str]]]:
    """Compile named regexps, reporting which one is invalid."""
    compiled = []
    for name, source in patterns:
        try:
            compiled.append((name, re.compile(source)))
        except re.error as exc:
            raise ParseError(f"Cannot compile regular expression {name}: {exc}") from exc
    return compiled


def build_candidate(
    path: Path,
    patterns: list[tuple[str, re.Pattern[str]]],
    source: str | None = None,
) -> Book:
    """Build the Book record to import for one file.

    The first matching filename pattern wins. EPUB files that match no
    pattern fall back to their embedded metadata.

    Raises:
        ParseError: If the file can't be parsed by any means.
        OSError: If the file can't be read for hashing.
    """
    candidate = None
    for name, pattern in patterns:
        candidate = parse_filename(path, pattern)
        if candidate is not None:
            logger.debug("Parsed %s with regexp %s", path.name, name)
            break

    if candidate is None and path.suffix.lower() == ".epub":
        try:
            candidate = read_epub_book(path)
        except EpubReadError as exc:
            raise ParseError(str(exc)) from exc

    if candidate is None:
        raise ParseError(f"Unable to parse {path.name}")

    book_file = describe_file(path, source=source)
    if candidate.files:
        parsed = candidate.files[0]
        book_file.tags = parsed.tags
        book_file.extension = parsed.extension or book_file.extension
    candidate.files = [book_file]
    return candidate


def import_files(
    paths: list[Path],
    library: Library,
    template: FilenameTemplate,
    *,
    patterns: list[tuple[str, str]] | None = None,
    move: bool = False,
    source: str | None = None,
) -> ImportResult:
    """Import files into the library, one transaction per file.

    Duplicates (same content hash) are skipped. Files that can't be parsed,
    read, or placed are recorded as errors; the batch continues either way.
    """
    result = ImportResult()
    compiled = compile_patterns(patterns or [])

    for path in paths:
        try:
            candidate = build_candidate(path, compiled, source)
        except (ParseError, OSError) as exc:
            result.errors += 1
            result.error_details.append((path, str(exc)))
            continue

        try:
            stored = library.import_book(candidate, template, move=move)
        except DuplicateError as exc:
            logger.info("Skipping %s: %s", path, exc)
            result.skipped += 1
            result.skipped_details.append((path, exc.book_id))
            continue
        except LibraryError as exc:
            logger.error("Error importing %s: %s", path, exc)
            result.errors += 1
            result.error_details.append((path, str(exc)))
            continue

        result.added += 1
        result.book_ids.append(stored.id)  # type: ignore[arg-type]

    return result
