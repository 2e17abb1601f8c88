# ABOUTME: Core value records for books and their files.
# ABOUTME: Book and BookFile flow into and out of every Library operation.

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path


@dataclass
class BookFile:
    """One physical file (one format or edition) belonging to a Book.

    Before import, ``original_path`` points at the file to bring into the
    library and ``filename`` is None. After import, ``filename`` is the path
    relative to the library root and ``id``/``book_id`` are set.
    """

    extension: str
    hash: str
    size: int
    mtime: datetime
    original_path: Path | None = None
    filename: str | None = None
    source: str | None = None
    tags: list[str] = field(default_factory=list)
    id: int | None = None
    book_id: int | None = None


@dataclass
class Book:
    """A logical work identified by its title and ordered list of authors."""

    title: str
    authors: list[str] = field(default_factory=list)
    series: str | None = None
    files: list[BookFile] = field(default_factory=list)
    id: int | None = None

    @property
    def author(self) -> str:
        """Joined author string, as stored in the search index."""
        return " & ".join(self.authors)


@dataclass
class SearchPage:
    """One page of search results.

    ``more_results`` is the number of further matches found past the page,
    capped at the ``more_results_limit`` the caller asked for.
    """

    books: list[Book]
    more_results: int = 0
