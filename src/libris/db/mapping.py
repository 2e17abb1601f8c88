# ABOUTME: Converts between Book/BookFile records and SQLite rows.
# ABOUTME: Handles timestamp and path serialization for the files table.

from datetime import datetime
from pathlib import Path
from typing import Any

from libris.metadata.types import Book, BookFile


def file_to_row(book_file: BookFile, book_id: int, filename: str) -> dict[str, Any]:
    """Convert a BookFile to a dict suitable for INSERT into files."""
    return {
        "book_id": book_id,
        "extension": book_file.extension,
        "original_filename": str(book_file.original_path or ""),
        "filename": filename,
        "file_size": book_file.size,
        "file_mtime": book_file.mtime.isoformat(sep=" "),
        "hash": book_file.hash,
        "source": book_file.source,
    }


def row_to_file(row: Any, tags: list[str] | None = None) -> BookFile:
    """Convert a files row (dict-like) to a BookFile."""
    original = row["original_filename"]
    return BookFile(
        id=row["id"],
        book_id=row["book_id"],
        extension=row["extension"],
        original_path=Path(original) if original else None,
        filename=row["filename"],
        size=row["file_size"],
        mtime=datetime.fromisoformat(row["file_mtime"]),
        hash=row["hash"],
        source=row["source"],
        tags=list(tags or []),
    )


def row_to_book(
    row: Any,
    authors: list[str] | None = None,
    files: list[BookFile] | None = None,
) -> Book:
    """Convert a books row to a Book with its authors and files attached."""
    return Book(
        id=row["id"],
        title=row["title"],
        series=row["series"],
        authors=list(authors or []),
        files=list(files or []),
    )


def join_ids(ids: list[int]) -> str:
    """Render integer IDs for an IN (...) clause.

    SQLite limits the number of bound variables per statement, so ID lists are
    inlined. Only ints are accepted.
    """
    return ",".join(str(int(i)) for i in ids)
