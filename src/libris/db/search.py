# ABOUTME: Maintains the per-book full-text search documents in books_fts.
# ABOUTME: Appends on import, rebuilds from relational state on any removal.

import logging
import sqlite3
from collections.abc import Iterable

from libris.db import store
from libris.db.mapping import join_ids
from libris.errors import StoreError, ValidationError
from libris.metadata.types import Book, BookFile

logger = logging.getLogger(__name__)

# Columns that aggregate values across all of a book's files.
_FILE_COLUMNS = ("extension", "tags", "filename", "source")


def _join(values: Iterable[str | None]) -> str:
    return " ".join(v for v in values if v)


def _file_values(book_file: BookFile) -> dict[str, str]:
    return {
        "extension": book_file.extension,
        "tags": _join(dict.fromkeys(book_file.tags)),
        "filename": book_file.filename or "",
        "source": book_file.source or "",
    }


def create_document(conn: sqlite3.Connection, book: Book) -> None:
    """Insert a fresh search document aggregating all of book.files."""
    files = book.files
    extensions = dict.fromkeys(f.extension for f in files if f.extension)
    conn.execute(
        "INSERT INTO books_fts (rowid, author, series, title, extension, tags, filename, source) "
        "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
        (
            book.id,
            book.author,
            book.series or "",
            book.title,
            _join(extensions),
            _join(tag for f in files for tag in dict.fromkeys(f.tags)),
            _join(f.filename for f in files),
            _join(f.source for f in files),
        ),
    )


def append_to_document(conn: sqlite3.Connection, book_id: int, book_file: BookFile) -> None:
    """Append one new file's fields to an existing book's search document.

    Exact only for additions: nothing can be subtracted from the joined
    strings, so removals go through rebuild_document().

    Raises:
        StoreError: If the book has no search document.
    """
    cursor = conn.execute(
        "SELECT extension, tags, filename, source FROM books_fts WHERE rowid = ?",
        (book_id,),
    )
    row = cursor.fetchone()
    if row is None:
        raise StoreError(f"Existing book {book_id} not found in search index")

    updated: dict[str, str] = {}
    for column, value in _file_values(book_file).items():
        current = row[column] or ""
        if not value or (column == "extension" and value in current.split()):
            updated[column] = current
        else:
            updated[column] = _join([current, value])

    conn.execute(
        "UPDATE books_fts SET extension = ?, tags = ?, filename = ?, source = ? WHERE rowid = ?",
        (*(updated[c] for c in _FILE_COLUMNS), book_id),
    )


def remove_documents(conn: sqlite3.Connection, book_ids: list[int]) -> None:
    """Delete the search documents of the given books."""
    if book_ids:
        conn.execute(f"DELETE FROM books_fts WHERE rowid IN ({join_ids(book_ids)})")


def rebuild_document(conn: sqlite3.Connection, book_id: int) -> None:
    """Reindex a book from its current rows.

    Drops the existing document and, if the book still exists, builds a new
    one from every file it owns.
    """
    remove_documents(conn, [book_id])
    books = store.get_books_by_id(conn, [book_id])
    if not books:
        logger.debug("Book %d no longer exists; search document removed", book_id)
        return
    create_document(conn, books[0])


def update_book_fields(conn: sqlite3.Connection, book: Book, *, update_series: bool) -> None:
    """Overwrite the single-valued fields of a book's search document."""
    if update_series:
        conn.execute(
            "UPDATE books_fts SET title = ?, author = ?, series = ? WHERE rowid = ?",
            (book.title, book.author, book.series or "", book.id),
        )
    else:
        conn.execute(
            "UPDATE books_fts SET title = ?, author = ? WHERE rowid = ?",
            (book.title, book.author, book.id),
        )


def search_ids(
    conn: sqlite3.Connection, terms: str, offset: int = 0, limit: int = 0
) -> list[int]:
    """Return matching book IDs, best matches first.

    terms uses the FTS5 query syntax, including column filters such as
    ``author:King title:Shining``. A limit of 0 returns every match.

    Raises:
        ValidationError: If terms is not a valid query.
    """
    query = "SELECT rowid FROM books_fts WHERE books_fts MATCH ? ORDER BY rank LIMIT ? OFFSET ?"
    try:
        cursor = conn.execute(query, (terms, limit if limit > 0 else -1, offset))
        return [row[0] for row in cursor.fetchall()]
    except sqlite3.OperationalError as exc:
        message = str(exc)
        if "fts5" in message or "no such column" in message or "unterminated" in message:
            raise ValidationError(f"Invalid search terms {terms!r}: {message}") from exc
        raise
