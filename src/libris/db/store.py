# ABOUTME: Relational store primitives for books, files, authors, and tags.
# ABOUTME: Plain functions over a connection; callers own the surrounding transaction.

import sqlite3
from collections import defaultdict

from libris.db.mapping import file_to_row, join_ids, row_to_book, row_to_file
from libris.errors import NotFoundError
from libris.metadata.types import Book, BookFile

# --- Lookups ---


def get_authors_by_book_ids(conn: sqlite3.Connection, ids: list[int]) -> dict[int, list[str]]:
    """Map each book ID to its author names, in the order they were linked."""
    authors: dict[int, list[str]] = defaultdict(list)
    if not ids:
        return authors
    cursor = conn.execute(
        "SELECT ba.book_id, a.name FROM books_authors ba "
        "JOIN authors a ON ba.author_id = a.id "
        f"WHERE ba.book_id IN ({join_ids(ids)}) "
        "ORDER BY ba.id"
    )
    for row in cursor.fetchall():
        authors[row[0]].append(row[1])
    return authors


def get_tags_by_file_ids(conn: sqlite3.Connection, ids: list[int]) -> dict[int, list[str]]:
    """Map each file ID to its tag names, in the order they were linked."""
    tags: dict[int, list[str]] = defaultdict(list)
    if not ids:
        return tags
    cursor = conn.execute(
        "SELECT ft.file_id, t.name FROM files_tags ft "
        "JOIN tags t ON ft.tag_id = t.id "
        f"WHERE ft.file_id IN ({join_ids(ids)}) "
        "ORDER BY ft.id"
    )
    for row in cursor.fetchall():
        tags[row[0]].append(row[1])
    return tags


def get_files_by_id(conn: sqlite3.Connection, ids: list[int]) -> list[BookFile]:
    """Fetch files (with tags) by ID, ordered by ID. Unknown IDs are skipped."""
    if not ids:
        return []
    tag_map = get_tags_by_file_ids(conn, ids)
    cursor = conn.execute(f"SELECT * FROM files WHERE id IN ({join_ids(ids)}) ORDER BY id")
    return [row_to_file(row, tag_map.get(row["id"])) for row in cursor.fetchall()]


def get_files_by_book_ids(
    conn: sqlite3.Connection, ids: list[int]
) -> dict[int, list[BookFile]]:
    """Map each book ID to its files, ordered by file ID."""
    files: dict[int, list[BookFile]] = defaultdict(list)
    if not ids:
        return files
    cursor = conn.execute(
        f"SELECT id FROM files WHERE book_id IN ({join_ids(ids)}) ORDER BY id"
    )
    file_ids = [row[0] for row in cursor.fetchall()]
    for book_file in get_files_by_id(conn, file_ids):
        files[book_file.book_id].append(book_file)  # type: ignore[index]
    return files


def get_books_by_id(conn: sqlite3.Connection, ids: list[int]) -> list[Book]:
    """Fetch books with their authors and files, ordered by ID.

    Unknown IDs are skipped; callers that need every ID to exist compare
    lengths.
    """
    if not ids:
        return []
    cursor = conn.execute(
        f"SELECT id, series, title FROM books WHERE id IN ({join_ids(ids)}) ORDER BY id"
    )
    rows = cursor.fetchall()
    found = [row["id"] for row in rows]
    author_map = get_authors_by_book_ids(conn, found)
    file_map = get_files_by_book_ids(conn, found)
    return [
        row_to_book(row, author_map.get(row["id"]), file_map.get(row["id"]))
        for row in rows
    ]


def existing_book_ids(conn: sqlite3.Connection, ids: list[int]) -> set[int]:
    """The subset of ids that name stored books."""
    if not ids:
        return set()
    cursor = conn.execute(f"SELECT id FROM books WHERE id IN ({join_ids(ids)})")
    return {row[0] for row in cursor.fetchall()}


def find_book_by_title_and_authors(
    conn: sqlite3.Connection, title: str, authors: list[str]
) -> int | None:
    """Return the ID of the book with this exact title and author sequence.

    Author order matters: ["A", "B"] and ["B", "A"] are different books.
    """
    cursor = conn.execute("SELECT id FROM books WHERE title = ? ORDER BY id", (title,))
    ids = [row[0] for row in cursor.fetchall()]
    author_map = get_authors_by_book_ids(conn, ids)
    for book_id in ids:
        if author_map.get(book_id, []) == list(authors):
            return book_id
    return None


def find_file_by_hash(conn: sqlite3.Connection, file_hash: str) -> sqlite3.Row | None:
    """Return the (id, book_id) row of the file with this content hash, if any."""
    cursor = conn.execute("SELECT id, book_id FROM files WHERE hash = ?", (file_hash,))
    return cursor.fetchone()


def filename_taken(conn: sqlite3.Connection, filename: str) -> bool:
    """Whether a stored file already claims this relative filename."""
    cursor = conn.execute("SELECT 1 FROM files WHERE filename = ?", (filename,))
    return cursor.fetchone() is not None


def get_file_id_by_filename(conn: sqlite3.Connection, filename: str) -> int:
    """Return a file ID given its filename relative to the books root.

    Raises:
        NotFoundError: If no file has that name.
    """
    cursor = conn.execute("SELECT id FROM files WHERE filename = ?", (filename,))
    row = cursor.fetchone()
    if row is None:
        raise NotFoundError(f"No file named {filename} exists")
    return row[0]


def get_book_id_by_filename(conn: sqlite3.Connection, filename: str) -> int:
    """Return the owning book ID given a filename relative to the books root.

    Raises:
        NotFoundError: If no file has that name.
    """
    cursor = conn.execute("SELECT book_id FROM files WHERE filename = ?", (filename,))
    row = cursor.fetchone()
    if row is None:
        raise NotFoundError(f"No book has a file named {filename}")
    return row[0]


def list_file_ids(conn: sqlite3.Connection) -> list[int]:
    """All file IDs in the library, ascending."""
    cursor = conn.execute("SELECT id FROM files ORDER BY id")
    return [row[0] for row in cursor.fetchall()]


def count_book_files(conn: sqlite3.Connection, book_id: int) -> int:
    """Number of files a book owns."""
    cursor = conn.execute("SELECT COUNT(*) FROM files WHERE book_id = ?", (book_id,))
    return cursor.fetchone()[0]


def get_author_ids_for_books(conn: sqlite3.Connection, book_ids: list[int]) -> list[int]:
    """Distinct author IDs linked to any of the given books."""
    if not book_ids:
        return []
    cursor = conn.execute(
        "SELECT DISTINCT author_id FROM books_authors "
        f"WHERE book_id IN ({join_ids(book_ids)})"
    )
    return [row[0] for row in cursor.fetchall()]


# --- Inserts and links ---


def insert_book(conn: sqlite3.Connection, title: str, series: str | None) -> int:
    """Insert a books row and return its ID."""
    cursor = conn.execute(
        "INSERT INTO books (series, title) VALUES (?, ?)", (series, title)
    )
    return cursor.lastrowid  # type: ignore[return-value]


def insert_file(
    conn: sqlite3.Connection, book_file: BookFile, book_id: int, filename: str
) -> int:
    """Insert a files row under book_id and return its ID."""
    row = file_to_row(book_file, book_id, filename)
    columns = ", ".join(row.keys())
    placeholders = ", ".join("?" for _ in row)
    cursor = conn.execute(
        f"INSERT INTO files ({columns}) VALUES ({placeholders})",
        list(row.values()),
    )
    return cursor.lastrowid  # type: ignore[return-value]


def _find_or_create(conn: sqlite3.Connection, table: str, name: str) -> int:
    cursor = conn.execute(f"SELECT id FROM {table} WHERE name = ?", (name,))
    row = cursor.fetchone()
    if row is not None:
        return row[0]
    cursor = conn.execute(f"INSERT INTO {table} (name) VALUES (?)", (name,))
    return cursor.lastrowid  # type: ignore[return-value]


def link_author(conn: sqlite3.Connection, book_id: int, name: str) -> None:
    """Link an author to a book, creating the author if needed.

    Linking the same author twice is a no-op.
    """
    author_id = _find_or_create(conn, "authors", name)
    conn.execute(
        "INSERT OR IGNORE INTO books_authors (book_id, author_id) VALUES (?, ?)",
        (book_id, author_id),
    )


def link_tag(conn: sqlite3.Connection, file_id: int, name: str) -> None:
    """Tag a file, creating the tag if needed. Tagging twice is a no-op."""
    tag_id = _find_or_create(conn, "tags", name)
    conn.execute(
        "INSERT OR IGNORE INTO files_tags (file_id, tag_id) VALUES (?, ?)",
        (file_id, tag_id),
    )


# --- Updates and deletes ---


def update_book_row(
    conn: sqlite3.Connection,
    book_id: int,
    title: str,
    series: str | None = None,
    *,
    update_series: bool = False,
) -> None:
    """Set a book's title (and optionally series), touching updated_on."""
    if update_series:
        conn.execute(
            "UPDATE books SET updated_on = datetime(), title = ?, series = ? WHERE id = ?",
            (title, series, book_id),
        )
    else:
        conn.execute(
            "UPDATE books SET updated_on = datetime(), title = ? WHERE id = ?",
            (title, book_id),
        )


def unlink_authors(conn: sqlite3.Connection, book_id: int) -> list[int]:
    """Remove every author link of a book; return the previously linked author IDs."""
    previous = get_author_ids_for_books(conn, [book_id])
    conn.execute("DELETE FROM books_authors WHERE book_id = ?", (book_id,))
    return previous


def reassign_files(conn: sqlite3.Connection, from_book_ids: list[int], to_book_id: int) -> None:
    """Move every file of from_book_ids under to_book_id."""
    conn.execute(
        "UPDATE files SET updated_on = datetime(), book_id = ? "
        f"WHERE book_id IN ({join_ids(from_book_ids)})",
        (to_book_id,),
    )


def delete_books(conn: sqlite3.Connection, book_ids: list[int]) -> None:
    """Delete book rows; author links and files cascade."""
    if book_ids:
        conn.execute(f"DELETE FROM books WHERE id IN ({join_ids(book_ids)})")


def delete_file_row(conn: sqlite3.Connection, file_id: int) -> None:
    """Delete a file row; its tag links cascade."""
    conn.execute("DELETE FROM files WHERE id = ?", (file_id,))


def delete_orphaned_tags_for_file(conn: sqlite3.Connection, file_id: int) -> int:
    """Delete tags whose only link is to file_id.

    Must run before the file row is deleted: the cascade would remove the
    links and leave nothing to count.
    """
    cursor = conn.execute(
        "DELETE FROM tags "
        "WHERE id IN (SELECT tag_id FROM files_tags WHERE file_id = ?) "
        "AND (SELECT COUNT(*) FROM files_tags ft WHERE ft.tag_id = tags.id) = 1",
        (file_id,),
    )
    return cursor.rowcount


def delete_orphaned_authors_for_book(conn: sqlite3.Connection, book_id: int) -> int:
    """Delete authors whose only book link is to book_id.

    Must run before the book row is deleted, for the same reason as tags.
    """
    cursor = conn.execute(
        "DELETE FROM authors "
        "WHERE id IN (SELECT author_id FROM books_authors WHERE book_id = ?) "
        "AND (SELECT COUNT(*) FROM books_authors ba WHERE ba.author_id = authors.id) = 1",
        (book_id,),
    )
    return cursor.rowcount


def delete_unreferenced_authors(conn: sqlite3.Connection, author_ids: list[int]) -> int:
    """Delete any of author_ids that no book links to anymore."""
    if not author_ids:
        return 0
    cursor = conn.execute(
        f"DELETE FROM authors WHERE id IN ({join_ids(author_ids)}) "
        "AND NOT EXISTS (SELECT 1 FROM books_authors ba WHERE ba.author_id = authors.id)"
    )
    return cursor.rowcount
