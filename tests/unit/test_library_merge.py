# ABOUTME: Unit tests for Library.merge_books.
# ABOUTME: Validates file reassignment, book and author cleanup, and search reindexing.

import sqlite3

import pytest

from libris.core.naming import FilenameTemplate
from libris.db.library import Library
from libris.errors import NotFoundError, ValidationError


def _fts(conn: sqlite3.Connection, book_id: int) -> sqlite3.Row | None:
    return conn.execute("SELECT * FROM books_fts WHERE rowid = ?", (book_id,)).fetchone()


@pytest.fixture()
def three_books(library: Library, template: FilenameTemplate, make_book) -> list[int]:
    """Three books that are really one, imported under different names."""
    ids = [
        library.import_book(make_book("The Shining", ["Stephen King"], tags=["retail"]), template).id,
        library.import_book(
            make_book("Shining", ["S. King"], extension="pdf", tags=["scan"]), template
        ).id,
        library.import_book(make_book("The Shining", ["King"], extension="mobi"), template).id,
    ]
    return ids


class TestMergeBooks:
    """Tests for merging books."""

    def test_files_move_to_first_book(self, library: Library, three_books: list[int]) -> None:
        """All files end up under the first ID."""
        library.merge_books(three_books)

        books = library.get_books_by_id(three_books)
        assert [b.id for b in books] == [three_books[0]]
        assert sorted(f.extension for f in books[0].files) == ["epub", "mobi", "pdf"]

    def test_target_keeps_its_metadata(self, library: Library, three_books: list[int]) -> None:
        """The surviving book keeps its own title and authors."""
        library.merge_books(three_books)
        book = library.get_books_by_id([three_books[0]])[0]
        assert book.title == "The Shining"
        assert book.authors == ["Stephen King"]

    def test_orphaned_authors_removed(
        self, library: Library, conn: sqlite3.Connection, three_books: list[int]
    ) -> None:
        """Authors only the absorbed books referenced are deleted."""
        library.merge_books(three_books)
        names = [row[0] for row in conn.execute("SELECT name FROM authors")]
        assert names == ["Stephen King"]

    def test_shared_author_kept(
        self,
        library: Library,
        conn: sqlite3.Connection,
        three_books: list[int],
        template: FilenameTemplate,
        make_book,
    ) -> None:
        """An absorbed book's author that another book uses survives."""
        library.import_book(make_book("Misery", ["King"]), template)
        library.merge_books(three_books)
        names = sorted(row[0] for row in conn.execute("SELECT name FROM authors"))
        assert names == ["King", "Stephen King"]

    def test_tags_survive(
        self, library: Library, conn: sqlite3.Connection, three_books: list[int]
    ) -> None:
        """Tags move with their files."""
        library.merge_books(three_books)
        tags = sorted(row[0] for row in conn.execute("SELECT name FROM tags"))
        assert tags == ["retail", "scan"]

    def test_search_documents_rebuilt(
        self, library: Library, conn: sqlite3.Connection, three_books: list[int]
    ) -> None:
        """Absorbed documents are dropped and the target's covers every file."""
        library.merge_books(three_books)

        assert _fts(conn, three_books[1]) is None
        assert _fts(conn, three_books[2]) is None
        row = _fts(conn, three_books[0])
        assert sorted(row["extension"].split()) == ["epub", "mobi", "pdf"]
        assert sorted(row["tags"].split()) == ["retail", "scan"]
        assert [b.id for b in library.search("extension:pdf")] == [three_books[0]]

    def test_files_stay_on_disk(self, library: Library, three_books: list[int]) -> None:
        """Merging doesn't move files on disk."""
        before = sorted(f.filename for f in library.list_files())
        library.merge_books(three_books)
        assert sorted(f.filename for f in library.list_files()) == before


class TestMergeRejections:
    """Tests for invalid merges."""

    def test_single_id(self, library: Library, three_books: list[int]) -> None:
        """Fewer than two IDs is a ValidationError."""
        with pytest.raises(ValidationError):
            library.merge_books(three_books[:1])

    def test_repeated_id(self, library: Library, three_books: list[int]) -> None:
        """The same ID twice is a ValidationError."""
        with pytest.raises(ValidationError):
            library.merge_books([three_books[0], three_books[0]])

    def test_missing_id_changes_nothing(
        self, library: Library, three_books: list[int], snapshot
    ) -> None:
        """An unknown ID aborts the whole merge."""
        before = snapshot()
        with pytest.raises(NotFoundError):
            library.merge_books([three_books[0], three_books[1], 999])
        assert snapshot() == before
