# ABOUTME: Unit tests for Library.update_book.
# ABOUTME: Validates no-op detection, collision refusal, author relinking, and search updates.

import sqlite3

import pytest

from libris.core.naming import FilenameTemplate
from libris.db.library import Library
from libris.errors import BookExistsError, NotFoundError, ValidationError
from libris.metadata.types import Book


def _fts(conn: sqlite3.Connection, book_id: int) -> sqlite3.Row:
    return conn.execute("SELECT * FROM books_fts WHERE rowid = ?", (book_id,)).fetchone()


def _author_names(conn: sqlite3.Connection) -> list[str]:
    return [row[0] for row in conn.execute("SELECT name FROM authors ORDER BY name")]


@pytest.fixture()
def shining(library: Library, template: FilenameTemplate, make_book) -> Book:
    """An imported book, re-read from the library."""
    stored = library.import_book(
        make_book("The Shinning", ["Stephen King"], series="Torrance"), template
    )
    return library.get_books_by_id([stored.id])[0]


class TestUpdateNoOp:
    """Tests for updates that change nothing."""

    def test_unchanged_returns_false(self, library: Library, shining: Book) -> None:
        """Updating with the stored values reports no change."""
        assert library.update_book(shining) is False

    def test_unchanged_writes_nothing(self, library: Library, shining: Book, snapshot) -> None:
        """A no-op update leaves every table byte-identical, timestamps included."""
        before = snapshot()
        library.update_book(shining)
        library.update_book(shining, update_series=True)
        assert snapshot() == before

    def test_series_ignored_without_flag(self, library: Library, shining: Book, snapshot) -> None:
        """A changed series alone is not a change unless update_series is set."""
        before = snapshot()
        shining.series = "Something else"
        assert library.update_book(shining) is False
        assert snapshot() == before

    def test_repeated_author_is_unchanged(
        self, library: Library, shining: Book, snapshot
    ) -> None:
        """Listing the stored author twice is not a change."""
        before = snapshot()
        shining.authors = ["Stephen King", "Stephen King"]
        assert library.update_book(shining) is False
        assert snapshot() == before


class TestUpdateFields:
    """Tests for updates that change title, authors, or series."""

    def test_title(self, library: Library, conn: sqlite3.Connection, shining: Book) -> None:
        """A new title is stored and indexed."""
        shining.title = "The Shining"
        assert library.update_book(shining) is True

        assert library.get_books_by_id([shining.id])[0].title == "The Shining"
        assert _fts(conn, shining.id)["title"] == "The Shining"
        assert library.search("title:Shining")[0].id == shining.id

    def test_authors_replaced_in_order(
        self, library: Library, conn: sqlite3.Connection, shining: Book
    ) -> None:
        """The author list is replaced and its order kept."""
        shining.authors = ["Richard Bachman", "Stephen King"]
        library.update_book(shining)

        assert library.get_books_by_id([shining.id])[0].authors == [
            "Richard Bachman",
            "Stephen King",
        ]
        assert _fts(conn, shining.id)["author"] == "Richard Bachman & Stephen King"

    def test_unreferenced_author_deleted(
        self, library: Library, conn: sqlite3.Connection, shining: Book
    ) -> None:
        """An author no book references after the update is removed."""
        shining.authors = ["Richard Bachman"]
        library.update_book(shining)
        assert _author_names(conn) == ["Richard Bachman"]

    def test_shared_author_kept(
        self,
        library: Library,
        conn: sqlite3.Connection,
        shining: Book,
        template: FilenameTemplate,
        make_book,
    ) -> None:
        """An author still linked to another book survives."""
        library.import_book(make_book("It", ["Stephen King"]), template)
        shining.authors = ["Richard Bachman"]
        library.update_book(shining)
        assert _author_names(conn) == ["Richard Bachman", "Stephen King"]

    def test_series_with_flag(
        self, library: Library, conn: sqlite3.Connection, shining: Book
    ) -> None:
        """With update_series, the series is stored and indexed."""
        shining.series = None
        assert library.update_book(shining, update_series=True) is True

        assert library.get_books_by_id([shining.id])[0].series is None
        assert _fts(conn, shining.id)["series"] == ""

    def test_touches_updated_on_only_for_book(
        self, library: Library, conn: sqlite3.Connection, shining: Book
    ) -> None:
        """created_on is preserved on update."""
        created = conn.execute(
            "SELECT created_on FROM books WHERE id = ?", (shining.id,)
        ).fetchone()[0]
        shining.title = "The Shining"
        library.update_book(shining)
        after = conn.execute("SELECT created_on FROM books WHERE id = ?", (shining.id,)).fetchone()[0]
        assert after == created

    def test_files_untouched(self, library: Library, shining: Book) -> None:
        """Updating a book doesn't rename or move its files."""
        shining.title = "The Shining"
        library.update_book(shining)
        assert library.get_books_by_id([shining.id])[0].files[0].filename == (
            "Stephen King/The Shinning.epub"
        )


class TestUpdateRejections:
    """Tests for invalid updates."""

    def test_collision_with_other_book(
        self,
        library: Library,
        shining: Book,
        snapshot,
        template: FilenameTemplate,
        make_book,
    ) -> None:
        """Renaming onto another book's title and authors raises BookExistsError."""
        other = library.import_book(make_book("The Shining", ["Stephen King"]), template)
        before = snapshot()

        shining.title = "The Shining"
        with pytest.raises(BookExistsError) as excinfo:
            library.update_book(shining)

        assert excinfo.value.book_id == other.id
        assert snapshot() == before

    def test_missing_book(self, library: Library) -> None:
        """Updating an unknown ID raises NotFoundError."""
        with pytest.raises(NotFoundError):
            library.update_book(Book(title="Ghost", authors=[], id=999))

    def test_no_id(self, library: Library) -> None:
        """A book without an ID can't be updated."""
        with pytest.raises(ValidationError):
            library.update_book(Book(title="Ghost"))

    def test_empty_title(self, library: Library, shining: Book) -> None:
        """A blank title is rejected."""
        shining.title = ""
        with pytest.raises(ValidationError):
            library.update_book(shining)
