# ABOUTME: Shared pytest fixtures for Libris tests.
# ABOUTME: Provides a fresh library, candidate-book factories, and sample EPUB files.

import sqlite3
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from ebooklib import epub

from libris.core.naming import FilenameTemplate
from libris.db.connection import create_library, open_library
from libris.db.library import Library
from libris.metadata.parsing import describe_file
from libris.metadata.types import Book

MakeBook = Callable[..., Book]


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Path of a freshly created library database."""
    path = tmp_path / "lib" / "library.db"
    create_library(path)
    return path


@pytest.fixture
def books_root(tmp_path: Path) -> Path:
    """The library's books directory."""
    root = tmp_path / "books"
    root.mkdir()
    return root


@pytest.fixture
def library(db_path: Path, books_root: Path) -> Iterator[Library]:
    """A Library over an empty database."""
    lib = Library.open(db_path, books_root)
    yield lib
    lib.close()


@pytest.fixture
def conn(db_path: Path, library: Library) -> Iterator[sqlite3.Connection]:
    """A second connection for inspecting committed rows."""
    connection = open_library(db_path)
    yield connection
    connection.close()


@pytest.fixture
def template() -> FilenameTemplate:
    """A simple author/title output template."""
    return FilenameTemplate("{{ author }}/{{ title }}.{{ extension }}")


@pytest.fixture
def make_book(tmp_path: Path) -> MakeBook:
    """Factory writing a source file and returning a single-file candidate Book.

    The file content defaults to title + extension so distinct books get
    distinct hashes; pass content to force a collision.
    """
    incoming = tmp_path / "incoming"
    incoming.mkdir(exist_ok=True)
    counter = iter(range(1, 10_000))

    def _make(
        title: str,
        authors: list[str] | None = None,
        *,
        extension: str = "epub",
        content: bytes | None = None,
        tags: list[str] | None = None,
        series: str | None = None,
        source: str | None = None,
    ) -> Book:
        path = incoming / f"file{next(counter)}.{extension}"
        path.write_bytes(content if content is not None else f"{title}|{path.name}".encode())
        book_file = describe_file(path, source=source)
        book_file.tags = list(tags or [])
        return Book(title=title, authors=list(authors or []), series=series, files=[book_file])

    return _make


def _dump_tables(conn: sqlite3.Connection) -> dict[str, list[tuple]]:
    """Every row of every library table, for before/after comparisons."""
    tables = ["books", "files", "authors", "books_authors", "tags", "files_tags"]
    dump = {
        table: [tuple(row) for row in conn.execute(f"SELECT * FROM {table} ORDER BY id")]
        for table in tables
    }
    dump["books_fts"] = [
        tuple(row) for row in conn.execute("SELECT rowid, * FROM books_fts ORDER BY rowid")
    ]
    return dump


@pytest.fixture
def snapshot(conn: sqlite3.Connection) -> Callable[[], dict[str, list[tuple]]]:
    """Callable returning every committed row, search index included."""
    return lambda: _dump_tables(conn)


@pytest.fixture
def sample_epub(tmp_path: Path) -> Path:
    """Create a minimal valid EPUB file with known metadata."""
    book = epub.EpubBook()

    book.set_identifier("test-isbn-978-0-123456-47-2")
    book.set_title("The Name of the Rose")
    book.set_language("en")
    book.add_author("Umberto Eco")

    chapter = epub.EpubHtml(title="Chapter 1", file_name="chap01.xhtml", lang="en")
    chapter.content = b"<html><body><h1>Chapter 1</h1><p>Content.</p></body></html>"
    book.add_item(chapter)

    book.toc = [epub.Link("chap01.xhtml", "Chapter 1", "chap01")]
    book.add_item(epub.EpubNcx())
    book.add_item(epub.EpubNav())
    book.spine = ["nav", chapter]

    filepath = tmp_path / "name_of_the_rose.epub"
    epub.write_epub(str(filepath), book)
    return filepath


@pytest.fixture
def corrupt_epub(tmp_path: Path) -> Path:
    """Create a corrupt file that is not a valid EPUB."""
    filepath = tmp_path / "corrupt.epub"
    filepath.write_text("this is not a valid epub file")
    return filepath
