# ABOUTME: Unit tests for reading candidate books from EPUB metadata.
# ABOUTME: Tests valid, untitled, and corrupt EPUB files.

from pathlib import Path

import pytest
from ebooklib import epub

from libris.formats.epub import EpubReadError, read_epub_book
from libris.metadata.types import Book


@pytest.fixture
def untitled_epub(tmp_path: Path) -> Path:
    """An EPUB with two authors and no title, named with a trailing tag."""
    book = epub.EpubBook()
    book.set_identifier("untitled-1")
    book.set_language("en")
    book.add_author("Douglas Preston")
    book.add_author("Lincoln Child")

    chapter = epub.EpubHtml(title="One", file_name="one.xhtml", lang="en")
    chapter.content = b"<html><body><p>Text.</p></body></html>"
    book.add_item(chapter)

    book.toc = [epub.Link("one.xhtml", "One", "one")]
    book.add_item(epub.EpubNcx())
    book.add_item(epub.EpubNav())
    book.spine = ["nav", chapter]

    filepath = tmp_path / "Relic (retail).epub"
    epub.write_epub(str(filepath), book)
    return filepath


class TestReadEpubBook:
    """Tests for EPUB candidate extraction."""

    def test_extracts_title(self, sample_epub: Path) -> None:
        """Extracts the title from a valid EPUB."""
        book = read_epub_book(sample_epub)
        assert book.title == "The Name of the Rose"

    def test_extracts_author(self, sample_epub: Path) -> None:
        """Extracts the author from a valid EPUB."""
        book = read_epub_book(sample_epub)
        assert book.authors == ["Umberto Eco"]
        assert book.author == "Umberto Eco"

    def test_authors_in_document_order(self, untitled_epub: Path) -> None:
        """Multiple creators keep their order."""
        book = read_epub_book(untitled_epub)
        assert book.authors == ["Douglas Preston", "Lincoln Child"]

    def test_title_falls_back_to_stem(self, untitled_epub: Path) -> None:
        """Without a title, the file stem minus trailing tags is used."""
        book = read_epub_book(untitled_epub)
        assert book.title == "Relic"

    def test_no_files_attached(self, sample_epub: Path) -> None:
        """The candidate has no files; the importer attaches one."""
        book = read_epub_book(sample_epub)
        assert isinstance(book, Book)
        assert book.files == []
        assert book.series is None

    def test_corrupt_epub_raises(self, corrupt_epub: Path) -> None:
        """A corrupt file raises EpubReadError."""
        with pytest.raises(EpubReadError):
            read_epub_book(corrupt_epub)

    def test_nonexistent_file_raises(self, tmp_path: Path) -> None:
        """A missing file raises EpubReadError."""
        with pytest.raises(EpubReadError, match="not found"):
            read_epub_book(tmp_path / "missing.epub")
