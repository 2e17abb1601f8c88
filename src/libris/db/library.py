# ABOUTME: The Library orchestrator: transactional import, update, merge, delete, and search.
# ABOUTME: Each operation runs in one transaction that rolls back entirely on any failure.

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import replace
from pathlib import Path
from types import TracebackType

from libris.core.converter import DEFAULT_CONVERTER, cached_path, run_converter
from libris.core.mover import move_file, move_or_copy, remove_file
from libris.core.naming import FilenameTemplate, resolve_filename
from libris.db import search, store
from libris.db.connection import open_library
from libris.errors import (
    BookExistsError,
    DuplicateError,
    LibraryError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from libris.metadata.types import Book, BookFile, SearchPage

logger = logging.getLogger(__name__)


def _without_repeats(book: Book) -> Book:
    """Drop repeated authors and per-file tags, keeping first-seen order."""
    files = [replace(f, tags=list(dict.fromkeys(f.tags))) for f in book.files]
    return replace(book, authors=list(dict.fromkeys(book.authors)), files=files)


class Library:
    """A set of books in persistent storage, rooted at a books directory.

    Wraps a sqlite3 connection opened by open_library(). Filenames stored in
    the database are relative to books_root. The Library assumes it is the
    only writer; callers using it from several threads must serialize access.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        books_root: Path,
        cache_dir: Path | None = None,
    ) -> None:
        self._conn = conn
        self.books_root = books_root
        self.cache_dir = cache_dir

    @classmethod
    def open(cls, db_path: Path, books_root: Path) -> "Library":
        """Open the library stored in db_path; converted files cache beside it."""
        conn = open_library(db_path)
        return cls(conn, books_root, cache_dir=db_path.parent / "cache")

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "Library":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Run a block inside BEGIN/COMMIT, rolling back on any exception.

        sqlite3 errors surface as StoreError; Libris errors pass through.
        """
        try:
            self._conn.execute("BEGIN")
        except sqlite3.Error as exc:
            raise StoreError(f"Cannot start transaction: {exc}") from exc

        try:
            yield self._conn
        except sqlite3.Error as exc:
            self._rollback()
            raise StoreError(str(exc)) from exc
        except BaseException:
            self._rollback()
            raise

        try:
            self._conn.execute("COMMIT")
        except sqlite3.Error as exc:
            self._rollback()
            raise StoreError(f"Cannot commit transaction: {exc}") from exc

    def _rollback(self) -> None:
        try:
            self._conn.execute("ROLLBACK")
        except sqlite3.Error as exc:
            logger.warning("Rollback failed: %s", exc)

    # --- Import ---

    def import_book(
        self,
        book: Book,
        template: FilenameTemplate,
        *,
        move: bool = False,
    ) -> Book:
        """Add a single-file book to the library.

        The file at ``book.files[0].original_path`` is moved or copied to a
        unique path rendered from template, relative to books_root. If a book
        with the same title and ordered authors exists, the file joins it.

        Returns:
            The imported record, with book and file IDs and the new filename.

        Raises:
            ValidationError: If the book has no title or not exactly one file.
            DuplicateError: If a file with the same hash is already stored.
            RenderError, PathError: If no destination name can be built.
            FilesystemError: If the file can't be placed in the library.
            StoreError: If the database fails.
        """
        if len(book.files) != 1:
            raise ValidationError("Book to import must contain exactly one file")
        if not book.title or not book.title.strip():
            raise ValidationError("Book to import must have a title")
        book = _without_repeats(book)
        book_file = book.files[0]
        if book_file.original_path is None:
            raise ValidationError("Book file to import has no source path")
        source = book_file.original_path

        placed: Path | None = None
        try:
            with self._transaction() as conn:
                duplicate = store.find_file_by_hash(conn, book_file.hash)
                if duplicate is not None:
                    raise DuplicateError(
                        f"A duplicate book already exists with id {duplicate['book_id']}",
                        book_id=duplicate["book_id"],
                        file_id=duplicate["id"],
                    )

                book_id = store.find_book_by_title_and_authors(conn, book.title, book.authors)
                created = book_id is None
                if book_id is None:
                    book_id = store.insert_book(conn, book.title, book.series)
                    for author in book.authors:
                        store.link_author(conn, book_id, author)

                filename = resolve_filename(
                    template,
                    book,
                    self.books_root,
                    lambda name: store.filename_taken(conn, name),
                )
                file_id = store.insert_file(conn, book_file, book_id, filename)
                for tag in book_file.tags:
                    store.link_tag(conn, file_id, tag)

                stored_file = replace(book_file, id=file_id, book_id=book_id, filename=filename)
                stored = replace(book, id=book_id, files=[stored_file])
                if created:
                    search.create_document(conn, stored)
                else:
                    search.append_to_document(conn, book_id, stored_file)

                destination = self.books_root / filename
                move_or_copy(source, destination, move=move)
                placed = destination
        except StoreError:
            if placed is not None:
                self._undo_placement(source, placed, move=move)
            raise

        logger.info(
            "Imported book: %s: %s, ID = %d", stored.author, stored.title, book_id
        )
        return stored

    def _undo_placement(self, source: Path, placed: Path, *, move: bool) -> None:
        """Put a file back after its import failed to commit."""
        if not move:
            remove_file(placed)
            return
        try:
            move_file(placed, source)
        except LibraryError as exc:
            logger.error("Could not restore %s to %s: %s", placed, source, exc)

    # --- Update ---

    def update_book(self, book: Book, *, update_series: bool = False) -> bool:
        """Update the title and authors (and optionally series) of book.id.

        Returns:
            False if nothing changed and no write happened, True otherwise.

        Raises:
            NotFoundError: If the book doesn't exist.
            BookExistsError: If another book already has the new title and authors.
        """
        if book.id is None:
            raise ValidationError("Book to update has no ID")
        if not book.title or not book.title.strip():
            raise ValidationError("Book title cannot be empty")
        book = replace(book, authors=list(dict.fromkeys(book.authors)))

        with self._transaction() as conn:
            existing = store.get_books_by_id(conn, [book.id])
            if not existing:
                raise NotFoundError(f"Book {book.id} not found")
            current = existing[0]

            title_changed = current.title != book.title
            authors_changed = current.authors != list(book.authors)
            series_changed = update_series and current.series != book.series
            if not (title_changed or authors_changed or series_changed):
                logger.info("Not updating book %d because nothing changed", book.id)
                return False

            other_id = store.find_book_by_title_and_authors(conn, book.title, book.authors)
            if other_id is not None and other_id != book.id:
                raise BookExistsError(f"Book already exists with id {other_id}", book_id=other_id)

            store.update_book_row(
                conn, book.id, book.title, book.series, update_series=update_series
            )
            if authors_changed:
                previous = store.unlink_authors(conn, book.id)
                for author in book.authors:
                    store.link_author(conn, book.id, author)
                store.delete_unreferenced_authors(conn, previous)

            search.update_book_fields(conn, book, update_series=update_series)

        logger.info(
            "Updated book %d with authors: %s title: %s", book.id, book.author, book.title
        )
        return True

    # --- Merge ---

    def merge_books(self, ids: list[int]) -> None:
        """Merge all files of ids[1:] into the book ids[0].

        The absorbed books are deleted, along with any of their authors no
        other book references. The target's search document is rebuilt.

        Raises:
            ValidationError: If fewer than two distinct IDs are given.
            NotFoundError: If any ID doesn't exist.
        """
        ids = list(ids)
        if len(ids) < 2:
            raise ValidationError("At least two book IDs are needed to merge")
        if len(set(ids)) != len(ids):
            raise ValidationError(f"Book IDs to merge must be distinct: {ids}")
        target, absorbed = ids[0], ids[1:]

        with self._transaction() as conn:
            found = store.existing_book_ids(conn, ids)
            missing = [i for i in ids if i not in found]
            if missing:
                raise NotFoundError(f"Books not found: {', '.join(map(str, missing))}")

            absorbed_authors = store.get_author_ids_for_books(conn, absorbed)
            store.reassign_files(conn, absorbed, target)
            store.delete_books(conn, absorbed)
            store.delete_unreferenced_authors(conn, absorbed_authors)

            search.remove_documents(conn, absorbed)
            search.rebuild_document(conn, target)

        logger.info("Merged books %s into %d", ", ".join(map(str, absorbed)), target)

    # --- Delete ---

    def is_last_file(self, book_file: BookFile) -> bool:
        """Whether book_file is the only file its book owns."""
        with self._transaction() as conn:
            stored = self._load_file(conn, book_file)
            return store.count_book_files(conn, stored.book_id) == 1  # type: ignore[arg-type]

    def delete_file(self, book_file: BookFile) -> bool:
        """Delete a file from the library and from disk.

        Deleting a book's last file deletes the book. Removing the file from
        disk is best-effort and happens before commit; if the transaction
        later fails, the file may already be gone.

        Returns:
            True if the owning book was deleted too.
        """
        with self._transaction() as conn:
            book_deleted = self._delete_file(conn, self._load_file(conn, book_file))
        return book_deleted

    def delete_book(self, book_id: int) -> int:
        """Delete a book by deleting all its files in one transaction.

        Returns:
            The number of files removed.
        """
        with self._transaction() as conn:
            if not store.existing_book_ids(conn, [book_id]):
                raise NotFoundError(f"Book {book_id} not found")
            files = store.get_files_by_book_ids(conn, [book_id]).get(book_id, [])
            for book_file in files:
                self._delete_file(conn, book_file)
            if not files:
                store.delete_orphaned_authors_for_book(conn, book_id)
                store.delete_books(conn, [book_id])
                search.remove_documents(conn, [book_id])
        logger.info("Deleted book %d (%d files)", book_id, len(files))
        return len(files)

    def _load_file(self, conn: sqlite3.Connection, book_file: BookFile) -> BookFile:
        if book_file.id is None:
            raise ValidationError("Book file has no ID")
        files = store.get_files_by_id(conn, [book_file.id])
        if not files:
            raise NotFoundError(f"File {book_file.id} not found")
        return files[0]

    def _delete_file(self, conn: sqlite3.Connection, stored: BookFile) -> bool:
        book_id = stored.book_id
        assert book_id is not None and stored.id is not None
        last = store.count_book_files(conn, book_id) == 1

        store.delete_orphaned_tags_for_file(conn, stored.id)
        store.delete_file_row(conn, stored.id)
        if stored.filename:
            remove_file(self.books_root / stored.filename)

        if last:
            store.delete_orphaned_authors_for_book(conn, book_id)
            store.delete_books(conn, [book_id])

        search.rebuild_document(conn, book_id)
        logger.info("Deleted file %s (%d)", stored.filename, stored.id)
        return last

    # --- Search and lookups ---

    def search(self, terms: str) -> list[Book]:
        """Search the library for books.

        By default all fields are searched; ``field:term`` limits a term to
        one of author, series, title, extension, tags, filename, source.
        Example: ``author:King title:Shining``.
        """
        return self.search_paged(terms).books

    def search_paged(
        self,
        terms: str,
        offset: int = 0,
        limit: int = 0,
        more_results_limit: int = 0,
    ) -> SearchPage:
        """Search with paging. A limit of 0 returns every match.

        The returned page's more_results counts matches past this page, up to
        more_results_limit; they are found by over-fetching in the same query.
        """
        if offset < 0 or limit < 0 or more_results_limit < 0:
            raise ValidationError("offset, limit and more_results_limit must not be negative")

        fetch = limit + more_results_limit if limit > 0 else 0
        with self._transaction() as conn:
            ids = search.search_ids(conn, terms, offset, fetch)
            more_results = 0
            if limit > 0 and len(ids) > limit:
                more_results = len(ids) - limit
                ids = ids[:limit]
            books = store.get_books_by_id(conn, ids)

        by_id = {b.id: b for b in books}
        return SearchPage(books=[by_id[i] for i in ids if i in by_id], more_results=more_results)

    def get_books_by_id(self, ids: list[int]) -> list[Book]:
        """Retrieve books with their authors and files. Unknown IDs are skipped."""
        with self._transaction() as conn:
            return store.get_books_by_id(conn, list(ids))

    def get_files_by_id(self, ids: list[int]) -> list[BookFile]:
        """Retrieve files with their tags. Unknown IDs are skipped."""
        with self._transaction() as conn:
            return store.get_files_by_id(conn, list(ids))

    def list_files(self) -> list[BookFile]:
        """Every file in the library, ordered by ID."""
        with self._transaction() as conn:
            return store.get_files_by_id(conn, store.list_file_ids(conn))

    def get_book_id_by_title_and_authors(self, title: str, authors: list[str]) -> int | None:
        with self._transaction() as conn:
            return store.find_book_by_title_and_authors(conn, title, authors)

    def get_file_id_by_filename(self, filename: str) -> int:
        """File ID for a filename relative to books_root. Raises NotFoundError."""
        with self._transaction() as conn:
            return store.get_file_id_by_filename(conn, filename)

    def get_book_id_by_filename(self, filename: str) -> int:
        """Owning book ID for a filename relative to books_root. Raises NotFoundError."""
        with self._transaction() as conn:
            return store.get_book_id_by_filename(conn, filename)

    # --- Conversion ---

    def convert(
        self,
        book_file: BookFile,
        extension: str = "epub",
        command: str = DEFAULT_CONVERTER,
    ) -> Path:
        """Convert a stored file, caching the result as <cache>/<hash>.<extension>.

        An existing cached conversion is reused.

        Raises:
            ConversionError: If the converter fails.
        """
        if self.cache_dir is None:
            raise ValidationError("This library has no cache directory")
        if not book_file.filename:
            raise ValidationError("Book file has not been imported")

        destination = cached_path(self.cache_dir, book_file.hash, extension)
        if destination.exists():
            logger.debug("Using cached conversion %s", destination)
            return destination
        run_converter(self.books_root / book_file.filename, destination, command)
        return destination
