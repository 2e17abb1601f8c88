# ABOUTME: Exception hierarchy shared by the Libris storage engine and CLI.
# ABOUTME: Every error raised by a Library operation derives from LibraryError.


class LibraryError(Exception):
    """Base class for all Libris errors."""


class ValidationError(LibraryError):
    """Raised for malformed input, e.g. a multi-file import or an empty ID list."""


class NotFoundError(LibraryError):
    """Raised when a book, file, or library lookup finds nothing."""


class DuplicateError(LibraryError):
    """Raised when a file with the same content hash is already in the library."""

    def __init__(self, message: str, book_id: int, file_id: int | None = None) -> None:
        super().__init__(message)
        self.book_id = book_id
        self.file_id = file_id


class BookExistsError(LibraryError):
    """Raised by an update whose target title and authors belong to another book."""

    def __init__(self, message: str, book_id: int) -> None:
        super().__init__(message)
        self.book_id = book_id


class StoreError(LibraryError):
    """Raised when the underlying database fails; the transaction is rolled back."""


class FilesystemError(LibraryError):
    """Raised when moving, copying, or deleting a file on disk fails."""


class RenderError(LibraryError):
    """Raised when an output filename template is malformed or uses unknown fields."""


class PathError(LibraryError):
    """Raised when no usable destination path can be constructed."""


class ConversionError(LibraryError):
    """Raised when the external ebook converter fails."""
