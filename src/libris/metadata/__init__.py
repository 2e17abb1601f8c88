# ABOUTME: Metadata package: value records and candidate-building from filenames.
# ABOUTME: Exports Book, BookFile, and the filename parsing helpers.

from libris.metadata.parsing import describe_file, parse_filename, split_title_and_tags
from libris.metadata.types import Book, BookFile, SearchPage

__all__ = [
    "Book",
    "BookFile",
    "SearchPage",
    "describe_file",
    "parse_filename",
    "split_title_and_tags",
]
