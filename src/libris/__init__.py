# ABOUTME: Libris - a personal ebook library with deduplication and full-text search.
# ABOUTME: Package root; the public API lives in libris.db and libris.core.

__version__ = "0.1.0"
