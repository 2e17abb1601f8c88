# ABOUTME: Public API for the Libris storage engine.
# ABOUTME: Exports library creation/opening and the Library orchestrator.

from libris.db.connection import (
    DEFAULT_BOOKS_ROOT,
    DEFAULT_DB_PATH,
    create_library,
    open_library,
)
from libris.db.library import Library

__all__ = [
    "DEFAULT_BOOKS_ROOT",
    "DEFAULT_DB_PATH",
    "Library",
    "create_library",
    "open_library",
]
