# ABOUTME: SQLite connection management for the Libris library database.
# ABOUTME: Creates a library file once, and opens existing ones with the engine's pragmas.

import logging
import sqlite3
from pathlib import Path

from libris.db.schema import SCHEMA_V1
from libris.errors import NotFoundError, StoreError

logger = logging.getLogger(__name__)

DEFAULT_LIBRARY_DIR = Path.home() / ".libris"
DEFAULT_DB_PATH = DEFAULT_LIBRARY_DIR / "library.db"
DEFAULT_BOOKS_ROOT = DEFAULT_LIBRARY_DIR / "books"


def _schema_exists(conn: sqlite3.Connection) -> bool:
    """Check if the schema has already been applied."""
    cursor = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name='schema_version'"
    )
    return cursor.fetchone() is not None


def _connect(path: Path) -> sqlite3.Connection:
    """Open a connection configured for Libris.

    The connection runs in autocommit mode; Library wraps every operation in
    an explicit BEGIN/COMMIT. Synchronous writes are turned off for import
    throughput, so a power loss or OS crash can lose recently committed
    transactions.
    """
    conn = sqlite3.connect(str(path), isolation_level=None)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys=ON")
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA synchronous=OFF")
    return conn


def create_library(path: Path) -> None:
    """Initialize a new library database at path.

    Creates parent directories as needed. This sets a library up for the
    first time; use open_library() for an existing one.

    Raises:
        StoreError: If path already holds a library, or the schema can't be applied.
    """
    logger.info("Creating library in %s", path)
    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        conn = sqlite3.connect(str(path), isolation_level=None)
    except sqlite3.Error as exc:
        raise StoreError(f"Cannot create library {path}: {exc}") from exc

    try:
        if _schema_exists(conn):
            raise StoreError(f"A library already exists in {path}")
        conn.executescript(SCHEMA_V1)
    except sqlite3.Error as exc:
        raise StoreError(f"Cannot create library {path}: {exc}") from exc
    finally:
        conn.close()

    logger.info("Library created in %s", path)


def open_library(path: Path) -> sqlite3.Connection:
    """Open an existing library database.

    Returns:
        A configured sqlite3.Connection with sqlite3.Row rows and foreign keys on.

    Raises:
        NotFoundError: If no library exists at path.
        StoreError: If the database can't be opened.
    """
    if not path.exists():
        raise NotFoundError(f"No library found at {path}")

    try:
        conn = _connect(path)
    except sqlite3.Error as exc:
        raise StoreError(f"Cannot open library {path}: {exc}") from exc

    try:
        has_schema = _schema_exists(conn)
    except sqlite3.Error as exc:
        conn.close()
        raise StoreError(f"Cannot open library {path}: {exc}") from exc

    if not has_schema:
        conn.close()
        raise NotFoundError(f"{path} is not a Libris library")

    return conn
