# ABOUTME: Library integrity verification for Libris.
# ABOUTME: Checks that stored files exist under the books root and optionally re-hashes them.

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from libris.metadata.parsing import compute_file_hash
from libris.metadata.types import BookFile

if TYPE_CHECKING:
    from libris.db.library import Library


@dataclass
class VerifyResult:
    """Aggregated results from a library verification run."""

    ok: int = 0
    missing: list[BookFile] = field(default_factory=list)
    hash_mismatch: list[BookFile] = field(default_factory=list)

    @property
    def total_issues(self) -> int:
        return len(self.missing) + len(self.hash_mismatch)


def verify_library(library: Library, *, check_hash: bool = False) -> VerifyResult:
    """Verify every stored file against the books root.

    A file is missing if nothing exists at books_root/filename. With
    check_hash, present files are re-hashed and compared to the stored hash.
    """
    result = VerifyResult()

    for book_file in library.list_files():
        path = library.books_root / (book_file.filename or "")
        if not book_file.filename or not path.is_file():
            result.missing.append(book_file)
            continue

        if check_hash and compute_file_hash(path) != book_file.hash:
            result.hash_mismatch.append(book_file)
            continue

        result.ok += 1

    return result
