# ABOUTME: Unit tests for library integrity verification.
# ABOUTME: Validates detection of missing files and hash mismatches.

from pathlib import Path

from libris.core.naming import FilenameTemplate
from libris.core.verifier import VerifyResult, verify_library
from libris.db.library import Library


class TestVerifyResult:
    """Tests for the VerifyResult dataclass."""

    def test_default_result_is_clean(self) -> None:
        """A fresh result has no issues."""
        result = VerifyResult()
        assert result.ok == 0
        assert result.missing == []
        assert result.hash_mismatch == []
        assert result.total_issues == 0


class TestVerifyLibrary:
    """Tests for verify_library()."""

    def test_empty_library(self, library: Library) -> None:
        """An empty library verifies cleanly."""
        result = verify_library(library, check_hash=True)
        assert result.ok == 0
        assert result.total_issues == 0

    def test_all_files_present(
        self, library: Library, template: FilenameTemplate, make_book
    ) -> None:
        """Imported files verify, with and without hashing."""
        library.import_book(make_book("Dune", ["Frank Herbert"]), template)
        library.import_book(make_book("Emma", ["Jane Austen"]), template)

        assert verify_library(library).ok == 2
        assert verify_library(library, check_hash=True).ok == 2

    def test_missing_file_detected(
        self, library: Library, books_root: Path, template: FilenameTemplate, make_book
    ) -> None:
        """A stored file deleted from disk is reported missing."""
        stored = library.import_book(make_book("Dune", ["Frank Herbert"]), template)
        (books_root / stored.files[0].filename).unlink()

        result = verify_library(library)
        assert [f.id for f in result.missing] == [stored.files[0].id]
        assert result.ok == 0

    def test_hash_mismatch_detected(
        self, library: Library, books_root: Path, template: FilenameTemplate, make_book
    ) -> None:
        """A changed file is flagged only when hashes are checked."""
        stored = library.import_book(make_book("Dune", ["Frank Herbert"]), template)
        (books_root / stored.files[0].filename).write_bytes(b"tampered")

        assert verify_library(library).total_issues == 0
        result = verify_library(library, check_hash=True)
        assert [f.id for f in result.hash_mismatch] == [stored.files[0].id]
        assert result.missing == []
