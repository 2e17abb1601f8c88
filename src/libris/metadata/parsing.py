# ABOUTME: Builds candidate Book records from files on disk before import.
# ABOUTME: Regex filename parsing, title/tag splitting, and SHA-256 file description.

import hashlib
import re
from datetime import datetime
from pathlib import Path

from libris.metadata.types import Book, BookFile

_CHUNK_SIZE = 65536  # 64 KB

AUTHOR_SEPARATOR = " & "

# A trailing "(tag)" or "[tag]" group, e.g. "Dune (retail) [v2]"
_TRAILING_TAG_RE = re.compile(r"\s*[(\[]([^()\[\]]+)[)\]]\s*$")


def compute_file_hash(path: Path) -> str:
    """Compute the SHA-256 hash of a file, reading it in 64KB chunks.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    hasher = hashlib.sha256()
    with open(path, "rb") as f:
        while True:
            chunk = f.read(_CHUNK_SIZE)
            if not chunk:
                break
            hasher.update(chunk)
    return hasher.hexdigest()


def describe_file(path: Path, source: str | None = None) -> BookFile:
    """Stat and hash a file, producing an un-imported BookFile.

    Raises:
        OSError: If the file cannot be read.
    """
    st = path.stat()
    return BookFile(
        extension=path.suffix.lstrip(".").lower(),
        hash=compute_file_hash(path),
        size=st.st_size,
        mtime=datetime.fromtimestamp(st.st_mtime),
        original_path=path,
        source=source,
    )


def split_title_and_tags(title: str) -> tuple[str, list[str]]:
    """Split trailing parenthesized or bracketed groups off a title as tags.

    "The Shining (retail) [v2]" -> ("The Shining", ["retail", "v2"]).
    A title made only of such groups is returned unchanged.
    """
    tags: list[str] = []
    remaining = title.strip()
    while True:
        match = _TRAILING_TAG_RE.search(remaining)
        if match is None or match.start() == 0:
            break
        tags.insert(0, match.group(1).strip())
        remaining = remaining[: match.start()].rstrip()
    return remaining, tags


def _group(match: re.Match[str], name: str) -> str | None:
    if name not in match.re.groupindex:
        return None
    value = match.group(name)
    return value.strip() if value else None


def parse_filename(path: Path, pattern: re.Pattern[str]) -> Book | None:
    """Parse a file's name into a candidate Book using a regex.

    Recognized named groups are ``author``, ``series``, ``title`` and ``ext``.
    Multiple authors in the ``author`` group are separated by " & ". Tags are
    split off the end of the title. The returned book carries one placeholder
    file holding the extension and tags; callers replace it with the BookFile
    from describe_file().

    Returns:
        A Book, or None if the pattern doesn't match or yields no title.
    """
    match = pattern.search(path.name)
    if match is None:
        return None

    raw_title = _group(match, "title")
    if not raw_title:
        return None
    title, tags = split_title_and_tags(raw_title)

    author_field = _group(match, "author")
    authors = (
        [a.strip() for a in author_field.split(AUTHOR_SEPARATOR) if a.strip()]
        if author_field
        else []
    )

    ext = _group(match, "ext") or path.suffix.lstrip(".")
    book_file = BookFile(
        extension=ext.lower(),
        hash="",
        size=0,
        mtime=datetime.fromtimestamp(0),
        original_path=path,
        tags=tags,
    )
    return Book(
        title=title,
        authors=authors,
        series=_group(match, "series"),
        files=[book_file],
    )
