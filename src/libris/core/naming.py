# ABOUTME: Renders library filenames from a Jinja2 template and makes them collision-free.
# ABOUTME: Truncates over-long path components and appends " (n)" until a name is unused.

import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

from jinja2 import Environment, StrictUndefined, TemplateError

from libris.errors import PathError, RenderError
from libris.metadata.types import Book

MAX_COMPONENT_BYTES = 255

_MAX_COLLISION_ATTEMPTS = 10_000

DEFAULT_OUTPUT_TEMPLATE = (
    "{{ (authors | join_naturally) or 'Unknown' }}/"
    "{{ title }}{% if series %} ({{ series }}){% endif %}.{{ extension }}"
)

ClaimCheck = Callable[[str], bool]


def join_naturally(items: list[str], conjunction: str = "and") -> str:
    """Join names for display: "A", "A and B", "A, B and C"."""
    items = list(items)
    if len(items) <= 1:
        return "".join(items)
    return f"{', '.join(items[:-1])} {conjunction} {items[-1]}"


def _clean(value: str | None) -> str:
    """Keep a field value from introducing directories or NULs."""
    if not value:
        return ""
    return value.replace("/", "_").replace("\\", "_").replace("\0", "_")


def book_context(book: Book) -> dict[str, Any]:
    """Template fields for a book and its first file."""
    book_file = book.files[0] if book.files else None
    authors = [_clean(a) for a in book.authors]
    extension = _clean(book_file.extension) if book_file else ""
    return {
        "title": _clean(book.title),
        "authors": authors,
        "author": " & ".join(authors),
        "series": _clean(book.series),
        "extension": extension,
        "ext": extension,
        "tags": [_clean(t) for t in book_file.tags] if book_file else [],
        "source": _clean(book_file.source) if book_file else "",
    }


class FilenameTemplate:
    """A compiled output-filename template.

    Templates use Jinja2 syntax, e.g. ``{{ author }}/{{ title }}.{{ ext }}``.
    Referencing a field that doesn't exist is an error rather than an empty
    string.
    """

    def __init__(self, source: str) -> None:
        env = Environment(undefined=StrictUndefined, autoescape=False)
        env.filters["join_naturally"] = join_naturally
        self.source = source
        try:
            self._template = env.from_string(source)
        except TemplateError as exc:
            raise RenderError(f"Cannot parse output template {source!r}: {exc}") from exc

    def render(self, book: Book) -> str:
        """Render the template for a book.

        Raises:
            RenderError: If the template references unknown fields or fails.
        """
        try:
            return self._template.render(book_context(book)).strip()
        except TemplateError as exc:
            raise RenderError(f"Cannot render filename for {book.title!r}: {exc}") from exc


def _split_extension(name: str) -> tuple[str, str]:
    """Split "name.ext" into ("name", ".ext"); dotfiles have no extension."""
    dot = name.rfind(".")
    if dot <= 0:
        return name, ""
    return name[:dot], name[dot:]


def _fit(stem: str, suffix: str, limit: int) -> str:
    """Cut stem so stem + suffix fits in limit bytes, never splitting a character."""
    budget = limit - len(suffix.encode("utf-8"))
    if budget <= 0:
        raise PathError(f"Extension {suffix!r} leaves no room for a filename")
    cut = stem.encode("utf-8")[:budget].decode("utf-8", "ignore").rstrip()
    return cut + suffix


def truncate_component(name: str, limit: int = MAX_COMPONENT_BYTES) -> str:
    """Truncate one path component to limit bytes, keeping its extension intact."""
    if len(name.encode("utf-8")) <= limit:
        return name
    stem, ext = _split_extension(name)
    return _fit(stem, ext, limit)


def _normalize(relative: str) -> list[str]:
    if not relative.strip():
        raise PathError("Rendered filename is empty")
    if relative.startswith(("/", "\\")):
        raise PathError(f"Rendered filename {relative!r} is absolute")
    parts = [p.strip() for p in relative.split("/") if p.strip() not in ("", ".")]
    if not parts:
        raise PathError(f"Rendered filename {relative!r} has no usable components")
    if ".." in parts:
        raise PathError(f"Rendered filename {relative!r} escapes the library root")
    return [truncate_component(p) for p in parts]


def unique_filename(root: Path, relative: str, is_claimed: ClaimCheck | None = None) -> str:
    """Return a relative path under root that is not in use.

    A name is in use if it exists on disk under root or is_claimed(name) is
    true (e.g. already recorded by a not-yet-committed import). Collisions get
    " (1)", " (2)", ... inserted before the extension.

    Raises:
        PathError: If no usable name can be constructed.
    """

    def taken(candidate: str) -> bool:
        if os.path.lexists(root / candidate):
            return True
        return is_claimed is not None and is_claimed(candidate)

    parts = _normalize(relative)
    candidate = "/".join(parts)
    if not taken(candidate):
        return candidate

    parent = parts[:-1]
    stem, ext = _split_extension(parts[-1])
    for counter in range(1, _MAX_COLLISION_ATTEMPTS + 1):
        name = _fit(stem, f" ({counter}){ext}", MAX_COMPONENT_BYTES)
        candidate = "/".join([*parent, name])
        if not taken(candidate):
            return candidate
    raise PathError(
        f"Could not find a non-colliding filename after "
        f"{_MAX_COLLISION_ATTEMPTS} attempts: {relative}"
    )


def resolve_filename(
    template: FilenameTemplate,
    book: Book,
    root: Path,
    is_claimed: ClaimCheck | None = None,
) -> str:
    """Render a book's filename and make it unique under root."""
    return unique_filename(root, template.render(book), is_claimed)
