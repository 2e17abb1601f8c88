# ABOUTME: User configuration for Libris, loaded from a JSON file.
# ABOUTME: Holds library locations, the output filename template, and import regexps.

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from libris.core.naming import DEFAULT_OUTPUT_TEMPLATE
from libris.db.connection import DEFAULT_BOOKS_ROOT, DEFAULT_DB_PATH, DEFAULT_LIBRARY_DIR
from libris.errors import ValidationError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "LIBRIS_CONFIG"
DEFAULT_CONFIG_PATH = DEFAULT_LIBRARY_DIR / "config.json"

# "Author - Title.ext" and "Author - Series - Title.ext"
DEFAULT_REGEXPS: dict[str, str] = {
    "author_series_title": r"^(?P<author>.+?) - (?P<series>.+?) - (?P<title>.+)\.(?P<ext>[^.]+)$",
    "author_title": r"^(?P<author>.+?) - (?P<title>.+)\.(?P<ext>[^.]+)$",
}


@dataclass
class LibrisConfig:
    """Settings shared by the CLI commands."""

    db_path: Path = DEFAULT_DB_PATH
    books_root: Path = DEFAULT_BOOKS_ROOT
    output_template: str = DEFAULT_OUTPUT_TEMPLATE
    regexps: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_REGEXPS))
    default_regexps: list[str] = field(
        default_factory=lambda: ["author_series_title", "author_title"]
    )
    move: bool = False

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["db_path"] = str(self.db_path)
        data["books_root"] = str(self.books_root)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LibrisConfig":
        """Build a config from parsed JSON, keeping defaults for missing keys.

        Raises:
            ValidationError: On unknown keys.
        """
        known = set(cls.__dataclass_fields__)
        unknown = set(data) - known
        if unknown:
            raise ValidationError(f"Unknown config keys: {', '.join(sorted(unknown))}")
        values = dict(data)
        for key in ("db_path", "books_root"):
            if key in values:
                values[key] = Path(values[key]).expanduser()
        return cls(**values)

    def patterns(self, names: list[str] | None = None) -> list[tuple[str, str]]:
        """The (name, regexp) pairs to try on import, in order.

        Raises:
            ValidationError: If a name has no regexp configured.
        """
        selected = names or self.default_regexps
        missing = [n for n in selected if n not in self.regexps]
        if missing:
            raise ValidationError(f"Regexp not found in config: {', '.join(missing)}")
        return [(n, self.regexps[n]) for n in selected]


def get_config_path() -> Path:
    """Config file location: $LIBRIS_CONFIG, else ~/.libris/config.json."""
    override = os.environ.get(CONFIG_ENV_VAR)
    return Path(override).expanduser() if override else DEFAULT_CONFIG_PATH


def load_config(path: Path | None = None) -> LibrisConfig:
    """Load configuration, returning defaults if the file doesn't exist.

    Raises:
        ValidationError: If the file exists but is not valid config JSON.
    """
    config_path = path or get_config_path()
    if not config_path.exists():
        logger.debug("No config at %s; using defaults", config_path)
        return LibrisConfig()

    try:
        with open(config_path, encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as exc:
        raise ValidationError(f"Failed to load config from {config_path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ValidationError(f"Config in {config_path} must be a JSON object")
    return LibrisConfig.from_dict(data)


def save_config(config: LibrisConfig, path: Path | None = None) -> Path:
    """Write configuration as JSON, creating the directory if needed."""
    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w", encoding="utf-8") as f:
        json.dump(config.to_dict(), f, indent=2)
    return config_path
