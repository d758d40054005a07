from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Union
from pathlib import Path
import os
import json

from .citekey import CitekeyFormat, DEFAULT_CITEKEY_PATTERN, DEFAULT_CITEKEY_PROPERTY
from .errors import MissingConfigurationError

# Directory settings that fall back to a sub directory of root_directory
DIRECTORY_DEFAULTS = {
    "note_directory": "notes",
    "file_directory": "citekey-files",
    "stage_directory": "stage",
    "bib_directory": "bibs",
}

_PATH_FIELDS = {"root_directory", "note_directory", "file_directory", "stage_directory", "bib_directory", "bib_file"}
_LIST_FIELDS = {"web_search_groups", "note_extensions"}
_BOOL_FIELDS = {"use_cache"}


def require_path(path: Path | None, setting: str, directory: bool = True) -> Path:
    """Return ``path`` if it is set and exists (as a directory, or a file)."""
    if path is None:
        raise MissingConfigurationError(setting)
    path = Path(path)
    if not (path.is_dir() if directory else path.is_file()):
        raise MissingConfigurationError(setting, f"{path} not found")
    return path


class BogConfig(BaseModel):
    root_directory: Path = Path("~/bib")
    # None means "<root_directory>/<default name>", see resolved()
    note_directory: Optional[Path] = None
    file_directory: Optional[Path] = None
    stage_directory: Optional[Path] = None
    bib_directory: Optional[Path] = None
    # A single bibliography file wins over bib_directory when set
    bib_file: Optional[Path] = None
    citekey_pattern: str = DEFAULT_CITEKEY_PATTERN
    citekey_property: str = DEFAULT_CITEKEY_PROPERTY
    web_search_groups: List[Union[int, str]] = Field(default_factory=lambda: [1, 2, 3])
    web_search_delimiter: str = "+"
    web_search_url: str = "http://scholar.google.com/scholar?q=%s"
    # Characters that may follow the citekey in a content file name
    file_name_separators: str = "-_"
    file_secondary_suffix: str = "-supplement"
    note_extensions: List[str] = Field(default_factory=lambda: [".org"])
    # Keep the note citekey index until explicitly cleared (goes stale on edits)
    use_cache: bool = False

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @classmethod
    def from_env(cls) -> "BogConfig":
        # Allow overrides via environment
        kwargs = {}
        for field in cls.model_fields:
            env_key = f"BOG_{field.upper()}"
            if env_key in os.environ:
                value = os.environ[env_key]
                if field in _PATH_FIELDS:
                    value = Path(value) if value else None
                elif field in _LIST_FIELDS:
                    items = [v.strip() for v in value.split(",") if v.strip()]
                    if field == "web_search_groups":
                        items = [int(v) if v.isdigit() else v for v in items]
                    value = items
                elif field in _BOOL_FIELDS:
                    value = value.lower() in {"1", "true", "yes", "on"}
                kwargs[field] = value
        if kwargs.get("root_directory") is None:
            kwargs.pop("root_directory", None)
        return cls(**kwargs)

    @property
    def citekey_format(self) -> CitekeyFormat:
        return CitekeyFormat.from_string(self.citekey_pattern)

    def resolved(self, name: str) -> Path | None:
        """Return the expanded path for a directory/file setting."""
        value = getattr(self, name)
        if value is None and name in DIRECTORY_DEFAULTS:
            value = self.root_directory / DIRECTORY_DEFAULTS[name]
        if value is None:
            return None
        return Path(value).expanduser()

    def require(self, name: str) -> Path:
        """Like resolved() but the path must be set and exist."""
        return require_path(self.resolved(name), name, directory=name != "bib_file")

    def to_json(self) -> str:
        return json.dumps(self.model_dump(), indent=2, default=str)
