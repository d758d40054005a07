from __future__ import annotations
from pathlib import Path
from typing import Sequence


class BogError(Exception):
    """Base class for errors reported back to the user for a single action."""


class CitekeyNotFoundError(BogError, LookupError):
    def __init__(self, citekey: str, what: str = "file"):
        self.citekey = citekey
        self.what = what
        super().__init__(f"No {what} found for {citekey}")


class AmbiguousSelectionError(BogError):
    def __init__(self, candidates: Sequence[Path | str], what: str = "file"):
        self.candidates = list(candidates)
        self.what = what
        super().__init__(f"{len(self.candidates)} {what} candidates; a choice is required")


class InvalidCitekeyError(BogError, ValueError):
    def __init__(self, text: str):
        self.text = text
        super().__init__(f"{text!r} is not a valid citekey")


class RenameConflictError(BogError, FileExistsError):
    def __init__(self, target: Path):
        self.target = Path(target)
        super().__init__(f"{self.target} already exists")


class MissingConfigurationError(BogError):
    def __init__(self, setting: str, detail: str | None = None):
        self.setting = setting
        msg = f"Setting '{setting}' is not configured"
        if detail:
            msg = f"{msg} ({detail})"
        super().__init__(msg)
