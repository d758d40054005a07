"""Bibliography entries keyed by citekey.

Entries live either in one file per study (``<bib_directory>/<citekey>.bib``)
or together in a single bib file. Only entry keys are read; entries are
never parsed or validated.
"""
from __future__ import annotations
import re
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Set, Tuple

from .citekey import Citekey, CitekeyFormat, is_citekey, validate_citekey
from .config import require_path
from .errors import CitekeyNotFoundError, InvalidCitekeyError, RenameConflictError
from .logging import logger

ENTRY_PATTERN = re.compile(r"^[ \t]*@[ \t]*(\w+)[ \t]*[{(][ \t]*([^,\s{}()]+)[ \t]*,", re.MULTILINE)
NON_ENTRY_TYPES = {"comment", "string", "preamble"}


@dataclass
class BibLocation:
    path: Path
    line_number: int = 1


def _entry_keys(text: str) -> Iterable[Tuple[int, str]]:
    for m in ENTRY_PATTERN.finditer(text):
        if m.group(1).lower() in NON_ENTRY_TYPES:
            continue
        yield m.start(), m.group(2)


def bib_entry_key(text: str) -> Optional[str]:
    """Key of the first entry in ``text``."""
    return next((key for _, key in _entry_keys(text)), None)


def find_citekey_bib(citekey: str, bib_directory: Path | None = None, bib_file: Path | None = None,
                     fmt: CitekeyFormat | None = None) -> BibLocation:
    key = validate_citekey(citekey, fmt)
    if bib_file is not None:
        bib_file = require_path(bib_file, "bib_file", directory=False)
        text = bib_file.read_text(encoding="utf-8")
        for offset, entry_key in _entry_keys(text):
            if entry_key == key:
                return BibLocation(bib_file, text.count("\n", 0, offset) + 1)
        raise CitekeyNotFoundError(key, "bib entry")
    path = require_path(bib_directory, "bib_directory") / f"{key}.bib"
    if not path.is_file():
        raise CitekeyNotFoundError(key, "bib file")
    return BibLocation(path)


def rename_staged_bibs(stage_dir: Path, bib_directory: Path,
                       fmt: CitekeyFormat | None = None) -> List[Tuple[Path, Path]]:
    """Rename staged ``.bib`` files to ``<entry key>.bib`` in the bib directory."""
    stage_dir = require_path(stage_dir, "stage_directory")
    bib_directory = require_path(bib_directory, "bib_directory")
    renamed = []
    for staged in sorted(stage_dir.glob("*.bib")):
        key = bib_entry_key(staged.read_text(encoding="utf-8"))
        if key is None or not is_citekey(key, fmt):
            raise InvalidCitekeyError(key or staged.name)
        target = bib_directory / f"{key}.bib"
        if target.exists():
            raise RenameConflictError(target)
        shutil.move(str(staged), str(target))
        logger.info("bib.rename %s -> %s", staged, target)
        renamed.append((staged, target))
    return renamed


def combined_bib(citekeys: Iterable[str], bib_directory: Path,
                 fmt: CitekeyFormat | None = None) -> Tuple[str, List[Citekey]]:
    """Concatenate the bib files of ``citekeys``; also return keys with no file."""
    bib_directory = require_path(bib_directory, "bib_directory")
    entries = []
    missing = []
    for key in sorted({validate_citekey(k, fmt) for k in citekeys}):
        path = bib_directory / f"{key}.bib"
        if not path.is_file():
            missing.append(key)
            continue
        entries.append(path.read_text(encoding="utf-8").strip())
    if missing:
        logger.warning("bib.combined missing=%s", ",".join(missing))
    text = "\n\n".join(entries)
    return (text + "\n" if text else ""), missing


def write_combined_bib(path: Path, citekeys: Iterable[str], bib_directory: Path,
                       fmt: CitekeyFormat | None = None) -> List[Citekey]:
    text, missing = combined_bib(citekeys, bib_directory, fmt)
    Path(path).write_text(text, encoding="utf-8")
    return missing


def all_bib_citekeys(bib_directory: Path | None = None, bib_file: Path | None = None,
                     fmt: CitekeyFormat | None = None) -> Set[Citekey]:
    if bib_file is not None:
        text = require_path(bib_file, "bib_file", directory=False).read_text(encoding="utf-8")
        return {Citekey(k) for _, k in _entry_keys(text) if is_citekey(k, fmt)}
    return {Citekey(p.stem) for p in require_path(bib_directory, "bib_directory").glob("*.bib") if is_citekey(p.stem, fmt)}
