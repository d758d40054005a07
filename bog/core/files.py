"""Citekey associated files.

The file directory is flat: a study's files are named after its citekey,
either exactly (``smith2020lexicon.pdf``) or with a separator and a suffix
(``smith2020lexicon-supp.pdf``). New files land in a staging directory and
are renamed into the file directory once their citekey is known.
"""
from __future__ import annotations
import shutil
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Set, Tuple

from .citekey import Citekey, CitekeyFormat, citekey_prefix, validate_citekey
from .config import require_path
from .errors import AmbiguousSelectionError, CitekeyNotFoundError, RenameConflictError
from .logging import logger

Chooser = Callable[[Sequence[Path]], Optional[Path]]
# confirm(proposed_name, existing_target) -> name to use, or None to give up
ConfirmName = Callable[[str, Path], Optional[str]]


def _belongs_to(name: str, key: str, separators: str) -> bool:
    if name == key or name.startswith(key + "."):
        return True
    return len(name) > len(key) and name.startswith(key) and name[len(key)] in separators


def files_for_citekey(citekey: str, directory: Path, separators: str = "-_",
                      fmt: CitekeyFormat | None = None) -> List[Path]:
    """All files in ``directory`` named after ``citekey``, sorted by name."""
    key = validate_citekey(citekey, fmt)
    directory = require_path(directory, "file_directory")
    hits = sorted(p for p in directory.iterdir() if p.is_file() and _belongs_to(p.name, key, separators))
    if not hits:
        raise CitekeyNotFoundError(key, "file")
    logger.debug("files.lookup citekey=%s hits=%d", key, len(hits))
    return hits


def choose_file(candidates: Sequence[Path], chooser: Chooser | None = None) -> Path:
    if len(candidates) == 1:
        return candidates[0]
    if chooser is None:
        raise AmbiguousSelectionError(candidates)
    choice = chooser(candidates)
    if choice is None:
        raise AmbiguousSelectionError(candidates)
    return choice


def file_for_citekey(citekey: str, directory: Path, separators: str = "-_",
                     chooser: Chooser | None = None, fmt: CitekeyFormat | None = None) -> Path:
    return choose_file(files_for_citekey(citekey, directory, separators, fmt), chooser)


def _move(source: Path, target: Path) -> Path:
    shutil.move(str(source), str(target))
    logger.info("rename.done %s -> %s", source, target)
    return target


def rename_staged_file(staged: Path, citekey: str, directory: Path,
                       secondary_suffix: str = "-supplement",
                       confirm: ConfirmName | None = None,
                       fmt: CitekeyFormat | None = None) -> Path:
    """Move ``staged`` to ``directory/<citekey>.<ext>``.

    If that name is taken, ``<citekey><secondary_suffix>.<ext>`` is proposed.
    With ``confirm`` the caller may accept or edit the proposal; this repeats
    until a free name is given or ``confirm`` returns None. Without it the
    proposal is tried once.

    The existence check and the move are separate steps, so two processes
    renaming to the same name at once can clobber each other.
    """
    key = validate_citekey(citekey, fmt)
    staged = Path(staged)
    if not staged.is_file():
        raise FileNotFoundError(f"Staged file {staged} not found")
    directory = require_path(directory, "file_directory")
    ext = staged.suffix
    target = directory / f"{key}{ext}"
    if not target.exists():
        return _move(staged, target)

    proposal = f"{key}{secondary_suffix}{ext}"
    logger.info("rename.conflict target=%s proposal=%s", target, proposal)
    if confirm is None:
        fallback = directory / proposal
        if fallback.exists():
            raise RenameConflictError(fallback)
        return _move(staged, fallback)

    conflict = target
    while True:
        name = confirm(proposal, conflict)
        if not name:
            raise RenameConflictError(conflict)
        fallback = directory / Path(name).name
        if not fallback.exists():
            return _move(staged, fallback)
        logger.info("rename.conflict target=%s", fallback)
        conflict, proposal = fallback, fallback.name


def staged_files(stage_dir: Path) -> List[Path]:
    stage_dir = require_path(stage_dir, "stage_directory")
    return sorted(p for p in stage_dir.iterdir() if p.is_file() and not p.name.startswith("."))


def rename_staged_files(stage_dir: Path, directory: Path,
                        citekey_for: Callable[[Path], Optional[str]],
                        secondary_suffix: str = "-supplement",
                        confirm: ConfirmName | None = None,
                        fmt: CitekeyFormat | None = None) -> List[Tuple[Path, Path]]:
    """Rename every staged file; ``citekey_for`` returning None skips a file."""
    renamed = []
    for staged in staged_files(stage_dir):
        citekey = citekey_for(staged)
        if not citekey:
            logger.info("rename.skip %s", staged)
            continue
        renamed.append((staged, rename_staged_file(staged, citekey, directory, secondary_suffix, confirm, fmt)))
    return renamed


def all_file_citekeys(directory: Path, fmt: CitekeyFormat | None = None, separators: str = "-_") -> Set[Citekey]:
    directory = require_path(directory, "file_directory")
    keys = (citekey_prefix(p.name, fmt, separators) for p in directory.iterdir() if p.is_file())
    return {k for k in keys if k is not None}
