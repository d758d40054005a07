from __future__ import annotations
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple
from .config import BogConfig
from .citekey import Citekey
from .notes import NoteLoader, load_note
from .index import (
    CitekeyIndex,
    NoteMatch,
    citekey_from_surroundings,
    duplicate_heading_citekeys,
    find_citekey_headings,
    orphan_report,
    search_notes,
    search_notes_for_citekey,
)
from .outline import Heading, OutlineDocument, parse_outline
from .files import (
    Chooser,
    ConfirmName,
    all_file_citekeys,
    file_for_citekey,
    files_for_citekey,
    rename_staged_file,
    rename_staged_files,
)
from .bib import BibLocation, all_bib_citekeys, find_citekey_bib, rename_staged_bibs, write_combined_bib
from .query import search_url
from .logging import logger


class BogWorkspace:
    """Citekey operations bound to one configuration (directories, format, cache)."""

    def __init__(self, config: BogConfig | None = None):
        self.config = config or BogConfig.from_env()
        self.fmt = self.config.citekey_format
        self.loader = NoteLoader(self.config.resolved("note_directory"), self.config.note_extensions)
        self.index = CitekeyIndex(
            self.loader.load,
            self.fmt,
            self.config.citekey_property,
            use_cache=self.config.use_cache,
        )

    # notes

    def notes(self) -> List[OutlineDocument]:
        return self.index.documents()

    def all_citekeys(self) -> Set[Citekey]:
        return self.index.all_citekeys()

    def heading_citekeys(self) -> Set[Citekey]:
        return self.index.heading_citekeys()

    def clear_cache(self) -> None:
        self.index.clear()

    def citekey_at_point(self, path: Path, position: int) -> Citekey | None:
        doc = parse_outline(load_note(path))
        return citekey_from_surroundings(doc, position, self.fmt, self.config.citekey_property)

    def heading_for(self, citekey: str) -> List[Tuple[OutlineDocument, Heading]]:
        return find_citekey_headings(citekey, self.notes(), self.fmt, self.config.citekey_property)

    def orphans(self) -> Dict[str, List[Citekey]]:
        return orphan_report(self.notes(), self.fmt, self.config.citekey_property)

    def duplicates(self) -> Dict[Citekey, List[Tuple[str, str]]]:
        return duplicate_heading_citekeys(self.notes(), self.fmt, self.config.citekey_property)

    def search_notes(self, regex: str) -> List[NoteMatch]:
        return search_notes(regex, self.notes())

    def search_notes_for_citekey(self, citekey: str) -> List[NoteMatch]:
        return search_notes_for_citekey(citekey, self.notes(), self.fmt)

    # files

    def files_for(self, citekey: str) -> List[Path]:
        return files_for_citekey(citekey, self.config.resolved("file_directory"),
                                 self.config.file_name_separators, self.fmt)

    def file_for(self, citekey: str, chooser: Chooser | None = None) -> Path:
        return file_for_citekey(citekey, self.config.resolved("file_directory"),
                                self.config.file_name_separators, chooser, self.fmt)

    def file_citekeys(self) -> Set[Citekey]:
        return all_file_citekeys(self.config.resolved("file_directory"), self.fmt,
                                 self.config.file_name_separators)

    def rename_staged_file(self, staged: Path, citekey: str, confirm: ConfirmName | None = None) -> Path:
        return rename_staged_file(staged, citekey, self.config.resolved("file_directory"),
                                  self.config.file_secondary_suffix, confirm, self.fmt)

    def rename_staged(self, citekey_for: Callable[[Path], Optional[str]],
                      confirm: ConfirmName | None = None) -> List[Tuple[Path, Path]]:
        renamed = rename_staged_files(
            self.config.resolved("stage_directory"),
            self.config.resolved("file_directory"),
            citekey_for,
            self.config.file_secondary_suffix,
            confirm,
            self.fmt,
        )
        logger.info("workspace.rename_staged count=%d", len(renamed))
        return renamed

    # bib

    def bib_for(self, citekey: str) -> BibLocation:
        return find_citekey_bib(citekey, self.config.resolved("bib_directory"),
                                self.config.resolved("bib_file"), self.fmt)

    def bib_citekeys(self) -> Set[Citekey]:
        return all_bib_citekeys(self.config.resolved("bib_directory"), self.config.resolved("bib_file"), self.fmt)

    def rename_staged_bibs(self) -> List[Tuple[Path, Path]]:
        return rename_staged_bibs(self.config.resolved("stage_directory"),
                                  self.config.resolved("bib_directory"), self.fmt)

    def combined_bib(self, output: Path, citekeys: Sequence[str] | None = None) -> List[Citekey]:
        """Write the bib entries of ``citekeys`` (default: every citekey in the notes)."""
        keys = self.all_citekeys() if citekeys is None else citekeys
        return write_combined_bib(output, keys, self.config.resolved("bib_directory"), self.fmt)

    # web

    def web_search_url(self, citekey: str) -> str:
        return search_url(citekey, self.config.web_search_url, self.config.web_search_groups,
                          self.fmt, self.config.web_search_delimiter)
