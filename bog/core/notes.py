from __future__ import annotations
from pathlib import Path
from typing import List, Sequence
from langchain_core.documents import Document
from .config import require_path
from .logging import logger


def _is_note_file(path: Path, extensions: Sequence[str]) -> bool:
    name = path.name
    # editor lock files and backups
    if name.startswith(".#") or name.endswith("~"):
        return False
    return path.is_file() and path.suffix in extensions


class NoteLoader:
    def __init__(self, note_dir: Path | None, extensions: Sequence[str] = (".org",)):
        self.note_dir = note_dir
        self.extensions = tuple(extensions)

    def note_files(self) -> List[Path]:
        note_dir = require_path(self.note_dir, "note_directory")
        return sorted(p for p in note_dir.iterdir() if _is_note_file(p, self.extensions))

    def load(self) -> List[Document]:
        files = self.note_files()
        logger.debug("notes.load count=%d dir=%s", len(files), self.note_dir)
        return [load_note(p) for p in files]


def load_note(path: Path) -> Document:
    text = Path(path).read_text(encoding="utf-8")
    return Document(page_content=text, metadata={"source": str(path)})
