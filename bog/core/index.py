"""Citekey index over a collection of notes.

Two views are computed from the notes: every citekey mentioned anywhere,
and the citekeys bound to a heading (heading title is the citekey, or the
configured property of the heading holds it). Orphans are citekeys used in
body text without any heading binding in the whole collection.
"""
from __future__ import annotations
import re
import threading
from bisect import bisect_right
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple, Union
from langchain_core.documents import Document

from .citekey import DEFAULT_CITEKEY_PROPERTY, Citekey, CitekeyFormat, all_citekeys, citekey_at, citekey_spans, is_citekey, validate_citekey
from .errors import CitekeyNotFoundError
from .logging import logger, timed
from .outline import Heading, OutlineDocument, Span, parse_outline

NoteLike = Union[Document, OutlineDocument]


def _as_outline(doc: NoteLike) -> OutlineDocument:
    if isinstance(doc, OutlineDocument):
        return doc
    return parse_outline(doc)


def _text(doc: NoteLike) -> str:
    return doc.text if isinstance(doc, OutlineDocument) else doc.page_content


def all_citekeys_in_documents(docs: Iterable[NoteLike], fmt: CitekeyFormat | None = None) -> Set[Citekey]:
    keys: Set[Citekey] = set()
    for d in docs:
        keys.update(all_citekeys(_text(d), fmt))
    return keys


def heading_citekey(heading: Heading, fmt: CitekeyFormat | None = None,
                    property_name: str | None = DEFAULT_CITEKEY_PROPERTY) -> Citekey | None:
    if is_citekey(heading.title, fmt):
        return Citekey(heading.title)
    if property_name:
        value = heading.get_property(property_name)
        if value and is_citekey(value, fmt):
            return Citekey(value)
    return None


def heading_citekeys_in_document(doc: NoteLike, fmt: CitekeyFormat | None = None,
                                 property_name: str | None = DEFAULT_CITEKEY_PROPERTY) -> Set[Citekey]:
    keys = (heading_citekey(h, fmt, property_name) for h in _as_outline(doc).headings())
    return {k for k in keys if k is not None}


def heading_citekeys_in_all(docs: Iterable[NoteLike], fmt: CitekeyFormat | None = None,
                            property_name: str | None = DEFAULT_CITEKEY_PROPERTY) -> Set[Citekey]:
    keys: Set[Citekey] = set()
    for d in docs:
        keys |= heading_citekeys_in_document(d, fmt, property_name)
    return keys


def citekey_from_ancestry(doc: NoteLike, position: int, fmt: CitekeyFormat | None = None,
                          property_name: str | None = DEFAULT_CITEKEY_PROPERTY) -> Citekey | None:
    """Citekey of the closest heading, starting at the one containing ``position``."""
    heading = _as_outline(doc).heading_at(position)
    if heading is None:
        return None
    for h in heading.ancestors():
        key = heading_citekey(h, fmt, property_name)
        if key is not None:
            return key
    return None


def citekey_from_surroundings(doc: NoteLike, position: int, fmt: CitekeyFormat | None = None,
                              property_name: str | None = DEFAULT_CITEKEY_PROPERTY) -> Citekey | None:
    """Citekey at ``position``, falling back to the enclosing headings."""
    outline = _as_outline(doc)
    return citekey_at(outline.text, position, fmt) or citekey_from_ancestry(outline, position, fmt, property_name)


def _inside(pos: int, spans: Sequence[Span], starts: Sequence[int]) -> bool:
    i = bisect_right(starts, pos) - 1
    return i >= 0 and pos < spans[i][1]


def non_heading_citekey_spans(doc: NoteLike, fmt: CitekeyFormat | None = None) -> List[Tuple[int, int, Citekey]]:
    outline = _as_outline(doc)
    spans = outline.structural_spans()
    starts = [s for s, _ in spans]
    return [sp for sp in citekey_spans(outline.text, fmt) if not _inside(sp[0], spans, starts)]


def non_heading_citekeys_in_document(doc: NoteLike, fmt: CitekeyFormat | None = None) -> Set[Citekey]:
    return {key for _, _, key in non_heading_citekey_spans(doc, fmt)}


def next_non_heading_citekey(doc: NoteLike, position: int, fmt: CitekeyFormat | None = None,
                             backward: bool = False) -> Optional[Tuple[int, int, Citekey]]:
    spans = non_heading_citekey_spans(doc, fmt)
    if backward:
        before = [sp for sp in spans if sp[1] <= position]
        return before[-1] if before else None
    return next((sp for sp in spans if sp[0] > position), None)


def orphan_report(docs: Sequence[NoteLike], fmt: CitekeyFormat | None = None,
                  property_name: str | None = DEFAULT_CITEKEY_PROPERTY) -> Dict[str, List[Citekey]]:
    """Body-text citekeys with no heading anywhere in ``docs``, grouped by source."""
    outlines = [_as_outline(d) for d in docs]
    bound = heading_citekeys_in_all(outlines, fmt, property_name)
    report: Dict[str, List[Citekey]] = {}
    for o in outlines:
        orphans = sorted(non_heading_citekeys_in_document(o, fmt) - bound)
        if orphans:
            report[o.source] = orphans
    return report


def duplicate_heading_citekeys(docs: Sequence[NoteLike], fmt: CitekeyFormat | None = None,
                               property_name: str | None = DEFAULT_CITEKEY_PROPERTY) -> Dict[Citekey, List[Tuple[str, str]]]:
    seen: Dict[Citekey, List[Tuple[str, str]]] = defaultdict(list)
    for o in (_as_outline(d) for d in docs):
        for h in o.headings():
            key = heading_citekey(h, fmt, property_name)
            if key is not None:
                seen[key].append((o.source, h.title))
    return {k: v for k, v in sorted(seen.items()) if len(v) > 1}


def find_citekey_headings(citekey: str, docs: Sequence[NoteLike], fmt: CitekeyFormat | None = None,
                          property_name: str | None = DEFAULT_CITEKEY_PROPERTY) -> List[Tuple[OutlineDocument, Heading]]:
    key = validate_citekey(citekey, fmt)
    hits = []
    for o in (_as_outline(d) for d in docs):
        for h in o.headings():
            if heading_citekey(h, fmt, property_name) == key:
                hits.append((o, h))
    if not hits:
        raise CitekeyNotFoundError(key, "heading")
    return hits


@dataclass
class NoteMatch:
    source: str
    line_number: int
    line: str


def search_notes(regex: str | re.Pattern, docs: Iterable[NoteLike]) -> List[NoteMatch]:
    pattern = re.compile(regex) if isinstance(regex, str) else regex
    matches = []
    for d in docs:
        source = d.source if isinstance(d, OutlineDocument) else str(d.metadata.get("source", ""))
        for n, line in enumerate(_text(d).splitlines(), start=1):
            if pattern.search(line):
                matches.append(NoteMatch(source=source, line_number=n, line=line))
    return matches


def search_notes_for_citekey(citekey: str, docs: Iterable[NoteLike], fmt: CitekeyFormat | None = None) -> List[NoteMatch]:
    key = validate_citekey(citekey, fmt)
    return search_notes(re.compile(rf"(?<![\w-]){re.escape(key)}(?![\w-])"), docs)


class CitekeyIndex:
    """Citekey sets over all notes, optionally kept between calls.

    With ``use_cache`` the sets are computed on the first query and kept
    until ``clear()``/``refresh()``; edits to the notes are not noticed.
    Without it every query rescans all notes.
    """

    def __init__(self, load: Callable[[], Sequence[Document]], fmt: CitekeyFormat | None = None,
                 property_name: str | None = DEFAULT_CITEKEY_PROPERTY, use_cache: bool = False):
        self._load = load
        self.fmt = fmt
        self.property_name = property_name
        self.use_cache = use_cache
        self._all: Set[Citekey] | None = None
        self._headings: Set[Citekey] | None = None
        self._lock = threading.Lock()

    def documents(self) -> List[OutlineDocument]:
        return [parse_outline(d) for d in self._load()]

    @property
    def is_populated(self) -> bool:
        return self._all is not None or self._headings is not None

    @timed("index.all_citekeys")
    def all_citekeys(self) -> Set[Citekey]:
        if not self.use_cache:
            return all_citekeys_in_documents(self._load(), self.fmt)
        with self._lock:
            if self._all is None:
                self._all = all_citekeys_in_documents(self._load(), self.fmt)
                logger.info("index.all_citekeys computed count=%d", len(self._all))
            return set(self._all)

    @timed("index.heading_citekeys")
    def heading_citekeys(self) -> Set[Citekey]:
        if not self.use_cache:
            return heading_citekeys_in_all(self.documents(), self.fmt, self.property_name)
        with self._lock:
            if self._headings is None:
                self._headings = heading_citekeys_in_all(self.documents(), self.fmt, self.property_name)
                logger.info("index.heading_citekeys computed count=%d", len(self._headings))
            return set(self._headings)

    def clear(self) -> None:
        with self._lock:
            self._all = None
            self._headings = None
        logger.debug("index.clear")

    def refresh(self) -> None:
        self.clear()
        if self.use_cache:
            self.all_citekeys()
            self.heading_citekeys()
