"""Outline (org style) document model.

Only what the citekey index needs is parsed: headings (``* Title`` with any
number of stars), their nesting, their character ranges, and the
``:PROPERTIES:`` drawer directly below a heading.
"""
from __future__ import annotations
import re
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple
from langchain_core.documents import Document

HEADING_PATTERN = re.compile(r"^(\*+)[ \t]+(.*?)[ \t]*$")
TAGS_PATTERN = re.compile(r"(?:^|[ \t]+)(:[\w@#%:]+:)$")
PRIORITY_PATTERN = re.compile(r"^\[#[A-Z0-9]\][ \t]*")
PLANNING_PATTERN = re.compile(r"^[ \t]*(?:SCHEDULED|DEADLINE|CLOSED):")
DRAWER_START_PATTERN = re.compile(r"^[ \t]*:PROPERTIES:[ \t]*$", re.IGNORECASE)
DRAWER_END_PATTERN = re.compile(r"^[ \t]*:END:[ \t]*$", re.IGNORECASE)
PROPERTY_PATTERN = re.compile(r"^[ \t]*:([^\s:]+):(?:[ \t]+(.*?))?[ \t]*$")

TODO_KEYWORDS = ("TODO", "DONE")

Span = Tuple[int, int]


@dataclass(eq=False)
class Heading:
    title: str
    level: int
    start: int
    end: int
    title_span: Span
    parent: Optional["Heading"] = None
    properties: Dict[str, str] = field(default_factory=dict)
    property_spans: List[Span] = field(default_factory=list)
    children: List["Heading"] = field(default_factory=list)

    @property
    def range(self) -> Span:
        return (self.start, self.end)

    def get_property(self, name: str) -> str | None:
        return self.properties.get(name.upper())

    def ancestors(self, include_self: bool = True) -> Iterator["Heading"]:
        node = self if include_self else self.parent
        while node is not None:
            yield node
            node = node.parent

    def __repr__(self) -> str:  # pragma: no cover debugging aid
        return f"Heading(level={self.level}, title={self.title!r}, range={self.range})"


@dataclass
class OutlineDocument:
    source: str
    text: str
    _headings: List[Heading] = field(default_factory=list, repr=False)

    def headings(self) -> List[Heading]:
        return list(self._headings)

    def heading_at(self, position: int) -> Heading | None:
        """Innermost heading whose subtree contains ``position``."""
        found = None
        for h in self._headings:
            if h.start > position:
                break
            if position < h.end or position == h.end == len(self.text):
                found = h
        return found

    def structural_spans(self) -> List[Span]:
        spans: List[Span] = []
        for h in self._headings:
            spans.append(h.title_span)
            spans.extend(h.property_spans)
        return sorted(spans)


def _lines(text: str) -> List[Tuple[int, int, str]]:
    out = []
    offset = 0
    for raw in text.splitlines(keepends=True):
        line = raw.rstrip("\r\n")
        out.append((offset, offset + len(line), line))
        offset += len(raw)
    return out


def _clean_title(raw: str) -> str:
    title = raw
    parts = title.split(None, 1)
    if parts and parts[0] in TODO_KEYWORDS:
        title = parts[1] if len(parts) > 1 else ""
    title = PRIORITY_PATTERN.sub("", title)
    title = TAGS_PATTERN.sub("", title)
    return title.strip()


def _read_drawer(lines: List[Tuple[int, int, str]], i: int, heading: Heading) -> int:
    """Collect the property drawer following a heading line; return next index."""
    if i < len(lines) and PLANNING_PATTERN.match(lines[i][2]):
        i += 1
    if i >= len(lines) or not DRAWER_START_PATTERN.match(lines[i][2]):
        return i
    i += 1
    while i < len(lines):
        start, end, line = lines[i]
        if DRAWER_END_PATTERN.match(line):
            return i + 1
        if HEADING_PATTERN.match(line):
            # unterminated drawer
            return i
        m = PROPERTY_PATTERN.match(line)
        if m:
            heading.properties[m.group(1).upper()] = (m.group(2) or "").strip()
            heading.property_spans.append((start, end))
        i += 1
    return i


def parse_outline(document: Document | str, source: str = "") -> OutlineDocument:
    if isinstance(document, Document):
        text = document.page_content
        source = source or str(document.metadata.get("source", ""))
    else:
        text = document
    lines = _lines(text)
    headings: List[Heading] = []
    stack: List[Heading] = []
    i = 0
    while i < len(lines):
        start, end, line = lines[i]
        m = HEADING_PATTERN.match(line)
        if not m:
            i += 1
            continue
        level = len(m.group(1))
        while stack and stack[-1].level >= level:
            stack.pop().end = start
        parent = stack[-1] if stack else None
        heading = Heading(
            title=_clean_title(m.group(2)),
            level=level,
            start=start,
            end=len(text),
            title_span=(start, end),
            parent=parent,
        )
        if parent is not None:
            parent.children.append(heading)
        headings.append(heading)
        stack.append(heading)
        i = _read_drawer(lines, i + 1, heading)
    return OutlineDocument(source=source, text=text, _headings=headings)
