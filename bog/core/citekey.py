"""Citekey format and matcher.

A citekey is a short token naming one study, e.g. ``smith2020lexicon``
(author, year, first title word). What counts as a citekey is defined by a
user configurable regular expression whose capture groups name its parts.

All matching is case sensitive. Extraction relative to a position treats
hyphen and underscore as word characters; full text scans leave word
boundaries to the regex engine.
"""
from __future__ import annotations
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .errors import InvalidCitekeyError

DEFAULT_CITEKEY_PATTERN = r"\b(?P<author>[a-z][a-z-]*)(?P<year>[0-9]{4})(?P<word>[a-z0-9]+)\b"
# Heading property that binds a heading to a citekey
DEFAULT_CITEKEY_PROPERTY = "CUSTOM_ID"

_INLINE_FLAGS = re.compile(r"^\(\?[aLmsux]+\)")

_EXTRA_WORD_CHARS = "-_"


class Citekey(str):
    """A string that is known to match a CitekeyFormat.

    Instances come out of the matcher functions below (or ``validate``);
    do not construct them from unchecked text.
    """
    __slots__ = ()

    @classmethod
    def validate(cls, text: str, fmt: "CitekeyFormat | None" = None) -> "Citekey":
        match_citekey(text, fmt)
        return cls(text)


@dataclass(frozen=True)
class CitekeyFormat:
    pattern: re.Pattern
    # group_names[i] is the name of group i + 1 (None for unnamed groups)
    group_names: Tuple[Optional[str], ...]

    def __post_init__(self):
        if self.pattern.flags & re.IGNORECASE:
            raise ValueError("citekey pattern must be case sensitive")
        if self.pattern.groups == 0:
            raise ValueError("citekey pattern needs at least one capture group")
        # keys are whole tokens, never pieces of a longer word
        body = _INLINE_FLAGS.sub("", self.pattern.pattern)
        if self.pattern.flags & re.VERBOSE:
            body = body.strip()
        if not (body.startswith(r"\b") and body.endswith(r"\b")):
            raise ValueError(r"citekey pattern must start and end with a \b boundary")

    @classmethod
    def from_string(cls, pattern: str) -> "CitekeyFormat":
        try:
            compiled = re.compile(pattern)
        except re.error as e:
            raise ValueError(f"invalid citekey pattern: {e}") from e
        names: List[Optional[str]] = [None] * compiled.groups
        for name, idx in compiled.groupindex.items():
            names[idx - 1] = name
        return cls(pattern=compiled, group_names=tuple(names))

    def group_index(self, group: int | str) -> int:
        """Resolve a 1-based group number or a group name to its number."""
        if isinstance(group, str) and not group.isdigit():
            idx = self.pattern.groupindex.get(group)
            if idx is None:
                raise ValueError(f"citekey pattern has no group named {group!r}")
            return idx
        idx = int(group)
        if not 1 <= idx <= self.pattern.groups:
            raise ValueError(f"citekey pattern has no group {idx}")
        return idx


DEFAULT_FORMAT = CitekeyFormat.from_string(DEFAULT_CITEKEY_PATTERN)


def _fmt(fmt: CitekeyFormat | None) -> CitekeyFormat:
    return fmt if fmt is not None else DEFAULT_FORMAT


def match_citekey(text: str, fmt: CitekeyFormat | None = None) -> re.Match:
    """Full match of ``text`` against the format; raises InvalidCitekeyError."""
    m = _fmt(fmt).pattern.fullmatch(text) if text else None
    if m is None:
        raise InvalidCitekeyError(text)
    return m


def is_citekey(text: str, fmt: CitekeyFormat | None = None) -> bool:
    if not text:
        return False
    return _fmt(fmt).pattern.fullmatch(text) is not None


def validate_citekey(text: str, fmt: CitekeyFormat | None = None) -> Citekey:
    return Citekey.validate(text, fmt)


def _is_word_char(ch: str) -> bool:
    return ch.isalnum() or ch in _EXTRA_WORD_CHARS


def citekey_at(text: str, position: int, fmt: CitekeyFormat | None = None) -> Citekey | None:
    """Return the citekey in the word around ``position`` or None.

    ``position`` is a character offset; an offset right after the last
    character of a token still counts as being on that token.
    """
    if position < 0 or position > len(text):
        return None
    start = end = position
    while start > 0 and _is_word_char(text[start - 1]):
        start -= 1
    while end < len(text) and _is_word_char(text[end]):
        end += 1
    if start == end:
        return None
    m = _fmt(fmt).pattern.match(text[start:end])
    if m is None or not m.group(0):
        return None
    return Citekey(m.group(0))


def citekey_spans(text: str, fmt: CitekeyFormat | None = None) -> List[Tuple[int, int, Citekey]]:
    return [
        (m.start(), m.end(), Citekey(m.group(0)))
        for m in _fmt(fmt).pattern.finditer(text)
        if m.group(0)
    ]


def all_citekeys(text: str, fmt: CitekeyFormat | None = None) -> List[Citekey]:
    """Every distinct citekey in ``text``, in first-seen order."""
    return list(dict.fromkeys(key for _, _, key in citekey_spans(text, fmt)))


def citekey_prefix(name: str, fmt: CitekeyFormat | None = None, separators: str = "") -> Citekey | None:
    """Leading citekey of a file name such as ``smith2020lexicon-supp.pdf``.

    The name is tried whole first, then cut at each separator or dot from
    the right, so separators that the regex engine treats as word
    characters (underscore) still end the key.
    """
    pattern = _fmt(fmt).pattern
    cuts = [len(name)] + sorted(
        (i for i, ch in enumerate(name) if ch == "." or ch in separators),
        reverse=True,
    )
    for cut in cuts:
        m = pattern.match(name[:cut])
        if m and m.group(0):
            return Citekey(m.group(0))
    return None
