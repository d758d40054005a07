from __future__ import annotations
from typing import Sequence, Union
from .citekey import CitekeyFormat, DEFAULT_FORMAT, match_citekey

GroupRef = Union[int, str]

PLACEHOLDER = "%s"


def search_query_string(citekey: str, groups: Sequence[GroupRef] = (1, 2, 3), delimiter: str = "+",
                        fmt: CitekeyFormat | None = None) -> str:
    """Join the selected citekey parts, e.g. ``smith2020lexicon`` -> ``smith+2020+lexicon``.

    Groups are 1-based numbers or group names. Groups that did not take
    part in the match are left out.
    """
    fmt = fmt or DEFAULT_FORMAT
    m = match_citekey(citekey, fmt)
    parts = [m.group(fmt.group_index(g)) for g in groups]
    return delimiter.join(p for p in parts if p)


def search_url(citekey: str, url_template: str, groups: Sequence[GroupRef] = (1, 2, 3),
               fmt: CitekeyFormat | None = None, delimiter: str = "+") -> str:
    if url_template.count(PLACEHOLDER) != 1:
        raise ValueError(f"URL template needs exactly one {PLACEHOLDER}: {url_template!r}")
    return url_template.replace(PLACEHOLDER, search_query_string(citekey, groups, delimiter, fmt))
