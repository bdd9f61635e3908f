from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Tuple

from .normalize import NormalizedUrl


@dataclass(frozen=True)
class Keyword:
    """Brief: A keyword rule parsed once at ingestion.

    Inputs:
      - raw: Keyword text as the user wrote it (trimmed).
      - text: Lowercased text used for substring tests.

    Outputs:
      - Keyword instance.
    """

    raw: str
    text: str

    def matches(self, url: NormalizedUrl) -> bool:
        return self.text in url.original or self.text in url.host


def _entry_text(entry: object) -> Optional[str]:
    if isinstance(entry, Keyword):
        return entry.raw
    if isinstance(entry, str):
        return entry
    if isinstance(entry, Mapping):
        value = entry.get("pattern")
        if isinstance(value, str):
            return value
    return None


def parse_keywords(entries: Optional[Iterable[object]]) -> Tuple[Keyword, ...]:
    """Brief: Normalize raw keyword entries into Keyword values.

    Inputs:
      - entries: Iterable of strings, ``{"pattern": str}`` mappings or
        Keyword instances. None is treated as empty.

    Outputs:
      - tuple[Keyword, ...]: In input order; entries that are not strings,
        lack a string ``pattern`` or are blank are dropped silently.

    Example:
      >>> [k.text for k in parse_keywords(["Gaming", {"pattern": "casino"}, "", None, 7])]
      ['gaming', 'casino']
    """

    if not entries or isinstance(entries, (str, bytes)):
        return ()
    out = []
    for entry in entries:
        text = _entry_text(entry)
        if text is None:
            continue
        text = text.strip()
        if not text:
            continue
        out.append(Keyword(raw=text, text=text.lower()))
    return tuple(out)


def first_keyword_match(
    keywords: Iterable[Keyword], url: NormalizedUrl
) -> Optional[Keyword]:
    """Brief: Return the first keyword contained in the URL or its hostname."""

    for keyword in keywords:
        if keyword.matches(url):
            return keyword
    return None
