"""Normalization of raw rule patterns and navigation URLs.

Brief:
  Both rule patterns and URLs arrive as free-form user strings. This module
  turns them into small immutable structures that the compiler and the
  decision resolver can compare without re-parsing:
    - NormalizedPattern (with a tagged PathSpec) for rule patterns
    - NormalizedUrl for navigation targets

Inputs:
  - Raw pattern strings such as ``*.example.com/path/*`` or ``example.com``
  - Raw URL strings, absolute or bare ``host[/path]``

Outputs:
  - Frozen dataclasses; invalid patterns raise PatternError, invalid URLs
    degrade to an opaque NormalizedUrl that matches nothing.
"""

from __future__ import annotations

import re
import threading
import urllib.parse
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from cachetools import LRUCache, cached

_PROTOCOL_RE = re.compile(r"[a-z][a-z0-9+.\-]*")
_LABEL_RE = re.compile(r"[a-z0-9_\-\u00a1-\uffff]+")
_IPV6_RE = re.compile(r"\[[0-9a-f:.]+\]")

# Schemes of pages that never correspond to a navigable web address.
INTERNAL_SCHEMES = frozenset(
    {
        "about",
        "blob",
        "brave",
        "chrome",
        "chrome-extension",
        "data",
        "devtools",
        "edge",
        "file",
        "javascript",
        "moz-extension",
        "opera",
        "view-source",
        "vivaldi",
    }
)


class PatternError(ValueError):
    """Raised when a rule pattern cannot be turned into a NormalizedPattern."""


# PathSpec variants -----------------------------------------------------------


@dataclass(frozen=True)
class NoPath:
    """No path constraint: the rule covers the whole host."""


@dataclass(frozen=True)
class RootOnly:
    """Only the root path (empty or ``/``)."""


@dataclass(frozen=True)
class AnyNonEmpty:
    """``/*``: any path other than the bare root."""


@dataclass(frozen=True)
class PrefixWildcard:
    """``prefix/*``: the prefix itself or anything below it."""

    prefix: str


@dataclass(frozen=True)
class SegmentMatcher:
    """Brief: One positional path segment of a Segmented path.

    Inputs:
      - kind: "literal", "any" (one segment), "partial" (``foo*bar``) or
        "absorb" (one or more segments).
      - text: Original segment text.
      - parts: For "partial", the literal pieces between ``*`` characters.

    Outputs:
      - SegmentMatcher instance.
    """

    kind: str
    text: str
    parts: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Segmented:
    """Mixed literal/wildcard segments; ``open_tail`` admits extra segments."""

    segments: Tuple[SegmentMatcher, ...]
    open_tail: bool = False


@dataclass(frozen=True)
class Exact:
    """A literal path, compared modulo one trailing slash."""

    path: str


PathSpec = Union[NoPath, RootOnly, AnyNonEmpty, PrefixWildcard, Segmented, Exact]


@dataclass(frozen=True)
class NormalizedPattern:
    """Brief: Structured, comparable form of a rule pattern.

    Inputs:
      - raw: Original pattern text as supplied by the user.
      - protocol: Required protocol, or None for "http or https".
      - subdomain_wildcard: True for ``*.domain`` hosts.
      - base_domain: Host with any ``*.`` prefix, port and trailing dot removed.
      - port: Optional explicit port.
      - path_spec: Tagged PathSpec variant.
      - keeps_query / keeps_fragment: Whether the pattern names a query or
        fragment, so URLs must be matched with theirs attached.

    Outputs:
      - NormalizedPattern instance (hashable, immutable).
    """

    raw: str
    protocol: Optional[str]
    subdomain_wildcard: bool
    base_domain: str
    path_spec: PathSpec
    port: Optional[int] = None
    keeps_query: bool = False
    keeps_fragment: bool = False

    @property
    def labels(self) -> Tuple[str, ...]:
        return tuple(self.base_domain.split("."))


@dataclass(frozen=True)
class NormalizedUrl:
    """Brief: Structured form of a navigation URL.

    Inputs:
      - original: Lowercased, trimmed input string.
      - protocol: Scheme, or None for bare ``host/path`` input.
      - host: Hostname without port or trailing dot.
      - port: Explicit port, or None.
      - path: Path, ``/`` when the URL has none.
      - query / fragment: Raw query and fragment text without separators.
      - opaque: True when parsing failed; opaque URLs match no rule.

    Outputs:
      - NormalizedUrl instance.
    """

    original: str
    protocol: Optional[str]
    host: str
    path: str
    port: Optional[int] = None
    query: str = ""
    fragment: str = ""
    opaque: bool = False

    @property
    def effective_port(self) -> Optional[int]:
        if self.port is not None:
            return self.port
        return {"http": 80, "https": 443}.get(self.protocol or "")

    def match_path(self, with_query: bool = False, with_fragment: bool = False) -> str:
        """Brief: Path value used for matching against one pattern.

        Inputs:
          - with_query: Append ``?query`` when the URL has one.
          - with_fragment: Append ``#fragment`` when the URL has one.

        Outputs:
          - str: Path, optionally extended.
        """

        value = self.path
        if with_query and self.query:
            value = f"{value}?{self.query}"
        if with_fragment and self.fragment:
            value = f"{value}#{self.fragment}"
        return value


def _split_host_port(host: str) -> Tuple[str, Optional[int]]:
    if host.startswith("["):
        end = host.find("]")
        if end < 0:
            raise PatternError(f"unbalanced IPv6 bracket in host {host!r}")
        literal, rest = host[: end + 1], host[end + 1 :]
    elif host.count(":") == 1:
        literal, rest = host.split(":", 1)
        rest = ":" + rest
    else:
        literal, rest = host, ""

    if not rest:
        return literal, None
    if not rest.startswith(":") or not rest[1:].isdigit():
        raise PatternError(f"invalid port in host {host!r}")
    port = int(rest[1:])
    if not 0 < port < 65536:
        raise PatternError(f"port out of range in host {host!r}")
    return literal, port


def _validate_host(host: str) -> str:
    host = host.rstrip(".")
    if not host:
        raise PatternError("empty host")
    if _IPV6_RE.fullmatch(host):
        return host[1:-1]
    if "*" in host:
        raise PatternError(f"wildcard only allowed as leading '*.' in host {host!r}")
    for label in host.split("."):
        if not _LABEL_RE.fullmatch(label):
            raise PatternError(f"invalid host {host!r}")
    return host


def _parse_segment(text: str) -> SegmentMatcher:
    if text == "**":
        return SegmentMatcher(kind="absorb", text=text)
    if text == "*":
        return SegmentMatcher(kind="any", text=text)
    if "*" in text:
        return SegmentMatcher(kind="partial", text=text, parts=tuple(text.split("*")))
    return SegmentMatcher(kind="literal", text=text)


def parse_path_spec(path: str, *, star_spans_segments: bool = False) -> PathSpec:
    """Brief: Classify a pattern path into its PathSpec variant.

    Inputs:
      - path: Pattern path, empty or starting with ``/``.
      - star_spans_segments: When True, a lone ``*`` segment sitting between
        two literal segments absorbs one or more URL segments (``/a/*/d``
        matches ``/a/b/c/d``); when False it matches exactly one segment.

    Outputs:
      - PathSpec variant.

    Example:
      >>> parse_path_spec("/blog/*")
      PrefixWildcard(prefix='/blog')
      >>> parse_path_spec("/")
      RootOnly()
    """

    if path == "":
        return NoPath()
    if path == "/":
        return RootOnly()
    if path == "/*":
        return AnyNonEmpty()
    if "*" not in path:
        return Exact(path=path[:-1] if path.endswith("/") else path)

    if path.endswith("/*") and "*" not in path[:-2]:
        return PrefixWildcard(prefix=path[:-2])

    raw_segments = path[1:].split("/")
    open_tail = False
    if len(raw_segments) > 1 and raw_segments[-1] == "*":
        open_tail = True
        raw_segments = raw_segments[:-1]
    elif raw_segments[-1] == "":
        raw_segments = raw_segments[:-1]

    segments = [_parse_segment(s) for s in raw_segments]
    if star_spans_segments:
        for i in range(1, len(segments) - 1):
            if (
                segments[i].kind == "any"
                and segments[i - 1].kind == "literal"
                and segments[i + 1].kind == "literal"
            ):
                segments[i] = SegmentMatcher(kind="absorb", text="*")
    return Segmented(segments=tuple(segments), open_tail=open_tail)


def normalize_pattern(raw: object, *, star_spans_segments: bool = False) -> NormalizedPattern:
    """Brief: Parse a raw rule pattern into a NormalizedPattern.

    Inputs:
      - raw: Pattern text, e.g. ``https://*.example.com/news/*``.
      - star_spans_segments: See parse_path_spec.

    Outputs:
      - NormalizedPattern.

    Raises:
      - PatternError: When the text is empty, not a string, or malformed.

    Example:
      >>> p = normalize_pattern("*.Example.com/Blog/*")
      >>> (p.subdomain_wildcard, p.base_domain, p.path_spec)
      (True, 'example.com', PrefixWildcard(prefix='/blog'))
    """

    if not isinstance(raw, str):
        raise PatternError(f"pattern must be a string, got {type(raw).__name__}")
    text = raw.strip().lower()
    if not text:
        raise PatternError("empty pattern")
    if any(ch.isspace() for ch in text):
        raise PatternError(f"whitespace inside pattern {raw!r}")

    protocol: Optional[str] = None
    rest = text
    if "://" in text:
        protocol, rest = text.split("://", 1)
        if protocol == "*":
            protocol = None
        elif not _PROTOCOL_RE.fullmatch(protocol):
            raise PatternError(f"invalid protocol in pattern {raw!r}")

    cut = len(rest)
    for sep in "/?#":
        idx = rest.find(sep)
        if 0 <= idx < cut:
            cut = idx
    host, path = rest[:cut], rest[cut:]
    if path and path[0] in "?#":
        path = "/" + path

    subdomain_wildcard = host.startswith("*.")
    if subdomain_wildcard:
        host = host[2:]
    host, port = _split_host_port(host)
    base_domain = _validate_host(host)

    return NormalizedPattern(
        raw=raw,
        protocol=protocol,
        subdomain_wildcard=subdomain_wildcard,
        base_domain=base_domain,
        port=port,
        path_spec=parse_path_spec(path, star_spans_segments=star_spans_segments),
        keeps_query="?" in path,
        keeps_fragment="#" in path,
    )


def _opaque(text: str) -> NormalizedUrl:
    return NormalizedUrl(original=text, protocol=None, host=text, path="", opaque=True)


@cached(cache=LRUCache(maxsize=4096), lock=threading.Lock())
def _normalize_url_text(text: str) -> NormalizedUrl:
    if not text or any(ch.isspace() for ch in text):
        return _opaque(text)

    has_scheme = "://" in text
    try:
        parts = urllib.parse.urlsplit(text if has_scheme else f"http://{text}")
        host = (parts.hostname or "").rstrip(".")
        port = parts.port
    except ValueError:
        return _opaque(text)
    if not host:
        return _opaque(text)

    return NormalizedUrl(
        original=text,
        protocol=parts.scheme if has_scheme else None,
        host=host,
        port=port,
        path=parts.path or "/",
        query=parts.query,
        fragment=parts.fragment,
    )


def normalize_url(raw: object) -> NormalizedUrl:
    """Brief: Parse a navigation URL; never raises.

    Inputs:
      - raw: URL text, absolute or bare ``host[/path]``.

    Outputs:
      - NormalizedUrl. Unparsable input yields an opaque value with the whole
        string as host and an empty path.

    Example:
      >>> u = normalize_url("HTTPS://www.Reddit.com/r/news?sort=new")
      >>> (u.protocol, u.host, u.path, u.query)
      ('https', 'www.reddit.com', '/r/news', 'sort=new')
    """

    if not isinstance(raw, str):
        return _opaque("" if raw is None else str(raw))
    return _normalize_url_text(raw.strip().lower())


def url_scheme(raw: str) -> Optional[str]:
    """Brief: Return the lowercased scheme prefix of ``raw`` if it has one."""

    text = raw.strip().lower()
    idx = text.find(":")
    if idx <= 0:
        return None
    scheme = text[:idx]
    return scheme if _PROTOCOL_RE.fullmatch(scheme) else None


def is_internal_url(raw: str) -> bool:
    """Brief: True for browser-internal, non-addressable pages.

    Inputs:
      - raw: URL text.

    Outputs:
      - bool: True when the scheme is one of INTERNAL_SCHEMES.

    Example:
      >>> is_internal_url("chrome://newtab/")
      True
      >>> is_internal_url("localhost:8080/app")
      False
    """

    return url_scheme(raw) in INTERNAL_SCHEMES
