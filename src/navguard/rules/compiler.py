"""Compile NormalizedPattern values into immutable URL matchers.

Brief:
  A Matcher is the conjunction of three predicates derived once from a
  NormalizedPattern: protocol, host and path. Evaluation reads only the
  matcher's own frozen fields and the NormalizedUrl, so a single Matcher can
  be shared across threads.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .normalize import (
    AnyNonEmpty,
    Exact,
    NoPath,
    NormalizedPattern,
    NormalizedUrl,
    PathSpec,
    PrefixWildcard,
    RootOnly,
    SegmentMatcher,
    Segmented,
)

WEB_PROTOCOLS = frozenset({"http", "https"})


def match_partial_segment(parts: Sequence[str], text: str) -> bool:
    """Brief: Match one path segment against ``foo*bar`` style pieces.

    Inputs:
      - parts: Literal pieces from splitting the segment on ``*`` (len >= 2).
      - text: URL path segment.

    Outputs:
      - bool: True when text starts with parts[0], ends with parts[-1] and
        contains the inner pieces in order between them.

    Notes:
      - Inner pieces are located with a leftmost scan, which is optimal for
        ``*``-only globs and keeps matching linear in len(text).

    Example:
      >>> match_partial_segment(("pro", "-large"), "pro-x-large")
      True
      >>> match_partial_segment(("ab", "cd"), "abc")
      False
    """

    first, last = parts[0], parts[-1]
    if len(text) < len(first) + len(last):
        return False
    if not text.startswith(first) or not text.endswith(last):
        return False
    pos = len(first)
    end = len(text) - len(last)
    for piece in parts[1:-1]:
        if not piece:
            continue
        idx = text.find(piece, pos, end)
        if idx < 0:
            return False
        pos = idx + len(piece)
    return True


def _segment_matches(segment: SegmentMatcher, text: str) -> bool:
    if segment.kind == "literal":
        return segment.text == text
    if segment.kind == "any":
        return True
    return match_partial_segment(segment.parts, text)


def split_path(path: str) -> Tuple[str, ...]:
    """Brief: Split a URL path into segments, ignoring one trailing slash.

    Example:
      >>> split_path("/a/b/")
      ('a', 'b')
      >>> split_path("/")
      ()
    """

    if path.startswith("/"):
        path = path[1:]
    if path.endswith("/"):
        path = path[:-1]
    if not path:
        return ()
    return tuple(path.split("/"))


def match_segments(spec: Segmented, path: str) -> bool:
    """Brief: Positional segment matching for Segmented paths.

    Inputs:
      - spec: Segmented path spec.
      - path: URL path (possibly with query/fragment attached).

    Outputs:
      - bool: True when every pattern segment is satisfied in order.

    Notes:
      - Tracks the set of URL positions reachable after each pattern
        segment. An "absorb" segment reaches every position after the
        smallest reachable one, so the whole match costs
        O(pattern segments x URL segments) with no backtracking.
    """

    url_segments = split_path(path)
    total = len(url_segments)
    reachable = [0]
    for segment in spec.segments:
        if not reachable:
            return False
        if segment.kind == "absorb":
            reachable = list(range(reachable[0] + 1, total + 1))
            continue
        reachable = [
            pos + 1
            for pos in reachable
            if pos < total and _segment_matches(segment, url_segments[pos])
        ]
    if not reachable:
        return False
    if spec.open_tail:
        return True
    return reachable[-1] == total


def _strip_one_slash(value: str) -> str:
    return value[:-1] if value.endswith("/") else value


def match_path_spec(spec: PathSpec, path: str) -> bool:
    """Brief: Evaluate the path predicate for one PathSpec variant.

    Inputs:
      - spec: PathSpec variant.
      - path: URL path value chosen for this pattern.

    Outputs:
      - bool.
    """

    if isinstance(spec, NoPath):
        return True
    if isinstance(spec, RootOnly):
        return path in ("", "/")
    if isinstance(spec, AnyNonEmpty):
        return path not in ("", "/")
    if isinstance(spec, PrefixWildcard):
        prefix = spec.prefix
        return path == prefix or path.startswith(prefix + "/")
    if isinstance(spec, Segmented):
        return match_segments(spec, path)
    if isinstance(spec, Exact):
        return _strip_one_slash(path) == spec.path
    return False


@dataclass(frozen=True)
class Matcher:
    """Brief: Compiled protocol/host/path predicate for one pattern.

    Inputs:
      - pattern: Source NormalizedPattern, or None for the never-matching
        matcher used for invalid rules.

    Outputs:
      - Matcher; call ``matches(url)`` or the instance itself.

    Notes:
      - A URL written without a scheme (``example.com/x``) satisfies every
        protocol predicate, including an explicit ``https://`` pattern.

    Example:
      >>> from navguard.rules.normalize import normalize_pattern, normalize_url
      >>> m = compile_pattern(normalize_pattern("*.example.com"))
      >>> m(normalize_url("https://a.example.com/")), m(normalize_url("https://example.com/"))
      (True, False)
    """

    pattern: Optional[NormalizedPattern]

    def matches_protocol(self, url: NormalizedUrl) -> bool:
        if url.protocol is None:
            return True
        required = self.pattern.protocol
        if required is None:
            return url.protocol in WEB_PROTOCOLS
        return url.protocol == required

    def matches_host(self, url: NormalizedUrl) -> bool:
        pattern = self.pattern
        base = pattern.base_domain
        if pattern.port is not None and url.effective_port != pattern.port:
            return False
        if pattern.subdomain_wildcard:
            return url.host != base and url.host.endswith("." + base)
        return url.host == base or url.host.endswith("." + base)

    def matches_path(self, url: NormalizedUrl) -> bool:
        pattern = self.pattern
        path = url.match_path(pattern.keeps_query, pattern.keeps_fragment)
        return match_path_spec(pattern.path_spec, path)

    def matches(self, url: NormalizedUrl) -> bool:
        if self.pattern is None or url.opaque:
            return False
        return (
            self.matches_protocol(url)
            and self.matches_host(url)
            and self.matches_path(url)
        )

    __call__ = matches


NEVER = Matcher(pattern=None)


def compile_pattern(pattern: NormalizedPattern) -> Matcher:
    """Brief: Build the Matcher for a NormalizedPattern."""

    return Matcher(pattern=pattern)
