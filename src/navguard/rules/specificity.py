"""Specificity ranking for rule patterns.

Brief:
  Specificity only matters when a URL matches rules on both the allow and the
  deny list. The score is the sum of a domain part and a path part and
  depends on nothing but the NormalizedPattern structure.
"""

from __future__ import annotations

from typing import Optional, Tuple

from .compiler import split_path
from .normalize import (
    AnyNonEmpty,
    Exact,
    NoPath,
    NormalizedPattern,
    PrefixWildcard,
    RootOnly,
    Segmented,
)

SUBDOMAIN_WILDCARD_SCORE = 10
DOMAIN_SCORE = 20
NAMED_SUBDOMAIN_SCORE = 30

ROOT_PATH_SCORE = 5
ANY_PATH_SCORE = 10
WILDCARD_PATH_SCORE = 20
EXACT_PATH_SCORE = 30
COLLECTION_BOOST = 10

# First path segments that introduce a named sub-collection, as in
# ``/r/<subreddit>``, ``/c/<category>`` or ``/user/<name>``.
COLLECTION_MARKERS = frozenset({"r", "c", "u", "user"})


def domain_score(pattern: NormalizedPattern) -> int:
    if pattern.subdomain_wildcard:
        return SUBDOMAIN_WILDCARD_SCORE
    if len(pattern.labels) >= 3:
        return NAMED_SUBDOMAIN_SCORE
    return DOMAIN_SCORE


def _leading_segments(pattern: NormalizedPattern) -> Optional[Tuple[str, ...]]:
    spec = pattern.path_spec
    if isinstance(spec, Exact):
        return split_path(spec.path)
    if isinstance(spec, PrefixWildcard):
        return split_path(spec.prefix)
    if isinstance(spec, Segmented):
        return tuple(
            s.text if s.kind == "literal" else "*" for s in spec.segments[:2]
        )
    return None


def names_collection(pattern: NormalizedPattern) -> bool:
    """Brief: True when the path starts with a marker and a literal name.

    Example:
      >>> from navguard.rules.normalize import normalize_pattern
      >>> names_collection(normalize_pattern("reddit.com/r/askscience/*"))
      True
      >>> names_collection(normalize_pattern("reddit.com/r/*"))
      False
    """

    segments = _leading_segments(pattern)
    if not segments or len(segments) < 2:
        return False
    name = segments[1]
    return segments[0] in COLLECTION_MARKERS and bool(name) and "*" not in name


def path_score(pattern: NormalizedPattern) -> int:
    spec = pattern.path_spec
    if isinstance(spec, (NoPath, RootOnly)):
        return ROOT_PATH_SCORE
    if isinstance(spec, AnyNonEmpty):
        return ANY_PATH_SCORE
    if isinstance(spec, (PrefixWildcard, Segmented)):
        score = WILDCARD_PATH_SCORE
    elif isinstance(spec, Exact):
        score = EXACT_PATH_SCORE
    else:
        return 0
    if names_collection(pattern):
        score += COLLECTION_BOOST
    return score


def score(pattern: Optional[NormalizedPattern]) -> int:
    """Brief: Total specificity of a pattern; 0 for an invalid (None) pattern.

    Inputs:
      - pattern: NormalizedPattern or None.

    Outputs:
      - int: domain score + path score.

    Example:
      >>> from navguard.rules.normalize import normalize_pattern
      >>> score(normalize_pattern("reddit.com/r/*"))
      40
      >>> score(normalize_pattern("reddit.com/r/askscience/*"))
      50
    """

    if pattern is None:
        return 0
    return domain_score(pattern) + path_score(pattern)
