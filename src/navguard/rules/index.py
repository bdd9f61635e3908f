"""Compiled rule lists.

Brief:
  compile_rules() turns the raw allow and deny lists into an immutable
  RuleIndex of CompiledRule values. A bad entry never aborts compilation: it
  becomes a rule that matches nothing, scores 0 and leaves a
  CompileDiagnostic behind for the caller to report.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Mapping, Optional, Tuple

from . import specificity
from .compiler import NEVER, Matcher, compile_pattern
from .normalize import NormalizedPattern, NormalizedUrl, PatternError, normalize_pattern

logger = logging.getLogger(__name__)

ALLOW = "allow"
DENY = "deny"


@dataclass(frozen=True)
class CompiledRule:
    """Brief: One compiled pattern rule.

    Inputs:
      - raw: Rule text as written by the user.
      - position: Index of the rule within its list (tie-break order).
      - matcher: Compiled Matcher (NEVER for invalid rules).
      - specificity: Score from navguard.rules.specificity.
      - pattern: NormalizedPattern, or None when the rule is invalid.
      - error: Compile error message for invalid rules.

    Outputs:
      - CompiledRule instance.
    """

    raw: str
    position: int
    matcher: Matcher
    specificity: int
    pattern: Optional[NormalizedPattern] = None
    error: Optional[str] = None

    @property
    def valid(self) -> bool:
        return self.error is None

    def matches(self, url: NormalizedUrl) -> bool:
        return self.matcher.matches(url)


@dataclass(frozen=True)
class CompileDiagnostic:
    """A compile failure for one rule entry, with its list and position."""

    list_name: str
    position: int
    raw: str
    message: str

    def __str__(self) -> str:
        return f"{self.list_name}[{self.position}] {self.raw!r}: {self.message}"


@dataclass(frozen=True)
class RuleIndex:
    """Brief: Immutable snapshot of both compiled rule lists.

    Inputs:
      - allow / deny: Tuples of CompiledRule in list order.
      - diagnostics: Compile failures collected while building.
      - generation: Monotonic snapshot number assigned by the publisher.

    Outputs:
      - RuleIndex instance. Replace it to change rules; never mutate it.
    """

    allow: Tuple[CompiledRule, ...] = ()
    deny: Tuple[CompiledRule, ...] = ()
    diagnostics: Tuple[CompileDiagnostic, ...] = field(default=(), compare=False)
    generation: int = 0

    def rules(self, list_name: str) -> Tuple[CompiledRule, ...]:
        return self.allow if list_name == ALLOW else self.deny

    def matching(self, list_name: str, url: NormalizedUrl) -> List[CompiledRule]:
        """Brief: All rules of one list that match ``url``, in list order."""

        return [rule for rule in self.rules(list_name) if rule.matches(url)]


EMPTY_INDEX = RuleIndex()


def rule_text(entry: object) -> Optional[str]:
    """Brief: Extract pattern text from a string or ``{pattern|url}`` mapping."""

    if isinstance(entry, str):
        return entry
    if isinstance(entry, Mapping):
        for key in ("pattern", "url"):
            value = entry.get(key)
            if isinstance(value, str):
                return value
    return None


def compile_rule(
    entry: object, position: int, *, star_spans_segments: bool = False
) -> CompiledRule:
    """Brief: Compile one raw rule entry.

    Inputs:
      - entry: Pattern string or mapping carrying one.
      - position: Position within its list.
      - star_spans_segments: Passed to normalize_pattern.

    Outputs:
      - CompiledRule; invalid entries get the NEVER matcher and an error.
    """

    text = rule_text(entry)
    raw = text if text is not None else repr(entry)
    try:
        if text is None:
            raise PatternError(f"unsupported rule entry of type {type(entry).__name__}")
        pattern = normalize_pattern(text, star_spans_segments=star_spans_segments)
    except PatternError as exc:
        return CompiledRule(
            raw=raw, position=position, matcher=NEVER, specificity=0, error=str(exc)
        )
    return CompiledRule(
        raw=raw,
        position=position,
        matcher=compile_pattern(pattern),
        specificity=specificity.score(pattern),
        pattern=pattern,
    )


def _compile_list(
    list_name: str,
    entries: Optional[Iterable[object]],
    diagnostics: List[CompileDiagnostic],
    star_spans_segments: bool,
) -> Tuple[CompiledRule, ...]:
    if entries is None:
        entries = ()
    elif isinstance(entries, str):
        entries = (entries,)
    compiled = []
    for position, entry in enumerate(entries):
        rule = compile_rule(entry, position, star_spans_segments=star_spans_segments)
        if rule.error is not None:
            diag = CompileDiagnostic(
                list_name=list_name, position=position, raw=rule.raw, message=rule.error
            )
            diagnostics.append(diag)
            logger.warning("Ignoring invalid %s rule %s", list_name, diag)
        compiled.append(rule)
    return tuple(compiled)


def compile_rules(
    allow_rules: Optional[Iterable[object]] = None,
    deny_rules: Optional[Iterable[object]] = None,
    *,
    star_spans_segments: bool = False,
    generation: int = 0,
) -> RuleIndex:
    """Brief: Normalize, compile and score both rule lists.

    Inputs:
      - allow_rules / deny_rules: Ordered raw patterns (strings or mappings
        with a ``pattern``/``url`` string).
      - star_spans_segments: Let a lone ``*`` between literal segments span
        one or more path segments.
      - generation: Snapshot number recorded on the index.

    Outputs:
      - RuleIndex with per-rule diagnostics; never raises for bad entries.

    Example:
      >>> idx = compile_rules(["example.com"], ["bad pattern"])
      >>> len(idx.allow), len(idx.diagnostics)
      (1, 1)
    """

    diagnostics: List[CompileDiagnostic] = []
    allow = _compile_list(ALLOW, allow_rules, diagnostics, star_spans_segments)
    deny = _compile_list(DENY, deny_rules, diagnostics, star_spans_segments)
    logger.debug(
        "Compiled %d allow and %d deny rules (%d invalid, generation %d)",
        len(allow),
        len(deny),
        len(diagnostics),
        generation,
    )
    return RuleIndex(
        allow=allow,
        deny=deny,
        diagnostics=tuple(diagnostics),
        generation=generation,
    )
