"""Block/allow resolution for a single navigation URL.

Brief:
  decide() combines the compiled RuleIndex, the keyword lists, the global
  mode and the caller's temporary-allow predicate into a Decision. It only
  reads immutable inputs and never raises; unexpected failures are logged
  and degrade to an "allowed" decision.

Inputs:
  - url: Navigation URL text.
  - index: RuleIndex from navguard.rules.compile_rules.
  - allow_keywords / deny_keywords: Keyword tuples or raw keyword entries.
  - mode: "blacklist", "whitelist" or "combined".
  - temp_allow: Optional callable(hostname) -> bool.

Outputs:
  - Decision(blocked, reason, matched_rule, specificity, trace).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from .rules.index import ALLOW, DENY, CompiledRule, RuleIndex
from .rules.keywords import Keyword, first_keyword_match, parse_keywords
from .rules.normalize import NormalizedUrl, is_internal_url, normalize_url

logger = logging.getLogger(__name__)

TempAllowPredicate = Callable[[str], bool]


class Mode(str, Enum):
    BLACKLIST = "blacklist"
    WHITELIST = "whitelist"
    COMBINED = "combined"


def parse_mode(value: object) -> Optional[Mode]:
    """Brief: Map a mode name (case-insensitive) to Mode, or None if unknown."""

    if isinstance(value, Mode):
        return value
    try:
        return Mode(str(value).strip().lower())
    except ValueError:
        return None


@dataclass(frozen=True)
class TraceEntry:
    """Brief: One evaluated rule or keyword in a decision trace.

    Inputs:
      - source: "allow", "deny", "allow_keyword" or "deny_keyword".
      - rule: Raw rule or keyword text.
      - matched: Whether it matched the URL.
      - specificity: Rule specificity (0 for keywords).
      - note: Short explanation, e.g. "invalid rule: ...".
    """

    source: str
    rule: str
    matched: bool
    specificity: int = 0
    note: str = ""


@dataclass(frozen=True)
class Decision:
    """Brief: Outcome of decide().

    Inputs:
      - blocked: True when navigation should be blocked.
      - reason: Human-readable explanation naming the winning rule.
      - matched_rule: Raw text of the deciding rule or keyword, or None.
      - specificity: Specificity of the deciding rule, 0 when none matched.
      - trace: Optional diagnostic trace; ignored by equality.

    Outputs:
      - Decision instance.
    """

    blocked: bool
    reason: str
    matched_rule: Optional[str] = None
    specificity: int = 0
    trace: Tuple[TraceEntry, ...] = field(default=(), compare=False, repr=False)

    def as_dict(self) -> dict:
        out = {
            "blocked": self.blocked,
            "reason": self.reason,
            "matched_rule": self.matched_rule,
            "specificity": self.specificity,
        }
        if self.trace:
            out["trace"] = [
                {
                    "source": t.source,
                    "rule": t.rule,
                    "matched": t.matched,
                    "specificity": t.specificity,
                    "note": t.note,
                }
                for t in self.trace
            ]
        return out


def best_rule(rules: Sequence[CompiledRule]) -> Optional[CompiledRule]:
    """Brief: Highest-specificity rule; the earliest one wins ties.

    Example:
      >>> best_rule([]) is None
      True
    """

    best: Optional[CompiledRule] = None
    for rule in rules:
        if best is None or rule.specificity > best.specificity:
            best = rule
    return best


class _Tracer:
    """Collects TraceEntry values only when tracing was requested."""

    def __init__(self, enabled: bool) -> None:
        self.enabled = enabled
        self.entries: List[TraceEntry] = []

    def rules(
        self,
        source: str,
        rules: Iterable[CompiledRule],
        matched: Sequence[CompiledRule],
    ) -> None:
        if not self.enabled:
            return
        hits = {id(r) for r in matched}
        for rule in rules:
            note = f"invalid rule: {rule.error}" if rule.error else ""
            self.entries.append(
                TraceEntry(
                    source=source,
                    rule=rule.raw,
                    matched=id(rule) in hits,
                    specificity=rule.specificity,
                    note=note,
                )
            )

    def keywords(
        self, source: str, keywords: Iterable[Keyword], url: NormalizedUrl
    ) -> None:
        if not self.enabled:
            return
        for keyword in keywords:
            self.entries.append(
                TraceEntry(source=source, rule=keyword.raw, matched=keyword.matches(url))
            )

    def note(self, source: str, text: str) -> None:
        if self.enabled:
            self.entries.append(
                TraceEntry(source=source, rule="", matched=False, note=text)
            )

    def finish(self, decision: Decision) -> Decision:
        if not self.enabled:
            return decision
        return Decision(
            blocked=decision.blocked,
            reason=decision.reason,
            matched_rule=decision.matched_rule,
            specificity=decision.specificity,
            trace=tuple(self.entries),
        )


def _as_keywords(entries: Optional[Iterable[object]]) -> Tuple[Keyword, ...]:
    if isinstance(entries, tuple) and all(isinstance(k, Keyword) for k in entries):
        return entries
    return parse_keywords(entries)


def _allowed(
    reason: str, rule: Optional[str] = None, specificity: int = 0
) -> Decision:
    return Decision(
        blocked=False, reason=reason, matched_rule=rule, specificity=specificity
    )


def _blocked(
    reason: str, rule: Optional[str] = None, specificity: int = 0
) -> Decision:
    return Decision(
        blocked=True, reason=reason, matched_rule=rule, specificity=specificity
    )


def _allow_rule_decision(rule: CompiledRule) -> Decision:
    return _allowed(f"allow pattern: {rule.raw}", rule.raw, rule.specificity)


def _deny_rule_decision(rule: CompiledRule) -> Decision:
    return _blocked(f"deny pattern: {rule.raw}", rule.raw, rule.specificity)


def _deny_keyword_or_default(
    url: NormalizedUrl, deny_keywords: Tuple[Keyword, ...], tracer: _Tracer
) -> Decision:
    tracer.keywords("deny_keyword", deny_keywords, url)
    keyword = first_keyword_match(deny_keywords, url)
    if keyword is not None:
        return _blocked(f"deny keyword: {keyword.raw}", keyword.raw)
    return _allowed("no match")


def _resolve_whitelist(
    url: NormalizedUrl, index: RuleIndex, tracer: _Tracer
) -> Decision:
    allow = index.matching(ALLOW, url)
    tracer.rules(ALLOW, index.allow, allow)
    winner = best_rule(allow)
    if winner is not None:
        return _allow_rule_decision(winner)
    return _blocked("not on allow list")


def _resolve_blacklist(
    url: NormalizedUrl,
    index: RuleIndex,
    deny_keywords: Tuple[Keyword, ...],
    tracer: _Tracer,
) -> Decision:
    deny = index.matching(DENY, url)
    tracer.rules(DENY, index.deny, deny)
    winner = best_rule(deny)
    if winner is not None:
        return _deny_rule_decision(winner)
    return _deny_keyword_or_default(url, deny_keywords, tracer)


def _resolve_combined(
    url: NormalizedUrl,
    index: RuleIndex,
    deny_keywords: Tuple[Keyword, ...],
    allow_wins_ties: bool,
    tracer: _Tracer,
) -> Decision:
    allow = index.matching(ALLOW, url)
    deny = index.matching(DENY, url)
    tracer.rules(ALLOW, index.allow, allow)
    tracer.rules(DENY, index.deny, deny)

    best_allow = best_rule(allow)
    best_deny = best_rule(deny)
    if best_allow is None and best_deny is None:
        return _deny_keyword_or_default(url, deny_keywords, tracer)
    if best_deny is None:
        return _allow_rule_decision(best_allow)
    if best_allow is None:
        return _deny_rule_decision(best_deny)

    if best_allow.specificity > best_deny.specificity or (
        allow_wins_ties and best_allow.specificity == best_deny.specificity
    ):
        return _allowed(
            f"allow pattern: {best_allow.raw} overrides deny pattern: {best_deny.raw}",
            best_allow.raw,
            best_allow.specificity,
        )
    return _blocked(
        f"deny pattern: {best_deny.raw} overrides allow pattern: {best_allow.raw}",
        best_deny.raw,
        best_deny.specificity,
    )


def _temporarily_allowed(temp_allow: Optional[TempAllowPredicate], host: str) -> bool:
    if temp_allow is None:
        return False
    try:
        return bool(temp_allow(host))
    except Exception:
        logger.exception("Temporary-allow predicate failed for %s", host)
        return False


def _decide(
    url: object,
    index: RuleIndex,
    allow_keywords: Optional[Iterable[object]],
    deny_keywords: Optional[Iterable[object]],
    mode: object,
    temp_allow: Optional[TempAllowPredicate],
    allow_wins_ties: bool,
    tracer: _Tracer,
) -> Decision:
    if not isinstance(url, str) or not url.strip():
        return _allowed("no url")
    if is_internal_url(url):
        return _allowed("internal page")

    target = normalize_url(url)
    if _temporarily_allowed(temp_allow, target.host):
        return _allowed("temporarily allowed")

    allows = _as_keywords(allow_keywords)
    tracer.keywords("allow_keyword", allows, target)
    keyword = first_keyword_match(allows, target)
    if keyword is not None:
        return _allowed(f"allow keyword: {keyword.raw}", keyword.raw)

    denies = _as_keywords(deny_keywords)
    resolved = parse_mode(mode)
    if resolved is None:
        logger.warning("Unknown mode %r; evaluating as blacklist", mode)
        tracer.note("mode", f"unknown mode {mode!r}, using blacklist")
        resolved = Mode.BLACKLIST

    if resolved is Mode.WHITELIST:
        return _resolve_whitelist(target, index, tracer)
    if resolved is Mode.BLACKLIST:
        return _resolve_blacklist(target, index, denies, tracer)
    return _resolve_combined(target, index, denies, allow_wins_ties, tracer)


def decide(
    url: object,
    index: RuleIndex,
    allow_keywords: Optional[Iterable[object]] = (),
    deny_keywords: Optional[Iterable[object]] = (),
    mode: object = Mode.BLACKLIST,
    temp_allow: Optional[TempAllowPredicate] = None,
    *,
    allow_wins_ties: bool = True,
    trace: bool = False,
) -> Decision:
    """Brief: Decide whether navigation to ``url`` is blocked.

    Inputs:
      - url: URL text (absolute or bare host/path).
      - index: Current RuleIndex snapshot.
      - allow_keywords / deny_keywords: Parsed Keyword tuples or raw entries.
      - mode: Mode or mode name; unknown values evaluate as blacklist.
      - temp_allow: Optional hostname predicate for temporary unblocks.
      - allow_wins_ties: In combined mode, equal specificity favours the
        allow rule when True and the deny rule when False.
      - trace: Attach a TraceEntry per evaluated rule and keyword.

    Outputs:
      - Decision. Never raises.

    Example:
      >>> from navguard.rules import compile_rules
      >>> idx = compile_rules([], ["reddit.com"])
      >>> decide("https://www.reddit.com/r/news", idx, mode="blacklist").blocked
      True
    """

    tracer = _Tracer(trace)
    try:
        decision = _decide(
            url,
            index,
            allow_keywords,
            deny_keywords,
            mode,
            temp_allow,
            allow_wins_ties,
            tracer,
        )
    except Exception:
        logger.exception("Failed to evaluate %r; allowing", url)
        decision = _allowed("evaluation error")
    logger.debug(
        "%s %s (%s)", "Blocked" if decision.blocked else "Allowed", url, decision.reason
    )
    return tracer.finish(decision)
