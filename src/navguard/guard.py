"""Snapshot publication and the host-facing guard object.

Brief:
  RuleIndexStore keeps the current RuleIndex and swaps in complete new
  snapshots, so readers always see either the old or the new rule set.
  NavigationGuard pairs each published index with the keyword and mode
  policy it was built from, so a host can call ``check(url)`` without
  assembling decide() arguments itself.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from .config.settings import RuleSettings
from .decision import Decision, Mode, decide, parse_mode
from .history import BlockLog, BlockLogEntry
from .rules.index import EMPTY_INDEX, RuleIndex, compile_rules
from .rules.keywords import Keyword, parse_keywords
from .temporary import TemporaryAllowList

logger = logging.getLogger(__name__)


class RuleIndexStore:
    """Brief: Holder of the current RuleIndex snapshot.

    Inputs:
      - index: Optional initial RuleIndex (defaults to an empty one).

    Outputs:
      - RuleIndexStore. ``current`` is read without locking; ``publish`` and
        ``rebuild`` serialize writers and replace the snapshot with one
        reference assignment.
    """

    def __init__(self, index: Optional[RuleIndex] = None) -> None:
        self._index: RuleIndex = index if index is not None else EMPTY_INDEX
        self._write_lock = threading.Lock()

    @property
    def current(self) -> RuleIndex:
        return self._index

    def publish(self, index: RuleIndex) -> RuleIndex:
        with self._write_lock:
            self._index = index
        logger.info(
            "Published rule index generation %d (%d allow, %d deny, %d invalid)",
            index.generation,
            len(index.allow),
            len(index.deny),
            len(index.diagnostics),
        )
        return index

    def rebuild(
        self,
        allow_rules: Optional[Iterable[object]],
        deny_rules: Optional[Iterable[object]],
        *,
        star_spans_segments: bool = False,
    ) -> RuleIndex:
        """Brief: Compile new rule lists and publish them as the next generation."""

        with self._write_lock:
            index = compile_rules(
                allow_rules,
                deny_rules,
                star_spans_segments=star_spans_segments,
                generation=self._index.generation + 1,
            )
            self._index = index
        logger.info(
            "Rebuilt rule index generation %d (%d allow, %d deny, %d invalid)",
            index.generation,
            len(index.allow),
            len(index.deny),
            len(index.diagnostics),
        )
        return index


@dataclass(frozen=True)
class GuardSnapshot:
    """A RuleIndex together with the policy it was published with."""

    index: RuleIndex = EMPTY_INDEX
    mode: Mode = Mode.BLACKLIST
    enabled: bool = True
    allow_keywords: Tuple[Keyword, ...] = ()
    deny_keywords: Tuple[Keyword, ...] = ()
    allow_wins_ties: bool = True
    log_blocked: bool = False


class NavigationGuard:
    """Brief: Facade that evaluates URLs against the current settings.

    Inputs:
      - settings: Optional RuleSettings applied at construction; defaults
        are used when omitted.
      - temporary: Optional TemporaryAllowList. Its lifetime follows
        ``temporary_allow_seconds`` of every applied settings object.

    Outputs:
      - NavigationGuard instance.

    Example:
      >>> guard = NavigationGuard(RuleSettings(mode="blacklist", deny=["reddit.com"]))
      >>> guard.check("https://www.reddit.com/r/news").blocked
      True
    """

    def __init__(
        self,
        settings: Optional[RuleSettings] = None,
        temporary: Optional[TemporaryAllowList] = None,
    ) -> None:
        initial = settings if settings is not None else RuleSettings()
        if temporary is None:
            temporary = TemporaryAllowList(seconds=initial.temporary_allow_seconds)
        self.temporary = temporary
        self.block_log = BlockLog(max_entries=initial.log_max_entries)
        self.store = RuleIndexStore()
        self._snapshot = GuardSnapshot()
        self._apply_lock = threading.Lock()
        if settings is not None:
            self.apply_settings(settings)

    @property
    def index(self) -> RuleIndex:
        return self._snapshot.index

    @property
    def snapshot(self) -> GuardSnapshot:
        return self._snapshot

    def apply_settings(self, settings: RuleSettings) -> RuleIndex:
        """Brief: Compile settings into a new snapshot and publish it.

        Inputs:
          - settings: Validated RuleSettings.

        Outputs:
          - RuleIndex: The newly published index.
        """

        with self._apply_lock:
            self.temporary.set_ttl(settings.temporary_allow_seconds)
            self.block_log.resize(settings.log_max_entries)
            index = self.store.rebuild(
                settings.allow,
                settings.deny,
                star_spans_segments=settings.star_spans_segments,
            )
            self._snapshot = GuardSnapshot(
                index=index,
                mode=parse_mode(settings.mode) or Mode.BLACKLIST,
                enabled=settings.enabled,
                allow_keywords=parse_keywords(settings.allow_keywords),
                deny_keywords=parse_keywords(settings.deny_keywords),
                allow_wins_ties=settings.allow_wins_ties,
                log_blocked=settings.log_blocked,
            )
        return index

    def allow_temporarily(self, host: str) -> None:
        self.temporary.grant(host)

    def recent_blocks(self) -> List[BlockLogEntry]:
        """Brief: Blocked navigations recorded while ``log_blocked`` was on, newest first."""

        return self.block_log.entries()

    def check(self, url: str, *, trace: bool = False) -> Decision:
        """Brief: Decide ``url`` against the current snapshot and policy."""

        snap = self._snapshot
        if not snap.enabled:
            return Decision(blocked=False, reason="blocking disabled")
        decision = decide(
            url,
            snap.index,
            snap.allow_keywords,
            snap.deny_keywords,
            snap.mode,
            self.temporary,
            allow_wins_ties=snap.allow_wins_ties,
            trace=trace,
        )
        if decision.blocked and snap.log_blocked:
            self.block_log.add(str(url), decision.reason, decision.matched_rule)
        return decision
