from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, List, Optional


@dataclass(frozen=True)
class BlockLogEntry:
    """Brief: One blocked navigation.

    Inputs:
      - url: URL text as passed to the guard.
      - reason: Decision reason.
      - matched_rule: Raw text of the deciding rule or keyword, if any.
      - timestamp: Wall-clock seconds since the epoch.
    """

    url: str
    reason: str
    matched_rule: Optional[str]
    timestamp: float

    def as_dict(self) -> dict:
        return {
            "url": self.url,
            "reason": self.reason,
            "matched_rule": self.matched_rule,
            "timestamp": self.timestamp,
        }


class BlockLog:
    """Brief: Bounded in-memory log of blocked navigations, newest first.

    Inputs:
      - max_entries: Number of entries kept; older ones are discarded.
      - clock: Timestamp source (time.time by default).

    Outputs:
      - BlockLog instance.

    Example:
      >>> log = BlockLog(max_entries=2)
      >>> for u in ("a", "b", "c"):
      ...     log.add(u, "deny pattern: x")
      >>> [e.url for e in log.entries()]
      ['c', 'b']
    """

    def __init__(
        self, max_entries: int = 100, clock: Callable[[], float] = time.time
    ) -> None:
        self._entries: Deque[BlockLogEntry] = deque(maxlen=max(1, int(max_entries)))
        self._clock = clock
        self._lock = threading.Lock()

    @property
    def max_entries(self) -> int:
        return self._entries.maxlen or 0

    def add(self, url: str, reason: str, matched_rule: Optional[str] = None) -> None:
        entry = BlockLogEntry(
            url=url, reason=reason, matched_rule=matched_rule, timestamp=self._clock()
        )
        with self._lock:
            self._entries.appendleft(entry)

    def entries(self) -> List[BlockLogEntry]:
        with self._lock:
            return list(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def resize(self, max_entries: int) -> None:
        """Brief: Change the bound, keeping the newest entries that still fit."""

        max_entries = max(1, int(max_entries))
        with self._lock:
            if max_entries != self._entries.maxlen:
                self._entries = deque(list(self._entries)[:max_entries], maxlen=max_entries)
