from __future__ import annotations

import logging
import threading
import time
from typing import Callable, List, Optional

from cachetools import TTLCache

logger = logging.getLogger(__name__)


class TemporaryAllowList:
    """Brief: Time-bounded per-host unblocks usable as a temp_allow predicate.

    Inputs:
      - seconds: Lifetime of each grant.
      - maxsize: Maximum number of simultaneously granted hosts.
      - timer: Clock used by the underlying TTLCache (monotonic by default).

    Outputs:
      - TemporaryAllowList instance. Calling it with a hostname returns True
        while a grant for that host, or for one of its parent domains, is
        still valid.

    Example:
      >>> allow = TemporaryAllowList(seconds=60)
      >>> allow.grant("example.com")
      >>> allow("www.example.com"), allow("other.com")
      (True, False)
    """

    def __init__(
        self,
        seconds: float = 1800,
        maxsize: int = 256,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self.seconds = float(seconds)
        self.maxsize = int(maxsize)
        self._timer = timer
        self._grants: TTLCache = TTLCache(maxsize=self.maxsize, ttl=self.seconds, timer=timer)
        self._lock = threading.Lock()

    def set_ttl(self, seconds: float) -> None:
        """Brief: Change the grant lifetime; existing grants are dropped.

        Inputs:
          - seconds: New lifetime. 0 disables temporary unblocks.

        Outputs:
          - None.
        """

        seconds = float(seconds)
        with self._lock:
            if seconds == self.seconds:
                return
            dropped = len(self._grants)
            self.seconds = seconds
            self._grants = TTLCache(maxsize=self.maxsize, ttl=seconds, timer=self._timer)
        logger.info(
            "Temporary allow lifetime set to %ss (%d grants dropped)", int(seconds), dropped
        )

    @staticmethod
    def _normalize_host(host: object) -> str:
        return str(host or "").strip().lower().rstrip(".")

    def grant(self, host: str) -> None:
        key = self._normalize_host(host)
        if not key:
            return
        with self._lock:
            self._grants[key] = True
        logger.info("Temporarily allowing %s for %ss", key, int(self.seconds))

    def revoke(self, host: str) -> None:
        with self._lock:
            self._grants.pop(self._normalize_host(host), None)

    def clear(self) -> None:
        with self._lock:
            self._grants.clear()

    def hosts(self) -> List[str]:
        with self._lock:
            self._grants.expire()
            return sorted(self._grants.keys())

    def _candidates(self, host: str) -> List[str]:
        labels = host.split(".")
        return [".".join(labels[i:]) for i in range(len(labels))]

    def __call__(self, host: Optional[str]) -> bool:
        key = self._normalize_host(host)
        if not key or self.seconds <= 0:
            return False
        with self._lock:
            return any(c in self._grants for c in self._candidates(key))
