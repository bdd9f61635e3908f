from __future__ import annotations

import logging
import pathlib
import threading
import time
from typing import Callable, Optional

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .config.config_parser import ConfigError, load_settings
from .guard import NavigationGuard

logger = logging.getLogger(__name__)


class _SettingsFileHandler(FileSystemEventHandler):
    """Brief: Watchdog handler that forwards writes of one file to a callback.

    Inputs:
      - path: Settings file to track.
      - on_change: Zero-argument callable invoked for matching events.

    Outputs:
      - None (invokes on_change when the watched path is written, created or
        moved into place).
    """

    def __init__(self, path: pathlib.Path, on_change: Callable[[], None]) -> None:
        super().__init__()
        self._path = path.resolve()
        self._on_change = on_change

    def _is_watched(self, raw: Optional[str]) -> bool:
        if not raw:
            return False
        return pathlib.Path(raw).resolve() == self._path

    def on_any_event(self, event) -> None:  # type: ignore[override]
        if getattr(event, "is_directory", False):
            return
        # Editors often save via create+rename, so created/moved count as writes.
        if getattr(event, "event_type", None) not in {"modified", "created", "moved"}:
            return
        src = getattr(event, "src_path", None)
        dest = getattr(event, "dest_path", None)
        if self._is_watched(src) or self._is_watched(dest):
            self._on_change()


class SettingsWatcher:
    """Brief: Reload a YAML settings file into a NavigationGuard on change.

    Inputs:
      - path: Settings file path.
      - guard: NavigationGuard receiving apply_settings() calls.
      - min_interval: Minimum seconds between two reloads; events arriving
        sooner are coalesced into one deferred reload.

    Outputs:
      - SettingsWatcher. Call start() to begin watching and stop() to end.

    Notes:
      - A reload that fails to parse or validate is logged and leaves the
        previously published snapshot in place.
    """

    def __init__(
        self,
        path: str,
        guard: NavigationGuard,
        min_interval: float = 1.0,
    ) -> None:
        self.path = pathlib.Path(path).expanduser()
        self.guard = guard
        self.min_interval = float(min_interval)
        self._observer = None
        self._last_reload = 0.0
        self._timer: Optional[threading.Timer] = None
        self._timer_lock = threading.Lock()
        self.handler = _SettingsFileHandler(self.path, self._on_file_event)

    def reload(self) -> bool:
        """Brief: Load the settings file and publish it; True on success."""

        self._last_reload = time.monotonic()
        try:
            settings = load_settings(str(self.path))
        except ConfigError as exc:
            logger.error("Keeping previous rules; reload of %s failed: %s", self.path, exc)
            return False
        index = self.guard.apply_settings(settings.rules)
        logger.info("Reloaded %s (generation %d)", self.path, index.generation)
        return True

    def _on_file_event(self) -> None:
        elapsed = time.monotonic() - self._last_reload
        if elapsed >= self.min_interval:
            self.reload()
            return
        with self._timer_lock:
            if self._timer is not None:
                return
            self._timer = threading.Timer(self.min_interval - elapsed, self._deferred_reload)
            self._timer.daemon = True
            self._timer.start()

    def _deferred_reload(self) -> None:
        with self._timer_lock:
            self._timer = None
        self.reload()

    def start(self) -> None:
        directory = self.path.parent.resolve()
        observer = Observer()
        observer.schedule(self.handler, str(directory), recursive=False)
        observer.daemon = True
        observer.start()
        self._observer = observer
        logger.debug("Watching %s for settings changes", directory)

    def stop(self) -> None:
        with self._timer_lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=2.0)
            self._observer = None
