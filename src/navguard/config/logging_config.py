from __future__ import annotations

import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "crit": logging.CRITICAL,
    "critical": logging.CRITICAL,
}

_TAGS = {
    logging.DEBUG: "[debug]",
    logging.INFO: "[info]",
    logging.WARNING: "[warn]",
    logging.ERROR: "[error]",
    logging.CRITICAL: "[crit]",
}


def _level_tag(levelno: int) -> str:
    return _TAGS.get(levelno, f"[lvl{levelno}]")


class BracketLevelFormatter(logging.Formatter):
    """Formatter with UTC ISO-8601 timestamps and ``[level]`` tags."""

    def formatTime(self, record, datefmt=None):
        return datetime.fromtimestamp(record.created, timezone.utc).strftime(
            "%Y-%m-%dT%H:%M:%SZ"
        )

    def format(self, record):
        record.level_tag = _level_tag(record.levelno)
        return super().format(record)


class SyslogFormatter(logging.Formatter):
    """Formatter for syslog: no timestamp, syslog stamps entries itself."""

    def __init__(self, tag: str = "navguard") -> None:
        super().__init__()
        self.tag = tag

    def format(self, record):
        record.level_tag = _level_tag(record.levelno)
        return f"{self.tag}: {record.level_tag} {record.name}: {record.getMessage()}"


def _syslog_handler(syslog_cfg: Any) -> logging.Handler:
    opts = syslog_cfg if isinstance(syslog_cfg, dict) else {}
    address = opts.get("address", "/dev/log")
    if isinstance(address, (list, tuple)) and len(address) == 2:
        address = (str(address[0]), int(address[1]))
    facility = getattr(
        logging.handlers.SysLogHandler,
        f"LOG_{str(opts.get('facility', 'USER')).upper()}",
        logging.handlers.SysLogHandler.LOG_USER,
    )
    handler = logging.handlers.SysLogHandler(address=address, facility=facility)
    handler.setFormatter(SyslogFormatter(tag=str(opts.get("tag", "navguard"))))
    return handler


def init_logging(cfg: Optional[Dict[str, Any]]) -> None:
    """
    Configure the root logger from the ``logging`` settings section.

    Args:
        cfg: Mapping with optional keys:
            - level: debug, info, warn, error, crit (default: info)
            - stderr: log to stderr (default: True)
            - file: path of a log file to append to
            - syslog: True, or a mapping with address, facility and tag

    Example config:
        {"level": "debug", "file": "./navguard.log", "syslog": {"tag": "ng"}}
    """
    cfg = cfg or {}
    level = _LEVELS.get(str(cfg.get("level", "info")).lower(), logging.INFO)
    formatter = BracketLevelFormatter(fmt="%(asctime)s %(level_tag)s %(name)s: %(message)s")

    root = logging.getLogger()
    root.setLevel(level)
    for h in list(root.handlers):
        root.removeHandler(h)

    if cfg.get("stderr", True):
        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setFormatter(formatter)
        root.addHandler(stderr_handler)

    file_path = cfg.get("file")
    if isinstance(file_path, str) and file_path.strip():
        path = os.path.abspath(os.path.expanduser(file_path.strip()))
        os.makedirs(os.path.dirname(path), exist_ok=True)
        file_handler = logging.FileHandler(path, mode="a", encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    syslog_cfg = cfg.get("syslog")
    if syslog_cfg:
        try:
            root.addHandler(_syslog_handler(syslog_cfg))
        except (OSError, ValueError) as e:  # pragma: no cover - no syslog socket
            root.warning("Failed to configure syslog: %s", e)

    logging.captureWarnings(True)
