from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Iterable, List, Optional, TextIO

from .config.config_parser import ConfigError, load_settings
from .config.logging_config import init_logging
from .guard import NavigationGuard
from .reload import SettingsWatcher


def _iter_urls(urls: List[str], stream: TextIO) -> Iterable[str]:
    if urls:
        yield from urls
        return
    for line in stream:
        line = line.strip()
        if line and not line.startswith("#"):
            yield line


def _cmd_check(guard: NavigationGuard, args: argparse.Namespace) -> int:
    for url in _iter_urls(args.urls, sys.stdin):
        decision = guard.check(url, trace=args.trace)
        record = {"url": url, **decision.as_dict()}
        print(json.dumps(record, sort_keys=True), flush=True)
    return 0


def _cmd_validate(guard: NavigationGuard, args: argparse.Namespace) -> int:
    index = guard.index
    for diag in index.diagnostics:
        print(str(diag))
    print(
        f"{len(index.allow)} allow rules, {len(index.deny)} deny rules, "
        f"{len(index.diagnostics)} invalid"
    )
    return 1 if index.diagnostics else 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Entry point for the navguard diagnostic CLI.

    Args:
        argv: Command-line arguments.

    Returns:
        An exit code: 0 on success, 1 on settings errors or (for ``validate``)
        when any rule failed to compile.

    Example use:
        navguard --config settings.yaml check https://www.reddit.com/r/news
        navguard --config settings.yaml validate
        cat urls.txt | navguard --config settings.yaml check --watch
    """
    parser = argparse.ArgumentParser(description="Navigation allow/deny rule checker")
    parser.add_argument("--config", default="settings.yaml", help="Path to YAML settings")
    sub = parser.add_subparsers(dest="command", required=True)

    check = sub.add_parser("check", help="Print a JSON decision per URL")
    check.add_argument("urls", nargs="*", help="URLs to check (default: read stdin)")
    check.add_argument("--trace", action="store_true", help="Include per-rule trace")
    check.add_argument(
        "--watch",
        action="store_true",
        help="Reload the settings file when it changes while reading stdin",
    )

    sub.add_parser("validate", help="Report rules that fail to compile")
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args.config)
    except ConfigError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    init_logging(settings.logging)
    logger = logging.getLogger("navguard.main")
    logger.info("Loaded settings from %s", args.config)

    guard = NavigationGuard(settings.rules)
    if args.command == "validate":
        return _cmd_validate(guard, args)

    watcher = None
    if args.watch:
        watcher = SettingsWatcher(args.config, guard)
        watcher.start()
    try:
        return _cmd_check(guard, args)
    finally:
        if watcher is not None:
            watcher.stop()


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
