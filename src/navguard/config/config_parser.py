"""Settings file parsing for navguard.

Brief:
  Reads the YAML settings file, maps legacy browser-extension export keys to
  their current names and validates the result with the pydantic models in
  navguard.config.settings.

Inputs:
  - YAML settings paths or already-parsed mappings

Outputs:
  - AppSettings instances; ConfigError on any failure
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from .settings import AppSettings

logger = logging.getLogger(__name__)

# Keys written by the browser extension's settings export.
LEGACY_RULE_KEYS = {
    "whitelist": "allow",
    "blacklist": "deny",
    "whitelistKeywords": "allow_keywords",
    "blacklistKeywords": "deny_keywords",
    "isEnabled": "enabled",
}


class ConfigError(ValueError):
    """Raised when a settings file cannot be read or fails validation."""


def apply_legacy_rule_keys(rules: Dict[str, Any]) -> Dict[str, Any]:
    """Brief: Return a copy of ``rules`` with legacy keys renamed.

    Inputs:
      - rules: Raw ``rules`` mapping.

    Outputs:
      - dict: New mapping. A key already present under its current name wins
        over the legacy spelling.

    Example:
      >>> apply_legacy_rule_keys({"blacklist": ["a.com"], "mode": "blacklist"})
      {'mode': 'blacklist', 'deny': ['a.com']}
    """

    out = {k: v for k, v in rules.items() if k not in LEGACY_RULE_KEYS}
    for legacy, current in LEGACY_RULE_KEYS.items():
        if legacy in rules and current not in out:
            logger.debug("Mapping legacy settings key %s -> %s", legacy, current)
            out[current] = rules[legacy]
    return out


def settings_from_mapping(cfg: Optional[Dict[str, Any]]) -> AppSettings:
    """Brief: Validate a parsed settings mapping.

    Inputs:
      - cfg: Mapping with optional ``logging`` and ``rules`` sections, or None.

    Outputs:
      - AppSettings.

    Raises:
      - ConfigError: When the root or the ``rules`` section is not a mapping
        with string keys, or validation fails.
    """

    cfg = cfg or {}
    if not isinstance(cfg, dict):
        raise ConfigError("Settings root must be a mapping")

    bad_keys = [k for k in cfg if not isinstance(k, str)]
    if bad_keys:
        raise ConfigError(f"Settings keys must be strings, got {bad_keys!r}")

    data = dict(cfg)
    rules = data.get("rules")
    if rules is not None:
        if not isinstance(rules, dict):
            raise ConfigError("settings.rules must be a mapping")
        bad_keys = [k for k in rules if not isinstance(k, str)]
        if bad_keys:
            raise ConfigError(f"settings.rules keys must be strings, got {bad_keys!r}")
        data["rules"] = apply_legacy_rule_keys(rules)

    try:
        return AppSettings(**data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings: {exc}") from exc


def load_settings(path: str) -> AppSettings:
    """Brief: Read and validate a YAML settings file.

    Inputs:
      - path: Path to the YAML file.

    Outputs:
      - AppSettings.

    Raises:
      - ConfigError: When the file is unreadable, not UTF-8, not valid YAML,
        or fails validation.
    """

    try:
        with open(path, "r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f)
    except OSError as exc:
        raise ConfigError(f"Cannot read settings file {path}: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise ConfigError(f"Settings file {path} is not valid UTF-8: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    return settings_from_mapping(cfg)
