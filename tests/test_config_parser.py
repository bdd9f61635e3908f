"""Brief: Unit tests for navguard.config settings loading.

Inputs:
  - None

Outputs:
  - None
"""

from __future__ import annotations

from typing import Any, Dict

import pytest

from navguard.config import config_parser as cp
from navguard.config.settings import RuleSettings


def test_load_settings_reads_yaml(tmp_path) -> None:
    """Brief: load_settings parses the logging and rules sections.

    Inputs:
      - tmp_path: pytest temporary directory.

    Outputs:
      - None; asserts typed fields.
    """

    path = tmp_path / "settings.yaml"
    path.write_text(
        "logging:\n"
        "  level: debug\n"
        "rules:\n"
        "  mode: Combined\n"
        "  allow: ['reddit.com/r/askscience/*']\n"
        "  deny:\n"
        "    - reddit.com/r/*\n"
        "    - pattern: '*.redgifs.com/*'\n"
        "  deny_keywords: [gaming, {pattern: casino}]\n"
        "  temporary_allow_seconds: 60\n",
        encoding="utf-8",
    )
    settings = cp.load_settings(str(path))
    assert settings.logging == {"level": "debug"}
    rules = settings.rules
    assert rules.mode == "combined"
    assert rules.allow == ["reddit.com/r/askscience/*"]
    assert rules.deny[1] == {"pattern": "*.redgifs.com/*"}
    assert rules.deny_keywords == ["gaming", {"pattern": "casino"}]
    assert rules.temporary_allow_seconds == 60
    assert rules.enabled is True
    assert rules.allow_wins_ties is True


def test_settings_defaults_for_empty_file(tmp_path) -> None:
    """Brief: An empty YAML file yields default settings.

    Inputs:
      - tmp_path: pytest temporary directory.

    Outputs:
      - None; asserts defaults.
    """

    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    settings = cp.load_settings(str(path))
    assert settings.logging == {}
    assert settings.rules.mode == "blacklist"
    assert settings.rules.allow == []


def test_legacy_rule_keys_are_mapped() -> None:
    """Brief: Extension export keys map to current names; current names win.

    Inputs:
      - None.

    Outputs:
      - None; asserts mapped fields.
    """

    cfg: Dict[str, Any] = {
        "rules": {
            "whitelist": ["a.com"],
            "blacklist": ["b.com"],
            "deny": ["c.com"],
            "whitelistKeywords": ["work"],
            "blacklistKeywords": None,
            "isEnabled": False,
        }
    }
    rules = cp.settings_from_mapping(cfg).rules
    assert rules.allow == ["a.com"]
    assert rules.deny == ["c.com"]
    assert rules.allow_keywords == ["work"]
    assert rules.deny_keywords == []
    assert rules.enabled is False


def test_apply_legacy_rule_keys_returns_copy() -> None:
    """Brief: apply_legacy_rule_keys does not mutate its input.

    Inputs:
      - None.

    Outputs:
      - None; asserts original mapping unchanged.
    """

    raw = {"blacklist": ["a.com"], "mode": "blacklist"}
    out = cp.apply_legacy_rule_keys(raw)
    assert out == {"mode": "blacklist", "deny": ["a.com"]}
    assert "blacklist" in raw


def test_rule_lists_accept_single_string_and_null() -> None:
    """Brief: A lone string becomes a one-item list and null becomes empty.

    Inputs:
      - None.

    Outputs:
      - None; asserts coerced lists.
    """

    rules = RuleSettings(deny="reddit.com", allow=None)
    assert rules.deny == ["reddit.com"]
    assert rules.allow == []


@pytest.mark.parametrize(
    "cfg,match",
    [
        ([1, 2], "Settings root must be a mapping"),
        ({"rules": ["a.com"]}, "settings.rules must be a mapping"),
        ({"rules": {"mode": "strict"}}, "Invalid settings"),
        ({"rules": {"temporary_allow_seconds": -1}}, "Invalid settings"),
        ({"rules": {"unknown_key": 1}}, "Invalid settings"),
        ({"plugins": []}, "Invalid settings"),
    ],
)
def test_settings_from_mapping_errors(cfg, match) -> None:
    """Brief: Structural and validation failures raise ConfigError.

    Inputs:
      - cfg: invalid settings mapping.
      - match: expected message fragment.

    Outputs:
      - None; asserts ConfigError.
    """

    with pytest.raises(cp.ConfigError, match=match):
        cp.settings_from_mapping(cfg)


def test_load_settings_file_errors(tmp_path) -> None:
    """Brief: Missing files and bad YAML raise ConfigError.

    Inputs:
      - tmp_path: pytest temporary directory.

    Outputs:
      - None; asserts ConfigError messages.
    """

    with pytest.raises(cp.ConfigError, match="Cannot read settings file"):
        cp.load_settings(str(tmp_path / "missing.yaml"))

    bad = tmp_path / "bad.yaml"
    bad.write_text("rules: [unclosed\n", encoding="utf-8")
    with pytest.raises(cp.ConfigError, match="Invalid YAML"):
        cp.load_settings(str(bad))


def test_load_settings_invalid_utf8_raises_config_error(tmp_path) -> None:
    """Brief: A settings file that is not UTF-8 raises ConfigError.

    Inputs:
      - tmp_path: pytest temporary directory.

    Outputs:
      - None; asserts ConfigError instead of UnicodeDecodeError.
    """

    path = tmp_path / "latin.yaml"
    path.write_bytes(b"rules:\n  deny: ['\xff\xfe.com']\n")
    with pytest.raises(cp.ConfigError, match="not valid UTF-8"):
        cp.load_settings(str(path))


@pytest.mark.parametrize(
    "text,match",
    [
        ("1: 2\n", "Settings keys must be strings"),
        ("rules:\n  1: a.com\n", "settings.rules keys must be strings"),
    ],
)
def test_load_settings_non_string_keys_raise_config_error(tmp_path, text, match) -> None:
    """Brief: Non-string YAML keys raise ConfigError rather than TypeError.

    Inputs:
      - text: YAML document with an integer key.
      - match: expected message fragment.

    Outputs:
      - None; asserts ConfigError.
    """

    path = tmp_path / "keys.yaml"
    path.write_text(text, encoding="utf-8")
    with pytest.raises(cp.ConfigError, match=match):
        cp.load_settings(str(path))
