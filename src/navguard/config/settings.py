from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, Field, validator

VALID_MODES = ("blacklist", "whitelist", "combined")


class RuleSettings(BaseModel):
    """Brief: Typed model for the ``rules`` section of the settings file.

    Inputs:
      - enabled: When False every URL is allowed ("blocking disabled").
      - mode: "blacklist", "whitelist" or "combined".
      - allow / deny: Ordered wildcard patterns (strings, or mappings with a
        ``pattern`` field). Entries are not validated here; compile_rules
        reports bad ones as diagnostics.
      - allow_keywords / deny_keywords: Strings or ``{pattern: str}`` mappings.
      - star_spans_segments: Let ``/a/*/d`` match ``/a/b/c/d``.
      - allow_wins_ties: Equal-specificity allow/deny conflicts favour allow.
      - temporary_allow_seconds: Lifetime of a temporary unblock.
      - log_blocked: Keep a bounded in-memory log of blocked navigations.
      - log_max_entries: Size of that log.

    Outputs:
      - RuleSettings instance with normalized field types.
    """

    enabled: bool = True
    mode: str = Field(default="blacklist")
    allow: List[Any] = Field(default_factory=list)
    deny: List[Any] = Field(default_factory=list)
    allow_keywords: List[Any] = Field(default_factory=list)
    deny_keywords: List[Any] = Field(default_factory=list)
    star_spans_segments: bool = False
    allow_wins_ties: bool = True
    temporary_allow_seconds: int = Field(default=1800, ge=0)
    log_blocked: bool = False
    log_max_entries: int = Field(default=100, ge=1)

    class Config:
        extra = "forbid"

    @validator("mode", pre=True)
    def _normalize_mode(cls, v):  # type: ignore[no-untyped-def]
        """Brief: Lowercase the mode and reject unknown names.

        Example:
          - "Combined" -> "combined"
        """

        s = str(v if v is not None else "blacklist").strip().lower()
        if s not in VALID_MODES:
            raise ValueError(f"mode must be one of {', '.join(VALID_MODES)}")
        return s

    @validator("allow", "deny", "allow_keywords", "deny_keywords", pre=True)
    def _coerce_list(cls, v):  # type: ignore[no-untyped-def]
        # YAML "allow:" with no items parses as None; a lone string is one rule.
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return v


class AppSettings(BaseModel):
    """Brief: Root settings model.

    Inputs:
      - logging: Mapping passed to init_logging (level, stderr, file, syslog).
      - rules: RuleSettings.

    Outputs:
      - AppSettings instance.
    """

    logging: Dict[str, Any] = Field(default_factory=dict)
    rules: RuleSettings = Field(default_factory=RuleSettings)

    class Config:
        extra = "forbid"

    @validator("logging", pre=True)
    def _none_to_dict(cls, v):  # type: ignore[no-untyped-def]
        return {} if v is None else v
