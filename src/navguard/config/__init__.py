"""Settings models, YAML loading and logging setup."""

from .config_parser import ConfigError, load_settings, settings_from_mapping
from .logging_config import init_logging
from .settings import AppSettings, RuleSettings

__all__ = [
    "AppSettings",
    "ConfigError",
    "RuleSettings",
    "init_logging",
    "load_settings",
    "settings_from_mapping",
]
