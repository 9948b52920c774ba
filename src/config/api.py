from __future__ import annotations

from typing import Optional

from .configmanager import (
    WATCH_INTERVAL,
    ConfigChangeCallback,
    ConfigError,
    ConfigManager,
    default_config_path,
    merge_with_defaults,
)
from .model import DEFAULT_PASSWORDS, Config, dedupe_passwords
from .validator import ConfigValidationError, validate_config


def load_config(config_path: Optional[str] = None) -> Config:
    """Public API (Config)

    Contract:
    - JSON document, default location ~/.pdf-merger/config.json.
    - Missing file -> defaults. Missing/non-positive fields -> defaults.
    - Missing enable_auto_decrypt keeps the prior (default: True) value.
    - common_passwords are de-duplicated, order preserved.
    """
    return ConfigManager(config_path).load()


__all__ = [
    "Config",
    "ConfigChangeCallback",
    "ConfigError",
    "ConfigManager",
    "ConfigValidationError",
    "DEFAULT_PASSWORDS",
    "WATCH_INTERVAL",
    "dedupe_passwords",
    "default_config_path",
    "load_config",
    "merge_with_defaults",
    "validate_config",
]
