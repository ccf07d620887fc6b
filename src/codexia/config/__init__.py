"""Configuration models and parser for codexia.yaml."""

from codexia.config.models import (
    KNOWN_SANDBOX_MODES,
    CodexConfig,
    CodexiaConfig,
    RuntimeSettings,
    normalize_sandbox_mode,
)
from codexia.config.parser import ConfigError, load_config

__all__ = [
    "KNOWN_SANDBOX_MODES",
    "CodexConfig",
    "CodexiaConfig",
    "ConfigError",
    "RuntimeSettings",
    "load_config",
    "normalize_sandbox_mode",
]
