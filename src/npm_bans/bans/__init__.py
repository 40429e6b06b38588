"""Bans policy: which packages are denied, allowed or skipped."""

from .config import (
    ConfigError,
    ConfigValidationError,
    GraphHighlight,
    LintLevel,
    RawConfig,
    ValidConfig,
)
from .loader import load_config, parse_config

__all__ = [
    "ConfigError",
    "ConfigValidationError",
    "GraphHighlight",
    "LintLevel",
    "RawConfig",
    "ValidConfig",
    "load_config",
    "parse_config",
]
