"""Configuration loading, schema, and defaults."""

from gitcommander.config.loader import ConfigError, load_config
from gitcommander.config.schema import LOG_LEVELS, GitCommanderConfig

__all__ = [
    "ConfigError",
    "GitCommanderConfig",
    "LOG_LEVELS",
    "load_config",
]
