"""Load and merge configuration from .gitcommander.toml and env vars."""

from __future__ import annotations

import dataclasses
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from gitcommander.config.schema import (
    LOG_LEVELS,
    GitCommanderConfig,
    GitConfig,
    LoggingConfig,
    OutputConfig,
    StatusConfig,
)

CONFIG_FILENAME = ".gitcommander.toml"


class ConfigError(Exception):
    """Raised when config is malformed or unreadable."""


def find_config_file(repo_root: Path, override: Optional[str] = None) -> Optional[Path]:
    """Locate the config file. *override* takes precedence."""
    if override:
        p = Path(override)
        if not p.is_file():
            raise ConfigError(f"Config file not found: {override}")
        return p
    candidate = repo_root / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


def _parse_toml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Failed to parse {path}: {exc}") from exc


def _merge_env_overrides(cfg: GitCommanderConfig) -> None:
    """Apply GITCOMMANDER_* environment variable overrides."""
    if val := os.environ.get("GITCOMMANDER_GIT"):
        cfg.git.executable = val
    if val := os.environ.get("GITCOMMANDER_TIMEOUT"):
        try:
            timeout = float(val)
        except ValueError:
            timeout = 0.0
        if timeout > 0:
            cfg.git.timeout = timeout
    if val := os.environ.get("GITCOMMANDER_LOCALE"):
        cfg.git.locale = val
    if val := os.environ.get("GITCOMMANDER_FORMAT"):
        if val in ("terminal", "json"):
            cfg.output.format = val  # type: ignore[assignment]
    if val := os.environ.get("GITCOMMANDER_LOG_LEVEL"):
        if val.lower() in LOG_LEVELS:
            cfg.logging.level = val.lower()  # type: ignore[assignment]


def _build_section(data: Dict[str, Any], cls: type, section: str):
    """Build a dataclass from a TOML section dict, ignoring unknown keys."""
    valid_fields = {f.name for f in dataclasses.fields(cls)}
    filtered = {k: v for k, v in data.get(section, {}).items() if k in valid_fields}
    return cls(**filtered)


def _validate(cfg: GitCommanderConfig, path: Path) -> None:
    if cfg.status.untracked_files not in ("all", "normal", "no"):
        raise ConfigError(f"{path}: [status] untracked_files must be all, normal or no")
    if cfg.output.format not in ("terminal", "json"):
        raise ConfigError(f"{path}: [output] format must be terminal or json")
    if cfg.logging.level not in LOG_LEVELS:
        raise ConfigError(f"{path}: [logging] level must be one of {', '.join(LOG_LEVELS)}")
    if cfg.git.timeout is not None and cfg.git.timeout <= 0:
        raise ConfigError(f"{path}: [git] timeout must be positive")
    if not isinstance(cfg.git.locale, str) or not cfg.git.locale:
        raise ConfigError(f"{path}: [git] locale must be a non-empty string")


def load_config(
    repo_root: Path,
    config_override: Optional[str] = None,
) -> GitCommanderConfig:
    """Load, validate, and return a GitCommanderConfig."""
    config_path = find_config_file(repo_root, config_override)

    if config_path is None:
        cfg = GitCommanderConfig()
    else:
        raw = _parse_toml(config_path)
        cfg = GitCommanderConfig(
            version=raw.get("version", "1.0"),
            git=_build_section(raw, GitConfig, "git"),
            status=_build_section(raw, StatusConfig, "status"),
            output=_build_section(raw, OutputConfig, "output"),
            logging=_build_section(raw, LoggingConfig, "logging"),
        )
        _validate(cfg, config_path)

    _merge_env_overrides(cfg)
    return cfg
