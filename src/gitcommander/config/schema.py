"""Configuration schema — dataclasses for every config section."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional

UntrackedMode = Literal["all", "normal", "no"]
OutputFormat = Literal["terminal", "json"]
LogLevel = Literal["debug", "info", "warning", "error"]

LOG_LEVELS: dict[str, int] = {
    "debug": 10,
    "info": 20,
    "warning": 30,
    "error": 40,
}


@dataclass
class GitConfig:
    executable: str = "git"
    timeout: Optional[float] = None  # seconds; None waits for git to exit
    locale: str = "C"  # LC_ALL / LANGUAGE for git; the parser expects English output


@dataclass
class StatusConfig:
    untracked_files: UntrackedMode = "all"


@dataclass
class OutputConfig:
    format: OutputFormat = "terminal"
    show_summary: bool = True


@dataclass
class LoggingConfig:
    level: LogLevel = "warning"


@dataclass
class GitCommanderConfig:
    version: str = "1.0"
    git: GitConfig = field(default_factory=GitConfig)
    status: StatusConfig = field(default_factory=StatusConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
