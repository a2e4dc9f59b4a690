"""Git interface layer — process runner, status parsing, repository façade."""

from gitcommander.git.models import (
    CommandResult,
    FileConflictSources,
    FileConflictTypes,
    FileState,
    FileStates,
    ObjectCount,
    Signature,
    SignatureLocations,
    is_all_states,
    is_any_states,
)
from gitcommander.git.repository import Repository, git_version
from gitcommander.git.runner import GitError, RunResult, run
from gitcommander.git.status_parser import ParseMode, StatusParseError, StatusParser, parse_status

__all__ = [
    "CommandResult",
    "FileConflictSources",
    "FileConflictTypes",
    "FileState",
    "FileStates",
    "GitError",
    "ObjectCount",
    "ParseMode",
    "Repository",
    "RunResult",
    "Signature",
    "SignatureLocations",
    "StatusParseError",
    "StatusParser",
    "git_version",
    "is_all_states",
    "is_any_states",
    "parse_status",
    "run",
]
