"""Data models for repository state — file states, conflicts, call results."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum, IntFlag
from typing import Any, Iterable, Optional


class FileStates(IntFlag):
    UNALTERED = 0
    MODIFIED_IN_WORKDIR = 1
    MODIFIED_IN_INDEX = 2
    NEW_IN_WORKDIR = 4
    NEW_IN_INDEX = 8
    DELETED_FROM_WORKDIR = 16
    DELETED_FROM_INDEX = 32
    RENAMED_IN_WORKDIR = 64
    RENAMED_IN_INDEX = 128
    TYPE_CHANGE_IN_WORKDIR = 256
    TYPE_CHANGE_IN_INDEX = 512
    CONFLICTED = 1024
    IGNORED = 2048
    UNREADABLE = 4096
    COPIED = 8192


UNSTAGED_STATES = (
    FileStates.NEW_IN_WORKDIR
    | FileStates.DELETED_FROM_WORKDIR
    | FileStates.MODIFIED_IN_WORKDIR
    | FileStates.RENAMED_IN_WORKDIR
    | FileStates.TYPE_CHANGE_IN_WORKDIR
    | FileStates.CONFLICTED
)

STAGED_STATES = (
    FileStates.NEW_IN_INDEX
    | FileStates.DELETED_FROM_INDEX
    | FileStates.MODIFIED_IN_INDEX
    | FileStates.RENAMED_IN_INDEX
    | FileStates.TYPE_CHANGE_IN_INDEX
)


class FileConflictTypes(str, Enum):
    NONE = "none"
    CHANGES = "changes"
    DELETED_BY_US = "deleted_by_us"
    DELETED_BY_THEM = "deleted_by_them"
    DELETED_BY_BOTH = "deleted_by_both"


class FileConflictSources(str, Enum):
    OURS = "ours"
    THEIRS = "theirs"


class SignatureLocations(str, Enum):
    LOCAL = "local"
    GLOBAL = "global"


def is_all_states(state: FileStates, states: Iterable[FileStates]) -> bool:
    """Return True if every flag in *states* is set in *state*."""
    return all(state & s for s in states)


def is_any_states(state: FileStates, states: Iterable[FileStates]) -> bool:
    """Return True if at least one flag in *states* is set in *state*."""
    return any(state & s for s in states)


@dataclass(frozen=True)
class FileState:
    """One file's entry in a status snapshot."""

    filename: str
    state: FileStates = FileStates.UNALTERED
    conflict_type: FileConflictTypes = FileConflictTypes.NONE

    def has_state(self, state: FileStates) -> bool:
        return bool(self.state & state)

    def is_all_states(self, states: Iterable[FileStates]) -> bool:
        return is_all_states(self.state, states)

    def is_any_states(self, states: Iterable[FileStates]) -> bool:
        return is_any_states(self.state, states)

    def is_unstaged(self) -> bool:
        return self.has_state(UNSTAGED_STATES)

    def is_staged(self) -> bool:
        return self.has_state(STAGED_STATES)

    def merged(self, extra: FileStates) -> FileState:
        """Return a copy with *extra* unioned in. The conflict type is kept."""
        return replace(self, state=self.state | extra)

    def __str__(self) -> str:
        return self.filename


@dataclass(frozen=True)
class Signature:
    name: str
    email: str


@dataclass(frozen=True)
class ObjectCount:
    count: int
    size: str  # e.g. '24 kilobytes'


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a single repository call.

    ``success`` is derived from the git error stream (and, for status calls,
    from the parser). ``value`` carries whatever the call produced: a list of
    FileState, a bool, a saved Path, a version string and so on.
    """

    success: bool
    stdout: str = ""
    stderr: str = ""
    value: Any = None
    error: Optional[str] = None  # parse or missing-data failure description

    def __bool__(self) -> bool:
        return self.success
