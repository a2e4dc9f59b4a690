"""Status report parser — turns `git status` text into FileState records.

The report is grouped under section headers ("Changes to be committed:",
"Unmerged paths:" ...). Each entry line starts with a tab, a tag such as
``modified:`` and then the path. The meaning of a tag depends on the section
it appears in, so the parser is a small state machine keyed on the current
section.
"""

from __future__ import annotations

import logging
from enum import IntEnum
from typing import Dict, Iterable, List, Tuple, Union

from gitcommander.git.models import FileConflictTypes, FileState, FileStates

logger = logging.getLogger(__name__)


class StatusParseError(Exception):
    """Raised when a status line cannot be decoded."""


class ParseMode(IntEnum):
    UNSET = -1
    STAGED = 0
    UNSTAGED = 1
    CONFLICTED = 2
    UNTRACKED = 3


SECTION_HEADERS: Dict[str, ParseMode] = {
    "Changes to be committed:": ParseMode.STAGED,
    "Changes not staged for commit:": ParseMode.UNSTAGED,
    "Unmerged paths:": ParseMode.CONFLICTED,
    "Untracked files:": ParseMode.UNTRACKED,
}

_Rule = Tuple[str, FileStates, FileConflictTypes]

# --- Tag tables, tried in order within each section ---

_STAGED_RULES: List[_Rule] = [
    ("new file:", FileStates.NEW_IN_INDEX, FileConflictTypes.NONE),
    ("modified:", FileStates.MODIFIED_IN_INDEX, FileConflictTypes.NONE),
    ("deleted:", FileStates.DELETED_FROM_INDEX, FileConflictTypes.NONE),
    ("renamed:", FileStates.RENAMED_IN_INDEX, FileConflictTypes.NONE),
    ("copied:", FileStates.COPIED | FileStates.NEW_IN_INDEX, FileConflictTypes.NONE),
    ("typechange:", FileStates.TYPE_CHANGE_IN_INDEX, FileConflictTypes.NONE),
]

_UNSTAGED_RULES: List[_Rule] = [
    ("modified:", FileStates.MODIFIED_IN_WORKDIR, FileConflictTypes.NONE),
    ("deleted:", FileStates.DELETED_FROM_WORKDIR, FileConflictTypes.NONE),
    ("renamed:", FileStates.RENAMED_IN_WORKDIR, FileConflictTypes.NONE),
    ("copied:", FileStates.COPIED | FileStates.NEW_IN_WORKDIR, FileConflictTypes.NONE),
    ("typechange:", FileStates.TYPE_CHANGE_IN_WORKDIR, FileConflictTypes.NONE),
    # Untracked files normally land in their own section
    ("new file:", FileStates.NEW_IN_WORKDIR, FileConflictTypes.NONE),
]

_CONFLICTED_RULES: List[_Rule] = [
    ("both modified:", FileStates.CONFLICTED, FileConflictTypes.CHANGES),
    ("deleted by us:", FileStates.CONFLICTED, FileConflictTypes.DELETED_BY_US),
    ("deleted by them:", FileStates.CONFLICTED, FileConflictTypes.DELETED_BY_THEM),
    ("both deleted:", FileStates.CONFLICTED, FileConflictTypes.DELETED_BY_BOTH),
]

# An untracked entry has no tag: everything after the tab is the path.
_UNTRACKED_RULES: List[_Rule] = [
    ("", FileStates.NEW_IN_WORKDIR, FileConflictTypes.NONE),
]

MODE_RULES: Dict[ParseMode, List[_Rule]] = {
    ParseMode.STAGED: _STAGED_RULES,
    ParseMode.UNSTAGED: _UNSTAGED_RULES,
    ParseMode.CONFLICTED: _CONFLICTED_RULES,
    ParseMode.UNTRACKED: _UNTRACKED_RULES,
}

_ARROW = " -> "

# git's C-style escapes for quoted paths, besides \" \\ and octal bytes
_ESCAPES = {"a": 7, "b": 8, "t": 9, "n": 10, "v": 11, "f": 12, "r": 13}


def _strip_bom(line: str) -> str:
    """Remove UTF-8 BOM if present."""
    return line.lstrip("\ufeff")


def _normalise(line: str) -> str:
    """Strip a leading BOM and the trailing line terminator (CRLF or LF)."""
    return _strip_bom(line).rstrip("\r\n")


def _unquote(path: str) -> str:
    """Decode a path git wrapped in double quotes.

    Unquoted paths are returned unchanged. Octal escapes are raw bytes of a
    UTF-8 name, so they are collected and decoded together.
    """
    if len(path) < 2 or not (path.startswith('"') and path.endswith('"')):
        return path

    out = bytearray()
    body = path[1:-1]
    i = 0
    while i < len(body):
        ch = body[i]
        if ch != "\\" or i + 1 == len(body):
            out += ch.encode("utf-8")
            i += 1
            continue
        nxt = body[i + 1]
        octal = body[i + 1:i + 4]
        if len(octal) == 3 and all(c in "01234567" for c in octal):
            out.append(int(octal, 8) & 0xFF)
            i += 4
        elif nxt in _ESCAPES:
            out.append(_ESCAPES[nxt])
            i += 2
        else:
            out += nxt.encode("utf-8")
            i += 2
    return out.decode("utf-8", errors="replace")


def _looks_tagged(line: str) -> bool:
    """True for lines shaped like ``<tab>something:``."""
    tab = line.find("\t")
    return tab >= 0 and ":" in line[tab + 1:]


def _copy_target(remainder: str, line: str) -> str:
    """Return B from an ``A -> B`` copy entry."""
    _source, arrow, target = remainder.rpartition(_ARROW)
    if not arrow:
        raise StatusParseError(f"copy entry without 'source -> target': {line!r}")
    return target


class StatusParser:
    """Feed `git status` lines and collect one FileState per path.

    Usage::

        parser = StatusParser()
        ok = parser.feed(output.splitlines())
        if ok:
            for fs in parser.states:
                ...
    """

    def __init__(self) -> None:
        self.mode: ParseMode = ParseMode.UNSET
        self._states: Dict[str, FileState] = {}
        self.failed_lines: List[str] = []

    @property
    def states(self) -> List[FileState]:
        return list(self._states.values())

    def parse_line(self, line: str) -> bool:
        """Consume one line. Returns False for an unrecognised tagged line.

        Raises StatusParseError when a copy entry lacks its arrow.
        """
        line = _normalise(line)

        mode = SECTION_HEADERS.get(line)
        if mode is not None:
            logger.debug("status section: %s", mode.name)
            self.mode = mode
            return True

        for tag, flags, conflict in MODE_RULES.get(self.mode, ()):
            if self._apply(line, "\t" + tag, flags, conflict):
                return True

        if _looks_tagged(line):
            logger.warning("unrecognised status line in %s section: %r", self.mode.name, line)
            self.failed_lines.append(line)
            return False

        # blank lines, hints and other free text
        return True

    def feed(self, lines: Iterable[str]) -> bool:
        """Parse every line; return False if any of them failed."""
        ok = True
        for line in lines:
            if not self.parse_line(line):
                ok = False
        return ok

    def _apply(
        self,
        line: str,
        prefix: str,
        flags: FileStates,
        conflict: FileConflictTypes,
    ) -> bool:
        if not line.startswith(prefix):
            return False

        path = line[len(prefix):].lstrip()
        if not path:
            return False
        if flags & FileStates.COPIED:
            path = _copy_target(path, line)
        path = _unquote(path)

        existing = self._states.get(path)
        if existing is not None:
            self._states[path] = existing.merged(flags)
        else:
            self._states[path] = FileState(filename=path, state=flags, conflict_type=conflict)
        return True


def parse_status(output: Union[str, Iterable[str]]) -> List[FileState]:
    """Parse a whole status report. Raises StatusParseError on any failure."""
    lines = output.splitlines() if isinstance(output, str) else output
    parser = StatusParser()
    if not parser.feed(lines):
        raise StatusParseError(
            f"unrecognised status line(s): {', '.join(repr(l) for l in parser.failed_lines)}"
        )
    return parser.states

