"""JSON reporter for scripts and editor integrations."""

from __future__ import annotations

import json
from typing import Any, Dict, List

from gitcommander.git.models import FileState, FileStates


def _flag_names(state: FileStates) -> List[str]:
    return [flag.name.lower() for flag in FileStates if flag and state & flag]


def file_state_to_dict(fs: FileState) -> Dict[str, Any]:
    return {
        "filename": fs.filename,
        "state": int(fs.state),
        "states": _flag_names(fs.state),
        "conflict_type": fs.conflict_type.value,
        "staged": fs.is_staged(),
        "unstaged": fs.is_unstaged(),
    }


def to_dict(file_states: List[FileState]) -> Dict[str, Any]:
    """Convert a status snapshot to a JSON-serialisable dict."""
    return {
        "version": "1.0",
        "total_files": len(file_states),
        "files": [file_state_to_dict(fs) for fs in file_states],
    }


def render(file_states: List[FileState]) -> str:
    """Return formatted JSON string."""
    return json.dumps(to_dict(file_states), indent=2)
