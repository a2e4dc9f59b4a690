"""Rich terminal reporter — file state table with staged/unstaged markers."""

from __future__ import annotations

from typing import List

from rich.console import Console
from rich.table import Table
from rich.text import Text

from gitcommander.git.models import FileConflictTypes, FileState, FileStates

_STATE_LABELS = [
    (FileStates.NEW_IN_INDEX, "new", "green"),
    (FileStates.MODIFIED_IN_INDEX, "modified", "green"),
    (FileStates.DELETED_FROM_INDEX, "deleted", "green"),
    (FileStates.RENAMED_IN_INDEX, "renamed", "green"),
    (FileStates.TYPE_CHANGE_IN_INDEX, "typechange", "green"),
    (FileStates.NEW_IN_WORKDIR, "untracked", "red"),
    (FileStates.MODIFIED_IN_WORKDIR, "modified", "red"),
    (FileStates.DELETED_FROM_WORKDIR, "deleted", "red"),
    (FileStates.RENAMED_IN_WORKDIR, "renamed", "red"),
    (FileStates.TYPE_CHANGE_IN_WORKDIR, "typechange", "red"),
    (FileStates.COPIED, "copied", "cyan"),
    (FileStates.CONFLICTED, "conflicted", "bold white on red"),
]

_CONFLICT_LABELS = {
    FileConflictTypes.NONE: "",
    FileConflictTypes.CHANGES: "both modified",
    FileConflictTypes.DELETED_BY_US: "deleted by us",
    FileConflictTypes.DELETED_BY_THEM: "deleted by them",
    FileConflictTypes.DELETED_BY_BOTH: "both deleted",
}


def state_text(file_state: FileState) -> Text:
    """Render the set bits of a FileState as coloured words."""
    text = Text()
    for flag, label, style in _STATE_LABELS:
        if file_state.has_state(flag):
            if text:
                text.append(" ")
            text.append(label, style=style)
    return text


def _mark(flag: bool) -> str:
    return "[green]✓[/green]" if flag else ""


def render(file_states: List[FileState], *, show_summary: bool = True) -> None:
    """Print a status snapshot to the terminal using Rich."""
    console = Console()

    if not file_states:
        console.print("[bold green]Nothing to commit, working tree clean.[/bold green]")
        return

    table = Table(title="Repository Status", title_style="bold", border_style="dim")
    table.add_column("File", style="magenta")
    table.add_column("State", min_width=12)
    table.add_column("Staged", justify="center")
    table.add_column("Unstaged", justify="center")
    table.add_column("Conflict", style="yellow")

    for fs in file_states:
        table.add_row(
            fs.filename,
            state_text(fs),
            _mark(fs.is_staged()),
            _mark(fs.is_unstaged()),
            _CONFLICT_LABELS[fs.conflict_type],
        )

    console.print(table)

    if show_summary:
        _print_summary(console, file_states)


def _print_summary(console: Console, file_states: List[FileState]) -> None:
    staged = sum(1 for fs in file_states if fs.is_staged())
    unstaged = sum(1 for fs in file_states if fs.is_unstaged())
    conflicted = sum(1 for fs in file_states if fs.has_state(FileStates.CONFLICTED))
    console.print()
    console.print(f"[dim]Files:[/dim]       {len(file_states)}")
    console.print(f"[dim]Staged:[/dim]      {staged}")
    console.print(f"[dim]Unstaged:[/dim]    {unstaged}")
    console.print(f"[dim]Conflicted:[/dim]  {conflicted}")
