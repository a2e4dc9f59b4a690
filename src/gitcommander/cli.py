"""GitCommander CLI — Typer application over the Repository façade."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from gitcommander import __version__
from gitcommander.config import LOG_LEVELS, GitCommanderConfig
from gitcommander.git.models import CommandResult, FileConflictSources, SignatureLocations

app = typer.Typer(
    name="gitcommander",
    help="Run git and read back the state of your working tree.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console(stderr=True)


class _State:
    config_path: Optional[str] = None
    verbose: bool = False
    debug: bool = False


_state = _State()


def _configure_logging(cfg: GitCommanderConfig) -> None:
    if _state.debug:
        level = logging.DEBUG
    elif _state.verbose:
        level = logging.INFO
    else:
        level = LOG_LEVELS[cfg.logging.level]
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load(repo_root: Path) -> GitCommanderConfig:
    from gitcommander.config.loader import ConfigError, load_config

    try:
        cfg = load_config(repo_root, _state.config_path)
    except ConfigError as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc
    _configure_logging(cfg)
    return cfg


def _open_repo():
    """Open the repository in the current directory, exit 2 on failure."""
    from gitcommander.git.repository import Repository
    from gitcommander.git.runner import GitError

    cwd = Path.cwd()
    cfg = _load(cwd)
    try:
        repo = Repository.open(
            cwd,
            git=cfg.git.executable,
            timeout=cfg.git.timeout,
            untracked_files=cfg.status.untracked_files,
            locale=cfg.git.locale,
        )
    except GitError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc
    return repo, cfg


def _finish(result: CommandResult, done: str) -> None:
    """Report a façade result and set the exit code."""
    if result.success:
        if result.stdout and _state.verbose:
            console.print(result.stdout, markup=False, highlight=False)
        console.print(f"[green]✓[/green] {done}")
        raise typer.Exit(code=0)
    console.print("[red]✗[/red] git reported an error")
    for text in (result.error, result.stderr):
        if text:
            console.print(text, markup=False, highlight=False)
    raise typer.Exit(code=1)


def _run_or_exit(call, *args):
    from gitcommander.git.runner import GitError

    try:
        return call(*args)
    except GitError as exc:
        console.print(f"[bold red]Git error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc


# ── status ────────────────────────────────────────────────────────────────────


@app.command()
def status(
    filename: Optional[str] = typer.Argument(None, help="Report a single path"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: terminal | json"),
) -> None:
    """Show the state of every changed file."""
    from gitcommander.output import json_report, terminal

    repo, cfg = _open_repo()
    if format:
        if format not in ("terminal", "json"):
            console.print(f"[bold red]Invalid format:[/bold red] {format}")
            raise typer.Exit(code=2)
        cfg.output.format = format  # type: ignore[assignment]

    if filename:
        result = _run_or_exit(repo.get_file_state, filename)
    else:
        result = _run_or_exit(repo.get_file_states)

    if not result.success:
        _finish(result, "")

    states = [result.value] if filename else result.value
    if cfg.output.format == "json":
        print(json_report.render(states))
    else:
        terminal.render(states, show_summary=cfg.output.show_summary)


# ── index / working tree ──────────────────────────────────────────────────────


@app.command()
def stage(
    filename: Optional[str] = typer.Argument(None, help="Path to stage"),
    all_files: bool = typer.Option(False, "--all", "-A", help="Stage every change"),
) -> None:
    """Add a file (or everything) to the index."""
    repo, _ = _open_repo()
    if all_files:
        _finish(_run_or_exit(repo.stage_all), "Staged all changes")
    if not filename:
        console.print("[bold red]Error:[/bold red] give a path or --all")
        raise typer.Exit(code=2)
    _finish(_run_or_exit(repo.stage, filename), f"Staged {filename}")


@app.command()
def unstage(
    filename: Optional[str] = typer.Argument(None, help="Path to unstage"),
    all_files: bool = typer.Option(False, "--all", "-A", help="Unstage everything"),
) -> None:
    """Remove a file (or everything) from the index."""
    repo, _ = _open_repo()
    if all_files:
        _finish(_run_or_exit(repo.unstage_all), "Unstaged all changes")
    if not filename:
        console.print("[bold red]Error:[/bold red] give a path or --all")
        raise typer.Exit(code=2)
    _finish(_run_or_exit(repo.unstage, filename), f"Unstaged {filename}")


@app.command()
def revert(
    filename: str = typer.Argument(..., help="Path to restore"),
    ref: str = typer.Option("HEAD", "--ref", "-r", help="Branch or commit to restore from"),
) -> None:
    """Restore a file from a branch, discarding its changes."""
    repo, _ = _open_repo()
    _finish(_run_or_exit(repo.revert_file, ref, filename), f"Reverted {filename} to {ref}")


@app.command(name="reset-all")
def reset_all(
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Discard ALL staged and unstaged changes."""
    repo, _ = _open_repo()
    if not yes and not typer.confirm("Discard every change in the working tree?"):
        raise typer.Exit(code=1)
    _finish(_run_or_exit(repo.revert_all_changes), "Discarded all changes")


@app.command(name="rm")
def remove(filename: str = typer.Argument(..., help="Path to remove")) -> None:
    """Remove a file from the working tree and the index."""
    repo, _ = _open_repo()
    _finish(_run_or_exit(repo.remove_file, filename), f"Removed {filename}")


@app.command()
def commit(message: str = typer.Option(..., "--message", "-m", help="Commit message")) -> None:
    """Commit the staged changes."""
    repo, _ = _open_repo()
    _finish(_run_or_exit(repo.commit, message), "Committed")


@app.command()
def diff(filename: str = typer.Argument(..., help="Path to diff against HEAD")) -> None:
    """Print the diff of a file against HEAD."""
    repo, _ = _open_repo()
    result = _run_or_exit(repo.get_diff, filename)
    if not result.success:
        _finish(result, "")
    print(result.value)


# ── remotes ───────────────────────────────────────────────────────────────────


@app.command()
def fetch(
    remote: Optional[str] = typer.Argument(None, help="Remote name"),
    branch: Optional[str] = typer.Argument(None, help="Branch on the remote"),
) -> None:
    """Fetch from the default remote, or a given remote and branch."""
    repo, _ = _open_repo()
    _finish(_run_or_exit(repo.fetch, remote, branch), "Fetched")


@app.command()
def pull() -> None:
    """Pull the current branch."""
    repo, _ = _open_repo()
    _finish(_run_or_exit(repo.pull), "Pulled")


@app.command()
def push() -> None:
    """Push the current branch."""
    repo, _ = _open_repo()
    _finish(_run_or_exit(repo.push), "Pushed")


@app.command()
def clone(
    url: str = typer.Argument(..., help="Repository URL"),
    directory: Path = typer.Argument(Path("."), help="Directory to clone into"),
    username: Optional[str] = typer.Option(None, "--username", "-u", help="Answer for username prompts"),
    password: Optional[str] = typer.Option(None, "--password", "-p", help="Answer for password prompts"),
) -> None:
    """Clone a repository, answering credential prompts if asked."""
    from gitcommander.git.repository import Repository

    cfg = _load(Path.cwd())

    def _write(answer: Optional[str]):
        if answer is None:
            return None
        return lambda stdin: stdin.write(answer + "\n")

    result = _run_or_exit(
        lambda: Repository.clone(
            url,
            directory,
            _write(username),
            _write(password),
            git=cfg.git.executable,
            locale=cfg.git.locale,
        )
    )
    _finish(result, f"Cloned into {result.value or directory}")


# ── conflicts ─────────────────────────────────────────────────────────────────


@app.command()
def conflicts() -> None:
    """Exit 1 while unmerged paths remain, 0 otherwise."""
    repo, _ = _open_repo()
    result = _run_or_exit(repo.conflicts_exist)
    if not result.success:
        _finish(result, "")
    if result.value:
        console.print("[yellow]⚠[/yellow]  Unresolved conflicts remain")
        raise typer.Exit(code=1)
    console.print("[green]✓[/green] No conflicts")


@app.command(name="merge-pending")
def merge_pending() -> None:
    """Exit 1 if conflicts are resolved but the merge commit is still missing."""
    repo, _ = _open_repo()
    result = _run_or_exit(repo.completed_merge_commit_pending)
    if not result.success:
        _finish(result, "")
    if result.value:
        console.print("[yellow]⚠[/yellow]  All conflicts fixed; merge commit pending")
        raise typer.Exit(code=1)
    console.print("[green]✓[/green] No merge commit pending")


@app.command(name="save-conflict")
def save_conflict(
    filename: str = typer.Argument(..., help="Conflicted path"),
    side: str = typer.Option("ours", "--side", "-s", help="original | ours | theirs"),
) -> None:
    """Save one version of a conflicted file next to it (.orig/.ours/.theirs)."""
    repo, _ = _open_repo()
    if side == "original":
        result = _run_or_exit(repo.save_original_file, filename)
    elif side in ("ours", "theirs"):
        result = _run_or_exit(repo.save_conflicted_file, filename, FileConflictSources(side))
    else:
        console.print(f"[bold red]Invalid side:[/bold red] {side}")
        raise typer.Exit(code=2)
    _finish(result, f"Saved {result.value}")


@app.command(name="checkout-conflict")
def checkout_conflict(
    filename: str = typer.Argument(..., help="Conflicted path"),
    side: FileConflictSources = typer.Option(FileConflictSources.OURS, "--side", "-s", help="ours | theirs"),
) -> None:
    """Resolve a conflicted file by taking one side."""
    repo, _ = _open_repo()
    result = _run_or_exit(repo.checkout_conflicted_file, filename, side)
    _finish(result, f"Checked out {side.value} for {filename}")


# ── configuration and maintenance ─────────────────────────────────────────────


@app.command()
def signature(
    name: Optional[str] = typer.Option(None, "--name", help="Set user.name"),
    email: Optional[str] = typer.Option(None, "--email", help="Set user.email"),
    location: SignatureLocations = typer.Option(SignatureLocations.LOCAL, "--location", "-l"),
) -> None:
    """Show or set the commit signature (user.name / user.email)."""
    repo, _ = _open_repo()
    if name is not None or email is not None:
        if name is None or email is None:
            console.print("[bold red]Error:[/bold red] --name and --email go together")
            raise typer.Exit(code=2)
        _finish(_run_or_exit(repo.set_signature, location, name, email), "Signature updated")

    result = _run_or_exit(repo.get_signature, location)
    if not result.success:
        _finish(result, "")
    print(f"{result.value.name} <{result.value.email}>")


@app.command(name="count-objects")
def count_objects() -> None:
    """Show how many loose objects the repository holds."""
    repo, _ = _open_repo()
    result = _run_or_exit(repo.unpacked_object_count)
    if not result.success:
        _finish(result, "")
    print(f"{result.value.count} objects, {result.value.size}")


@app.command()
def gc() -> None:
    """Run git's garbage collector."""
    repo, _ = _open_repo()
    _finish(_run_or_exit(repo.garbage_collect), "Garbage collected")


@app.command(name="git-version")
def git_version_cmd() -> None:
    """Print the version of the git executable in use."""
    from gitcommander.git.repository import git_version

    cfg = _load(Path.cwd())
    result = _run_or_exit(git_version, cfg.git.executable, cfg.git.locale)
    if not result.success:
        _finish(result, "")
    print(result.value)


# ── init ──────────────────────────────────────────────────────────────────────


@app.command()
def init() -> None:
    """Generate a starter .gitcommander.toml in the repo root."""
    from gitcommander.config.defaults import DEFAULT_TOML
    from gitcommander.config.loader import CONFIG_FILENAME
    from gitcommander.git.repository import Repository

    # an existing config may be broken; do not parse it here
    repo = _run_or_exit(Repository.open, Path.cwd())
    config_path = repo.path / CONFIG_FILENAME

    if config_path.exists():
        console.print(f"[yellow]⚠[/yellow]  {CONFIG_FILENAME} already exists at {config_path}")
        raise typer.Exit(code=1)

    config_path.write_text(DEFAULT_TOML, encoding="utf-8")
    console.print(f"[green]✓[/green] Created {config_path}")


# ── version ───────────────────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        print(f"gitcommander {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .gitcommander.toml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    debug: bool = typer.Option(False, "--debug", help="Log every git invocation"),
    version: bool = typer.Option(
        False, "--version", "-V", callback=_version_callback,
        is_eager=True, help="Show version and exit",
    ),
) -> None:
    """GitCommander — run git and read back the state of your working tree."""
    _state.config_path = config
    _state.verbose = verbose
    _state.debug = debug
