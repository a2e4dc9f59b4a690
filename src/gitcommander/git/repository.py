"""Repository façade — one git invocation per operation, results per call."""

from __future__ import annotations

import logging
import re
import threading
from pathlib import Path
from typing import Callable, List, Optional, Sequence, TextIO

from gitcommander.git import runner
from gitcommander.git.models import (
    CommandResult,
    FileConflictSources,
    ObjectCount,
    Signature,
    SignatureLocations,
)
from gitcommander.git.runner import GitError, LineCallback
from gitcommander.git.status_parser import StatusParseError, StatusParser

logger = logging.getLogger(__name__)

CredentialCallback = Callable[[TextIO], None]

_CLONING_INTO_RE = re.compile(r"Cloning into '(.*)'\.\.\.")
_CLONE_FAILURE_RE = re.compile(r"^(fatal|error):", re.MULTILINE)
_COUNT_OBJECTS_RE = re.compile(r"(\d+) objects, (\d+ kilobytes)")
_MERGE_PENDING_LINE = "All conflicts fixed but you are still merging."

# Parsed output must not depend on the user's colour or path-quoting settings.
_GIT_PREFIX = ["-c", "color.ui=false", "-c", "core.quotePath=false"]


def _invoke(
    git: str,
    args: Sequence[str],
    cwd: Optional[Path],
    timeout: Optional[float] = None,
    locale: str = "C",
    **kwargs,
) -> runner.RunResult:
    # headers and tags are only recognised in English
    return runner.run(
        git,
        [*_GIT_PREFIX, *args],
        cwd=cwd,
        env={"LC_ALL": locale, "LANGUAGE": locale},
        timeout=timeout,
        **kwargs,
    )


def _result(run: runner.RunResult, value=None, error: Optional[str] = None) -> CommandResult:
    return CommandResult(
        success=not run.stderr and error is None,
        stdout=run.stdout,
        stderr=run.stderr,
        value=value,
        error=error,
    )


class Repository:
    """A git working tree driven through the git command line.

    Every public method holds the instance lock for the whole call, so
    operations issued from different threads never interleave.
    """

    def __init__(
        self,
        path: Path,
        url: str = "",
        git: str = "git",
        timeout: Optional[float] = None,
        untracked_files: str = "all",
        locale: str = "C",
    ) -> None:
        self.path = Path(path)
        self.url = url
        self.git = git
        self.timeout = timeout
        self.untracked_files = untracked_files
        self.locale = locale
        self._lock = threading.RLock()

    def __repr__(self) -> str:
        return f"Repository({str(self.path)!r})"

    # --- opening / cloning ---

    @classmethod
    def open(cls, path: Path, git: str = "git", locale: str = "C", **kwargs) -> Repository:
        """Open an existing working tree. Raises GitError if *path* is not one."""
        path = Path(path)
        check = _invoke(git, ["rev-parse", "--git-dir"], cwd=path, locale=locale)
        if check.stderr:
            raise GitError(f"not a git repository: {path}: {check.stderr}")

        remote = _invoke(git, ["ls-remote", "--get-url"], cwd=path, locale=locale)
        url = remote.stdout.strip().splitlines()[-1] if remote.stdout.strip() else ""
        logger.debug("opened %s (remote=%s)", path, url or "-")
        return cls(path, url=url, git=git, locale=locale, **kwargs)

    @staticmethod
    def clone(
        url: str,
        path: Path,
        write_username: Optional[CredentialCallback] = None,
        write_password: Optional[CredentialCallback] = None,
        git: str = "git",
        locale: str = "C",
    ) -> CommandResult:
        """Clone *url* into the directory *path*.

        The credential callbacks receive the child's stdin when git asks
        for a username or password. ``value`` is the clone's target path.
        """
        stdin: List[TextIO] = []

        def _check_prompt(line: str) -> None:
            if "Username for" in line and write_username is not None and stdin:
                write_username(stdin[0])
            if "Password for" in line and write_password is not None and stdin:
                write_password(stdin[0])

        run = _invoke(
            git,
            ["clone", url],
            cwd=Path(path),
            locale=locale,
            on_stdout_line=_check_prompt,
            on_stderr_line=_check_prompt,
            on_stdin_ready=stdin.append,
        )

        target: Optional[Path] = None
        match = _CLONING_INTO_RE.search(run.stderr) or _CLONING_INTO_RE.search(run.stdout)
        if match:
            target = Path(path) / match.group(1)

        # git announces the clone on stderr; that alone is not a failure
        success = not run.stderr or (
            match is not None and not _CLONE_FAILURE_RE.search(run.stderr)
        )
        if not success:
            logger.debug("clone of %s failed: %s", url, run.stderr)
        return CommandResult(success=success, stdout=run.stdout, stderr=run.stderr, value=target)

    # --- plumbing ---

    def _run(self, args: Sequence[str], **kwargs) -> runner.RunResult:
        return _invoke(
            self.git, args, cwd=self.path, timeout=self.timeout, locale=self.locale, **kwargs
        )

    def _simple(self, args: Sequence[str], on_stdout_line: Optional[LineCallback] = None) -> CommandResult:
        with self._lock:
            run = self._run(args, on_stdout_line=on_stdout_line)
            result = _result(run)
            if not result.success:
                logger.debug("git %s failed: %s", " ".join(args), run.stderr)
            return result

    # --- status ---

    def _status(self, extra: Sequence[str]) -> CommandResult:
        parser = StatusParser()
        error: Optional[str] = None

        def _on_line(line: str) -> None:
            nonlocal error
            if error is not None:
                return
            try:
                parser.parse_line(line)
            except StatusParseError as exc:
                error = str(exc)

        with self._lock:
            run = self._run(
                ["status", f"--untracked-files={self.untracked_files}", *extra],
                on_stdout_line=_on_line,
            )

        if error is None and parser.failed_lines:
            error = f"unrecognised status line: {parser.failed_lines[0]!r}"
        if run.stderr or error is not None:
            logger.debug("status failed: %s", error or run.stderr)
            return _result(run, error=error)
        return _result(run, value=parser.states)

    def get_file_states(self) -> CommandResult:
        """Return every changed path as a list of FileState in ``value``."""
        return self._status([])

    def get_file_state(self, filename: str) -> CommandResult:
        """Return the FileState of a single path in ``value``."""
        result = self._status(["--", filename])
        if not result.success:
            return result
        if not result.value:
            return CommandResult(
                success=False,
                stdout=result.stdout,
                stderr=result.stderr,
                error=f"no status reported for {filename}",
            )
        return CommandResult(success=True, stdout=result.stdout, stderr=result.stderr, value=result.value[0])

    # --- index / working tree ---

    def stage(self, filename: str) -> CommandResult:
        return self._simple(["add", "--", filename])

    def stage_all(self) -> CommandResult:
        return self._simple(["add", "-A"])

    def unstage(self, filename: str) -> CommandResult:
        return self._simple(["reset", "--", filename])

    def unstage_all(self) -> CommandResult:
        return self._simple(["reset"])

    def revert_file(self, active_branch: str, filename: str) -> CommandResult:
        return self._simple(["checkout", "--quiet", active_branch, "--", filename])

    def revert_all_changes(self) -> CommandResult:
        """Discard every staged and unstaged change (reset --hard)."""
        return self._simple(["reset", "--hard"])

    def remove_file(self, filename: str) -> CommandResult:
        return self._simple(["rm", "--", filename])

    def commit(self, message: str) -> CommandResult:
        return self._simple(["commit", "-m", message])

    def get_diff(self, filename: str) -> CommandResult:
        """Diff *filename* against HEAD; the text is in ``value``."""
        result = self._simple(["diff", "HEAD", "--", filename])
        return CommandResult(
            success=result.success, stdout=result.stdout, stderr=result.stderr, value=result.stdout
        )

    # --- remotes ---

    def fetch(self, remote: Optional[str] = None, branch: Optional[str] = None) -> CommandResult:
        args = ["fetch", "--quiet"]
        if remote:
            args.append(remote)
            if branch:
                args.append(branch)
        return self._simple(args)

    def pull(self) -> CommandResult:
        return self._simple(["pull", "--quiet"])

    def push(self) -> CommandResult:
        return self._simple(["push", "--quiet"])

    # --- conflicts ---

    def conflicts_exist(self) -> CommandResult:
        """``value`` is True while any path is still unmerged."""
        found = False

        def _on_line(line: str) -> None:
            nonlocal found
            found = True

        result = self._simple(["diff", "--name-only", "--diff-filter=U"], on_stdout_line=_on_line)
        return CommandResult(success=result.success, stdout=result.stdout, stderr=result.stderr, value=found)

    def completed_merge_commit_pending(self) -> CommandResult:
        """``value`` is True when conflicts are resolved but the merge is uncommitted."""
        pending = False

        def _on_line(line: str) -> None:
            nonlocal pending
            if line == _MERGE_PENDING_LINE:
                pending = True

        result = self._simple(["status"], on_stdout_line=_on_line)
        return CommandResult(success=result.success, stdout=result.stdout, stderr=result.stderr, value=pending)

    def _save_blob(self, rev: str, filename: str, suffix: str) -> CommandResult:
        saved = self.path / f"{filename}{suffix}"
        with self._lock:
            run = self._run(["show", f"{rev}:{filename}"], stdout_to_file=saved)
        return _result(run, value=saved)

    def save_original_file(self, filename: str) -> CommandResult:
        """Write the HEAD version of *filename* to ``<filename>.orig``."""
        return self._save_blob("HEAD", filename, ".orig")

    def save_conflicted_file(self, filename: str, source: FileConflictSources) -> CommandResult:
        """Write our (``.ours``) or their (``.theirs``) version of *filename*."""
        if source == FileConflictSources.OURS:
            return self._save_blob("ORIG_HEAD", filename, ".ours")
        return self._save_blob("MERGE_HEAD", filename, ".theirs")

    def checkout_conflicted_file(self, filename: str, source: FileConflictSources) -> CommandResult:
        side = "--ours" if source == FileConflictSources.OURS else "--theirs"
        return self._simple(["checkout", "--quiet", side, "--", filename])

    # --- configuration and maintenance ---

    def get_signature(self, location: SignatureLocations = SignatureLocations.LOCAL) -> CommandResult:
        """``value`` is a Signature read from user.name / user.email."""
        scope = f"--{location.value}"
        with self._lock:
            name = self._run(["config", scope, "user.name"])
            if name.stderr:
                return _result(name)
            email = self._run(["config", scope, "user.email"])
        value = Signature(name=name.stdout.strip(), email=email.stdout.strip())
        return CommandResult(
            success=not email.stderr,
            stdout="\n".join(filter(None, [name.stdout, email.stdout])),
            stderr=email.stderr,
            value=value,
        )

    def set_signature(self, location: SignatureLocations, name: str, email: str) -> CommandResult:
        scope = f"--{location.value}"
        with self._lock:
            result = self._simple(["config", scope, "user.name", name])
            if not result.success:
                return result
            return self._simple(["config", scope, "user.email", email])

    def unpacked_object_count(self) -> CommandResult:
        """``value`` is an ObjectCount, or None when git's output is unusable."""
        result = self._simple(["count-objects"])
        if not result.success:
            return result
        match = _COUNT_OBJECTS_RE.search(result.stdout)
        if not match:
            return CommandResult(
                success=False,
                stdout=result.stdout,
                stderr=result.stderr,
                error=f"unexpected count-objects output: {result.stdout!r}",
            )
        count = ObjectCount(count=int(match.group(1)), size=match.group(2))
        return CommandResult(success=True, stdout=result.stdout, stderr=result.stderr, value=count)

    def garbage_collect(self) -> CommandResult:
        return self._simple(["gc", "--quiet"])

    def get_version(self) -> CommandResult:
        return git_version(self.git, locale=self.locale)


def git_version(git: str = "git", locale: str = "C") -> CommandResult:
    """``value`` is the ``git version`` line, e.g. 'git version 2.43.0'."""
    run = _invoke(git, ["version"], cwd=None, locale=locale)
    version = run.stdout.strip()
    if not version:
        return _result(run, error="git version produced no output")
    return _result(run, value=version)
