"""Subprocess wrapper — run a tool, stream its output line by line."""

from __future__ import annotations

import contextlib
import io
import logging
import os
import subprocess
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, TextIO

logger = logging.getLogger(__name__)

LineCallback = Callable[[str], None]
StdinCallback = Callable[[TextIO], None]


class GitError(Exception):
    """Raised when git is unavailable or cannot be run at all."""


@dataclass(frozen=True)
class RunResult:
    stdout: str
    stderr: str
    returncode: int


def _decode(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace").rstrip("\r\n")


def _drain(stream, callback: Optional[LineCallback], sink: List[str]) -> None:
    for raw in iter(stream.readline, b""):
        line = _decode(raw)
        sink.append(line)
        if callback is not None:
            callback(line)
    stream.close()


def _drain_in_thread(
    stream, callback: Optional[LineCallback], sink: List[str], errors: List[BaseException]
) -> None:
    try:
        _drain(stream, callback, sink)
    except Exception as exc:
        # keep reading so the child never blocks on a full pipe
        errors.append(exc)
        _drain(stream, None, sink)


def run(
    tool: str,
    args: Sequence[str],
    cwd: Optional[Path] = None,
    on_stdout_line: Optional[LineCallback] = None,
    on_stderr_line: Optional[LineCallback] = None,
    on_stdin_ready: Optional[StdinCallback] = None,
    stdout_to_file: Optional[Path] = None,
    env: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = None,
) -> RunResult:
    """Run *tool* with *args* and wait for it to exit.

    Line callbacks fire once per line, in order, before this returns. If a
    callback raises, the child is killed and the exception propagates. When
    *stdout_to_file* is given the byte stream is written there verbatim and
    the captured stdout is empty. Raises GitError if the tool cannot be
    started or *timeout* expires.
    """
    cmd = [tool, *args]
    logger.debug("run: %s (cwd=%s)", " ".join(cmd), cwd)

    full_env = None
    if env:
        full_env = {**os.environ, **env}

    try:
        proc = subprocess.Popen(
            cmd,
            cwd=cwd,
            env=full_env,
            stdin=subprocess.PIPE if on_stdin_ready else subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
    except FileNotFoundError:
        raise GitError(f"{tool} is not installed or not on PATH")

    timed_out = threading.Event()

    def _kill() -> None:
        timed_out.set()
        proc.kill()

    timer = threading.Timer(timeout, _kill) if timeout is not None and timeout > 0 else None
    if timer is not None:
        timer.start()

    err_lines: List[str] = []
    err_errors: List[BaseException] = []
    err_reader = threading.Thread(
        target=_drain_in_thread,
        args=(proc.stderr, on_stderr_line, err_lines, err_errors),
        daemon=True,
    )
    err_reader.start()

    stdin: Optional[io.TextIOWrapper] = None
    out_lines: List[str] = []
    try:
        if on_stdin_ready is not None:
            stdin = io.TextIOWrapper(proc.stdin, encoding="utf-8", line_buffering=True)
            on_stdin_ready(stdin)
        if stdout_to_file is not None:
            with open(stdout_to_file, "wb") as f:
                for chunk in iter(lambda: proc.stdout.read(65536), b""):
                    f.write(chunk)
            proc.stdout.close()
        else:
            _drain(proc.stdout, on_stdout_line, out_lines)
        err_reader.join()
        if err_errors:
            raise err_errors[0]
        returncode = proc.wait()
    except BaseException:
        logger.debug("aborting %s after an error", " ".join(cmd))
        proc.kill()
        proc.wait()
        proc.stdout.close()
        err_reader.join()
        raise
    finally:
        if timer is not None:
            timer.cancel()
        if stdin is not None:
            # the child may already have exited and closed its end
            with contextlib.suppress(OSError):
                stdin.close()

    if timed_out.is_set():
        raise GitError(f"{tool} command timed out after {timeout}s: {' '.join(cmd)}")

    stdout = "\n".join(out_lines)
    stderr = "\n".join(err_lines)
    if stderr:
        logger.debug("%s %s wrote to stderr: %s", tool, args[0] if args else "", stderr)
    return RunResult(stdout=stdout, stderr=stderr, returncode=returncode)
