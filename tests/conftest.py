"""Shared test fixtures — sample status reports, temp git repos."""

from __future__ import annotations

import subprocess
from pathlib import Path

import pytest


def git(cwd: Path, *args: str) -> subprocess.CompletedProcess:
    """Run git in *cwd* for test setup, failing loudly."""
    return subprocess.run(
        ["git", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )


@pytest.fixture
def sample_status_all_sections() -> list[str]:
    """One entry in each of the four sections."""
    return [
        "On branch main",
        "Changes to be committed:",
        '  (use "git restore --staged <file>..." to unstage)',
        "\tnew file:\ta.txt",
        "",
        "Changes not staged for commit:",
        '  (use "git add <file>..." to update what will be committed)',
        "\tmodified:\tb.txt",
        "",
        "Unmerged paths:",
        '  (use "git add <file>..." to mark resolution)',
        "\tboth modified:\tc.txt",
        "",
        "Untracked files:",
        '  (use "git add <file>..." to include in what will be committed)',
        "\td.txt",
        "",
    ]


@pytest.fixture
def sample_status_git_spacing() -> str:
    """Status text as git prints it, with column-aligned tags."""
    return (
        "On branch main\n"
        "Changes to be committed:\n"
        '  (use "git restore --staged <file>..." to unstage)\n'
        "\tmodified:   src/app.py\n"
        "\tdeleted:    old.txt\n"
        "\trenamed:    before.txt -> after.txt\n"
        "\n"
        "Changes not staged for commit:\n"
        '  (use "git add <file>..." to update what will be committed)\n'
        "\tmodified:   src/app.py\n"
        "\tdeleted:    gone.txt\n"
        "\n"
        "Untracked files:\n"
        '  (use "git add <file>..." to include in what will be committed)\n'
        "\tdocs/notes.md\n"
        "\n"
    )


@pytest.fixture
def sample_status_conflicts() -> str:
    """Every conflict kind the parser classifies."""
    return (
        "On branch main\n"
        "You have unmerged paths.\n"
        '  (fix conflicts and run "git commit")\n'
        "\n"
        "Unmerged paths:\n"
        '  (use "git add/rm <file>..." as appropriate to mark resolution)\n'
        "\tboth modified:   both.txt\n"
        "\tdeleted by us:   ours.txt\n"
        "\tdeleted by them: theirs.txt\n"
        "\tboth deleted:    nobody.txt\n"
        "\n"
    )


@pytest.fixture
def tmp_git_repo(tmp_path: Path) -> Path:
    """Create a temporary git repository with one commit."""
    repo = tmp_path / "repo"
    repo.mkdir()
    git(repo, "init", "-q", "-b", "main")
    git(repo, "config", "user.email", "test@test.com")
    git(repo, "config", "user.name", "Test")
    git(repo, "config", "commit.gpgsign", "false")
    (repo / "README.md").write_text("# Test\n")
    git(repo, "add", ".")
    git(repo, "commit", "-q", "-m", "init")
    return repo


@pytest.fixture
def conflicted_repo(tmp_git_repo: Path) -> Path:
    """A repository stopped in the middle of a merge with one conflict."""
    repo = tmp_git_repo
    (repo / "shared.txt").write_text("base\n")
    git(repo, "add", "shared.txt")
    git(repo, "commit", "-q", "-m", "base")

    git(repo, "checkout", "-q", "-b", "feature")
    (repo / "shared.txt").write_text("feature side\n")
    git(repo, "commit", "-q", "-am", "feature")

    git(repo, "checkout", "-q", "main")
    (repo / "shared.txt").write_text("main side\n")
    git(repo, "commit", "-q", "-am", "main")

    subprocess.run(
        ["git", "merge", "feature"],
        cwd=repo,
        capture_output=True,
        text=True,
    )
    return repo
