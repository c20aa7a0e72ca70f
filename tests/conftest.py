from __future__ import annotations

import os
import subprocess
from pathlib import Path

import pytest


_GIT_ENV = {
    "GIT_AUTHOR_NAME": "CI",
    "GIT_AUTHOR_EMAIL": "ci@example.com",
    "GIT_COMMITTER_NAME": "CI",
    "GIT_COMMITTER_EMAIL": "ci@example.com",
    "GIT_AUTHOR_DATE": "2024-01-02T03:04:05+00:00",
    "GIT_COMMITTER_DATE": "2024-01-02T03:04:05+00:00",
}

# 2024-01-02T03:04:05Z
COMMIT_TIME_MS = 1704164645 * 1000


def _run(cmd: list[str], cwd: Path) -> str:
    out = subprocess.check_output(
        cmd,
        cwd=str(cwd),
        stderr=subprocess.STDOUT,
        text=True,
        encoding="utf-8",
        errors="replace",
        env={**os.environ, **_GIT_ENV},
    )
    return out.strip()


def _init(repo: Path) -> None:
    repo.mkdir()
    _run(["git", "init"], repo)
    _run(["git", "config", "user.email", "ci@example.com"], repo)
    _run(["git", "config", "user.name", "CI"], repo)
    _run(["git", "config", "commit.gpgsign", "false"], repo)
    _run(["git", "config", "tag.gpgsign", "false"], repo)


@pytest.fixture()
def git():
    """Run a git command in a repo: git(repo, "log", "-1")."""
    def _git(repo: Path, *args: str) -> str:
        return _run(["git", *args], repo)
    return _git


@pytest.fixture()
def tmp_git_repo(tmp_path: Path) -> Path:
    """
    Creates a small deterministic git repo:
      - 1 initial commit at a fixed date
      - known author identity
      - a couple of files + subdir
    """
    repo = tmp_path / "repo"
    _init(repo)

    (repo / "README.md").write_text("# dummy\n", encoding="utf-8")
    (repo / "src").mkdir()
    (repo / "src" / "app.py").write_text("print('hi')\n", encoding="utf-8")

    _run(["git", "add", "-A"], repo)
    _run(["git", "commit", "-m", "initial"], repo)

    return repo


@pytest.fixture()
def empty_git_repo(tmp_path: Path) -> Path:
    """
    An initialised repository with no commits, one tracked (staged) file,
    and one ignored file.
    """
    repo = tmp_path / "empty"
    _init(repo)

    (repo / ".gitignore").write_text("ignored.log\n", encoding="utf-8")
    (repo / "notes").mkdir()
    (repo / "notes" / "todo.txt").write_text("12345", encoding="utf-8")
    (repo / "ignored.log").write_text("noise", encoding="utf-8")

    _run(["git", "add", ".gitignore", "notes/todo.txt"], repo)
    return repo


@pytest.fixture()
def git_head(tmp_git_repo: Path) -> str:
    return _run(["git", "rev-parse", "HEAD"], tmp_git_repo)


@pytest.fixture()
def make_change(tmp_git_repo: Path):
    """
    Helper: make working tree dirty in a predictable way.
    """
    def _maker(relpath: str = "README.md", text: str = "changed\n") -> Path:
        p = tmp_git_repo / relpath
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(text, encoding="utf-8")
        return p
    return _maker
