"""Shared fixtures: isolated configuration and throwaway git repositories."""

import shutil
import subprocess
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from commit_mirror.config import Config

requires_git = pytest.mark.skipif(
    shutil.which("git") is None, reason="git executable not available"
)


def git(path: Path, *args: str) -> str:
    """Runs a git command in `path` and returns its stripped stdout."""
    res = subprocess.run(
        ["git", *args], cwd=path, capture_output=True, text=True, check=True
    )
    return res.stdout.strip()


class SourceRepo:
    """A source repository with an `origin` remote, for end-to-end tests.

    Attributes:
        path (Path): The working tree.
        remote (Path): The bare repository registered as `origin`.
    """

    def __init__(self, path: Path, remote: Path):
        self.path = path
        self.remote = remote

    def commit(self, name: str, message: str, content: str | None = None) -> str:
        """Writes a file, commits it, and returns the new commit hash."""
        file_path = self.path / name
        file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(file_path, "a") as f:
            f.write(content if content is not None else f"{message}\n")
        git(self.path, "add", "--", name)
        git(self.path, "commit", "-q", "-m", message)
        return git(self.path, "rev-parse", "HEAD")

    def commit_many(self, names: list[str], message: str) -> str:
        """Commits several files at once and returns the new commit hash."""
        for name in names:
            file_path = self.path / name
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(f"{message}\n")
            git(self.path, "add", "--", name)
        git(self.path, "commit", "-q", "-m", message)
        return git(self.path, "rev-parse", "HEAD")

    def push(self) -> None:
        git(self.path, "push", "-q", "origin", "main")


@pytest.fixture(autouse=True)
def isolated_environment(
    tmp_path_factory: pytest.TempPathFactory,
    monkeypatch: pytest.MonkeyPatch,
    mocker: MagicMock,
) -> Iterator[None]:
    """Keeps user-level git and mirror configuration out of every test."""
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(home / ".gitconfig"))
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test Author")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "author@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test Committer")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "committer@example.com")

    mocker.patch("commit_mirror.config.CONFIG_FILE", home / "missing.toml")
    Config._global_cache = None
    yield
    Config._global_cache = None


@pytest.fixture
def source_repo(tmp_path: Path) -> SourceRepo:
    """A `main` branch with one commit already pushed to `origin`."""
    remote = tmp_path / "origin.git"
    path = tmp_path / "source"
    remote.mkdir()
    path.mkdir()

    git(remote, "init", "-q", "--bare")
    git(path, "init", "-q")
    git(path, "checkout", "-q", "-b", "main")
    git(path, "remote", "add", "origin", str(remote))

    repo = SourceRepo(path, remote)
    repo.commit("README.md", "initial commit")
    repo.push()
    return repo


@pytest.fixture
def target_dir(tmp_path: Path) -> Path:
    return tmp_path / "mirror"
