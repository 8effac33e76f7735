"""Shared fixtures for vaultpub tests."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Optional

import pytest

from vaultpub.vcs import GitError, RepoValidationResult


class FakeGit:
    """Records git calls instead of running them."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, ...]] = []
        self.dirty = False
        self.branches = ["main"]
        self.fail_on: dict[str, GitError] = {}

    def _record(self, name: str, *args: str) -> None:
        self.calls.append((name, *args))
        if name in self.fail_on:
            raise self.fail_on[name]

    def validate_repo(self, repo_path):
        self._record("validate_repo")
        return RepoValidationResult(True)

    def get_branches(self, repo_path) -> list[str]:
        self._record("get_branches")
        return list(self.branches)

    def add(self, repo_path) -> None:
        self._record("add")

    def commit(self, repo_path, message: str) -> bool:
        self._record("commit", message)
        return True

    def push(self, repo_path, branch: str) -> None:
        self._record("push", branch)

    def pull(self, repo_path, branch: str) -> None:
        self._record("pull", branch)

    def has_uncommitted_changes(self, repo_path) -> bool:
        self._record("status")
        return self.dirty

    @property
    def names(self) -> list[str]:
        return [call[0] for call in self.calls]


@pytest.fixture()
def fake_git() -> FakeGit:
    return FakeGit()


@pytest.fixture()
def write_file() -> Callable[..., Path]:
    """Return a helper writing text files (creating parents) with an optional mtime."""

    def _write(root: Path, relative: str, content: str = "", mtime: Optional[float] = None) -> Path:
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        if mtime is not None:
            os.utime(path, (mtime, mtime))
        return path

    return _write


@pytest.fixture()
def vault_dir(tmp_path: Path) -> Path:
    path = tmp_path / "vault"
    path.mkdir()
    return path


@pytest.fixture()
def repo_dir(tmp_path: Path) -> Path:
    path = tmp_path / "repo"
    path.mkdir()
    return path
