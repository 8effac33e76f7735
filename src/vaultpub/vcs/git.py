"""Thin wrapper around the ``git`` command line used to publish the repository."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence

from .errors import GitError, GitNotFoundError, MergeConflictError

LOGGER = logging.getLogger(__name__)

GitRunner = Callable[[Sequence[str], Path], "subprocess.CompletedProcess[str]"]

MERGE_CONFLICT_MESSAGE = (
    "Merge conflict detected. Please resolve conflicts manually in your repository."
)


def run_git(args: Sequence[str], cwd: Path) -> "subprocess.CompletedProcess[str]":
    """Run ``git`` with ``args`` in ``cwd`` and raise on a non-zero exit status."""
    return subprocess.run(
        ["git", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )


@dataclass(slots=True)
class RepoValidationResult:
    """Outcome of checking whether a directory is inside a git work tree."""

    is_valid: bool
    error: Optional[str] = None


def _combined_output(exc: subprocess.CalledProcessError) -> str:
    parts = [exc.stdout or "", exc.stderr or ""]
    return "\n".join(part.strip() for part in parts if part and part.strip())


class GitHelper:
    """Stage, commit, pull, and push the publishing repository through ``git``."""

    def __init__(self, runner: GitRunner | None = None) -> None:
        self._runner = runner or run_git

    def _run(self, repo_path: Path | str, args: Sequence[str], action: str) -> str:
        cwd = Path(repo_path).expanduser()
        try:
            completed = self._runner(list(args), cwd)
        except FileNotFoundError as exc:
            LOGGER.error("Git error during %s: %s", action, exc)
            raise GitNotFoundError("Git is not found.", action=action, cwd=cwd) from exc
        except subprocess.CalledProcessError as exc:
            output = _combined_output(exc)
            LOGGER.error("Git error during %s in %s: %s", action, cwd, output or exc)
            raise GitError(
                f"Failed to {action}.",
                action=action,
                cwd=cwd,
                output=output,
                returncode=exc.returncode,
            ) from exc
        return completed.stdout or ""

    def validate_repo(self, repo_path: Path | str) -> RepoValidationResult:
        """Check that ``repo_path`` lies inside a git work tree."""
        try:
            self._run(repo_path, ["rev-parse", "--is-inside-work-tree"], "validate repository")
        except GitNotFoundError as exc:
            return RepoValidationResult(False, exc.message)
        except GitError as exc:
            if "not a git repository" in exc.output.lower():
                return RepoValidationResult(False, "Path is not a valid Git repository.")
            return RepoValidationResult(
                False, f"Failed to access repository: {exc.output or exc.message}"
            )
        return RepoValidationResult(True)

    def get_branches(self, repo_path: Path | str) -> list[str]:
        stdout = self._run(repo_path, ["branch", "--format=%(refname:short)"], "fetch branches")
        return [line.strip() for line in stdout.splitlines() if line.strip()]

    def add(self, repo_path: Path | str) -> None:
        self._run(repo_path, ["add", "."], "stage changes")

    def commit(self, repo_path: Path | str, message: str) -> bool:
        """Commit staged changes.

        Returns:
            bool: False when there was nothing to commit.
        """
        try:
            self._run(repo_path, ["commit", "-m", message], "commit changes")
        except GitNotFoundError:
            raise
        except GitError as exc:
            if "nothing to commit" in exc.output:
                LOGGER.info("Nothing to commit in %s.", exc.cwd)
                return False
            raise
        return True

    def push(self, repo_path: Path | str, branch: str) -> None:
        self._run(repo_path, ["push", "origin", branch], "push changes")

    def pull(self, repo_path: Path | str, branch: str) -> None:
        """Pull ``branch`` from ``origin``; conflicts are reported, never resolved."""
        try:
            self._run(repo_path, ["pull", "origin", branch], "pull from remote")
        except GitNotFoundError:
            raise
        except GitError as exc:
            if "CONFLICT" in exc.output:
                raise MergeConflictError(
                    MERGE_CONFLICT_MESSAGE,
                    action=exc.action,
                    cwd=exc.cwd,
                    output=exc.output,
                    returncode=exc.returncode,
                ) from exc
            raise

    def has_uncommitted_changes(self, repo_path: Path | str) -> bool:
        stdout = self._run(repo_path, ["status", "--porcelain"], "check repository status")
        return bool(stdout.strip())


__all__ = [
    "GitHelper",
    "GitRunner",
    "MERGE_CONFLICT_MESSAGE",
    "RepoValidationResult",
    "run_git",
]
