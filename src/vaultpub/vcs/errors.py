"""Version-control adapter errors."""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class GitError(Exception):
    """Raised when a git invocation fails.

    Attributes:
        action: Human-readable description of the attempted operation.
        cwd: Working directory the command ran in.
        output: Captured stdout and stderr of the process.
        returncode: Exit status, when the process ran at all.
    """

    def __init__(
        self,
        message: str,
        *,
        action: str,
        cwd: Path | str,
        output: str = "",
        returncode: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.action = action
        self.cwd = str(cwd)
        self.output = output
        self.returncode = returncode

    def __str__(self) -> str:
        lines = [self.message, f"Action: {self.action}", f"Working directory: {self.cwd}"]
        if self.returncode is not None:
            lines.append(f"Exit status: {self.returncode}")
        if self.output.strip():
            lines.append("Output:")
            lines.append(self.output.rstrip())
        return "\n".join(lines)


class GitNotFoundError(GitError):
    """Raised when the git executable (or the working directory) cannot be found."""


class MergeConflictError(GitError):
    """Raised when pulling from the remote produces merge conflicts."""


__all__ = ["GitError", "GitNotFoundError", "MergeConflictError"]
