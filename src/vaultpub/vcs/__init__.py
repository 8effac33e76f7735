"""Version-control adapter for the publishing repository."""

from .errors import GitError, GitNotFoundError, MergeConflictError
from .git import MERGE_CONFLICT_MESSAGE, GitHelper, GitRunner, RepoValidationResult, run_git

__all__ = [
    "GitError",
    "GitHelper",
    "GitNotFoundError",
    "GitRunner",
    "MERGE_CONFLICT_MESSAGE",
    "MergeConflictError",
    "RepoValidationResult",
    "run_git",
]
