"""Publishing data models."""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class FileUpdateStatus(str, Enum):
    """Status of a file in the destination relative to the vault."""

    NEW = "new"
    MODIFIED = "modified"
    UNMODIFIED = "unmodified"
    DELETED = "deleted"


class FileRecord(BaseModel):
    """A destination-relative path and its computed status for one publish cycle."""

    path: str
    status: FileUpdateStatus


class PublishOptions(BaseModel):
    """Inclusion rules applied on top of the criterion tree.

    Attributes:
        publish_attachments: Include non-markdown files linked from publishable notes.
        extra_file_patterns: Newline-separated gitignore-style globs selecting
            additional vault files regardless of the criterion.
        max_workers: Thread count for per-note criterion evaluation.
    """

    publish_attachments: bool = False
    extra_file_patterns: str = ""
    max_workers: int = Field(default=4, ge=1)


class ReconcileResult(BaseModel):
    """Outcome of reconciling the destination directory with a candidate set.

    Attributes:
        deleted: Destination paths removed because they are no longer published.
        written: Destination paths copied from the vault.
        errors: Paths that could not be deleted or written, mapped to the error text.
    """

    deleted: List[str] = Field(default_factory=list)
    written: List[str] = Field(default_factory=list)
    errors: Dict[str, str] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    def error_for(self, path: str) -> Optional[str]:
        return self.errors.get(path)


__all__ = ["FileRecord", "FileUpdateStatus", "PublishOptions", "ReconcileResult"]
