"""Selection of publishable files and reconciliation of the publishing directory."""

from .models import FileRecord, FileUpdateStatus, PublishOptions, ReconcileResult
from .selector import (
    files_matching_patterns,
    filter_publishable_notes,
    is_file_publishable,
    linked_attachments,
    select_publishable_files,
)
from .service import PublishingService

__all__ = [
    "FileRecord",
    "FileUpdateStatus",
    "PublishOptions",
    "PublishingService",
    "ReconcileResult",
    "files_matching_patterns",
    "filter_publishable_notes",
    "is_file_publishable",
    "linked_attachments",
    "select_publishable_files",
]
