"""Reconcile a destination directory with the files selected for publishing."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable, Sequence

from vaultpub.vault import Vault, VaultError, VaultFile

from .models import FileRecord, FileUpdateStatus, ReconcileResult

LOGGER = logging.getLogger(__name__)


class PublishingService:
    """Compare vault files against the publishing directory and mirror them into it.

    Status is derived from modification times: a destination file that does
    not exist is ``NEW``, one older than its source is ``MODIFIED``, anything
    else is ``UNMODIFIED``. Markdown files in the destination that are not in
    the candidate set are ``DELETED``.
    """

    def __init__(self, vault: Vault, repo_path: Path | str) -> None:
        self._vault = vault
        self._repo_path = Path(repo_path).expanduser()

    @property
    def repo_path(self) -> Path:
        return self._repo_path

    def destination_for(self, relative_path: str) -> Path:
        return self._repo_path / Path(*relative_path.split("/"))

    def get_publishing_statuses(self, publishable_files: Sequence[VaultFile]) -> list[FileRecord]:
        """Return candidate statuses followed by the deletions reconcile would perform.

        Args:
            publishable_files: Candidate set for this cycle.

        Returns:
            list[FileRecord]: One record per candidate plus one ``DELETED``
            record per stale published markdown file.
        """
        records = [
            FileRecord(path=file.path, status=self.file_status(file))
            for file in publishable_files
        ]
        records.extend(
            FileRecord(path=path, status=FileUpdateStatus.DELETED)
            for path in self.stale_paths(publishable_files)
        )
        return records

    def update_files_in_repo(self, publishable_files: Sequence[VaultFile]) -> ReconcileResult:
        """Make the destination match the candidate set.

        Stale markdown files are deleted before any candidate is copied. A
        failure on one file is logged and recorded in the result; the
        remaining files are still processed.
        """
        result = ReconcileResult()
        self._cleanup_repo(publishable_files, result)
        for file in publishable_files:
            try:
                self.copy_file_to_repo(file)
            except (OSError, VaultError) as exc:
                LOGGER.error("Failed to copy %s: %s", file.path, exc)
                result.errors[file.path] = str(exc)
            else:
                result.written.append(file.path)
        return result

    def file_status(self, file: VaultFile) -> FileUpdateStatus:
        try:
            stats = self.destination_for(file.path).stat()
        except OSError:
            return FileUpdateStatus.NEW
        if file.mtime > stats.st_mtime:
            return FileUpdateStatus.MODIFIED
        return FileUpdateStatus.UNMODIFIED

    def published_markdown_files(self) -> list[str]:
        """Return destination-relative paths of every published markdown file.

        Dot-prefixed directories such as ``.git`` are skipped. Directories that
        cannot be read are logged and skipped, so the result may be partial.
        """
        published: list[str] = []

        def _scan(directory: Path) -> None:
            try:
                entries = sorted(os.scandir(directory), key=lambda entry: entry.name)
            except OSError as exc:
                LOGGER.error("Failed to scan publishing directory %s: %s", directory, exc)
                return
            for entry in entries:
                try:
                    if entry.is_dir(follow_symlinks=False):
                        if not entry.name.startswith("."):
                            _scan(Path(entry.path))
                    elif entry.is_file():
                        relative = Path(entry.path).relative_to(self._repo_path).as_posix()
                        if VaultFile(relative).is_markdown:
                            published.append(relative)
                except OSError as exc:
                    LOGGER.error("Failed to inspect %s: %s", entry.path, exc)

        _scan(self._repo_path)
        return published

    def stale_paths(self, publishable_files: Iterable[VaultFile]) -> list[str]:
        publishable = {file.path for file in publishable_files}
        return [path for path in self.published_markdown_files() if path not in publishable]

    def copy_file_to_repo(self, file: VaultFile) -> Path:
        """Copy one vault file byte-for-byte into the destination, atomically."""
        content = self._vault.read_bytes(file)
        destination = self.destination_for(file.path)
        destination.parent.mkdir(parents=True, exist_ok=True)

        fd, temp_name = tempfile.mkstemp(prefix=".vaultpub-", dir=destination.parent)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(content)
            os.chmod(temp_name, 0o644)
            os.replace(temp_name, destination)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise
        if file.mtime:
            os.utime(destination, (file.mtime, file.mtime))
        return destination

    def delete_file_from_repo(self, relative_path: str) -> bool:
        """Delete a published file; a file that is already gone is not an error.

        Returns:
            bool: True when a file was removed.
        """
        destination = self.destination_for(relative_path)
        try:
            destination.unlink()
        except FileNotFoundError:
            return False
        return True

    def _cleanup_repo(
        self, publishable_files: Sequence[VaultFile], result: ReconcileResult
    ) -> None:
        for path in self.stale_paths(publishable_files):
            try:
                if self.delete_file_from_repo(path):
                    result.deleted.append(path)
            except OSError as exc:
                LOGGER.error("Failed to delete %s: %s", path, exc)
                result.errors[path] = str(exc)


__all__ = ["PublishingService"]
