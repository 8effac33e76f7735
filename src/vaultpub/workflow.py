"""Preview and publish orchestration: select, reconcile, then commit and push."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from vaultpub.config import PublisherConfig
from vaultpub.criteria import Criterion
from vaultpub.publishing import (
    FileRecord,
    FileUpdateStatus,
    PublishingService,
    ReconcileResult,
    select_publishable_files,
)
from vaultpub.vault import Vault, VaultFile
from vaultpub.vcs import GitError, GitHelper

LOGGER = logging.getLogger(__name__)

NO_BRANCH_MESSAGE = "No publishing branch selected. Please check the settings."
NOTHING_TO_PUBLISH_MESSAGE = "No files to publish or unpublish."


class PublishAction(str, Enum):
    """What a confirmed publish does with the reconciled repository."""

    PUBLISH = "publish"
    COMMIT = "commit"

    @property
    def past_tense(self) -> str:
        return "published" if self is PublishAction.PUBLISH else "committed"


class PublishError(Exception):
    """Raised when a publish operation fails; the cause is chained."""

    def __init__(self, message: str, repo_path: Path | str) -> None:
        super().__init__(message)
        self.repo_path = str(repo_path)


@dataclass
class PublishPreview:
    """Statuses a publish would apply, plus pending changes already in the repository."""

    records: list[FileRecord]
    has_uncommitted_changes: bool = False

    @property
    def changed(self) -> list[FileRecord]:
        return sorted(
            (record for record in self.records if record.status is not FileUpdateStatus.UNMODIFIED),
            key=lambda record: record.path,
        )

    @property
    def unmodified(self) -> list[FileRecord]:
        return sorted(
            (record for record in self.records if record.status is FileUpdateStatus.UNMODIFIED),
            key=lambda record: record.path,
        )

    @property
    def is_empty(self) -> bool:
        return not self.records and not self.has_uncommitted_changes

    def counts(self) -> dict[str, int]:
        totals = {status.value: 0 for status in FileUpdateStatus}
        for record in self.records:
            totals[record.status.value] += 1
        return totals


@dataclass
class PublishReport:
    """Outcome of a completed publish or commit."""

    action: PublishAction
    published_count: int
    reconcile: ReconcileResult = field(default_factory=ReconcileResult)
    committed: bool = True

    @property
    def message(self) -> str:
        return f"Successfully {self.action.past_tense} {self.published_count} notes."


class Publisher:
    """Drive one vault through selection, reconciliation, and version control.

    Args:
        config: Active configuration. It is read, never modified.
        vault: Vault supplying candidate notes.
        git: Git adapter; a default :class:`GitHelper` when omitted.
    """

    def __init__(
        self,
        config: PublisherConfig,
        vault: Vault,
        git: Optional[GitHelper] = None,
    ) -> None:
        self._config = config
        self._vault = vault
        self._git = git or GitHelper()
        self._service = PublishingService(vault, config.repo)

    @property
    def repo_path(self) -> Path:
        return self._service.repo_path

    @property
    def service(self) -> PublishingService:
        return self._service

    def criterion(self) -> Criterion:
        return self._config.load_criterion()

    def publishable_files(self) -> list[VaultFile]:
        return select_publishable_files(
            self._vault, self.criterion(), self._config.publish_options()
        )

    def preview(self) -> PublishPreview:
        """Compute the statuses a publish would apply without touching anything.

        Raises:
            GitError: If the repository status cannot be read.
        """
        files = self.publishable_files()
        records = self._service.get_publishing_statuses(files)
        dirty = self._git.has_uncommitted_changes(self.repo_path)
        return PublishPreview(records=records, has_uncommitted_changes=dirty)

    def publish(self, action: PublishAction = PublishAction.PUBLISH) -> PublishReport:
        """Mirror the publishable files into the repository and commit them.

        ``PUBLISH`` pulls before reconciling and pushes after committing;
        ``COMMIT`` only commits locally.

        Raises:
            PublishError: If no branch is configured, the pull fails, or any
                later git step fails.
        """
        branch = self._config.repo_branch.strip()
        if not branch:
            raise PublishError(NO_BRANCH_MESSAGE, self.repo_path)

        LOGGER.info("Starting %s operation in %s.", action.value, self.repo_path)
        if action is PublishAction.PUBLISH:
            try:
                self._git.pull(self.repo_path, branch)
            except GitError as exc:
                raise PublishError(f"Cannot sync with remote: {exc}", self.repo_path) from exc

        files = self.publishable_files()
        reconcile = self._service.update_files_in_repo(files)
        if not reconcile.ok:
            LOGGER.warning("%d file(s) could not be reconciled.", len(reconcile.errors))

        try:
            self._git.add(self.repo_path)
            committed = self._git.commit(self.repo_path, self._config.commit_message)
            if action is PublishAction.PUBLISH:
                self._git.push(self.repo_path, branch)
        except GitError as exc:
            raise PublishError(f"Git operation failed: {exc}", self.repo_path) from exc

        report = PublishReport(
            action=action,
            published_count=len(files),
            reconcile=reconcile,
            committed=committed,
        )
        LOGGER.info(report.message)
        return report


__all__ = [
    "NO_BRANCH_MESSAGE",
    "NOTHING_TO_PUBLISH_MESSAGE",
    "PublishAction",
    "PublishError",
    "PublishPreview",
    "PublishReport",
    "Publisher",
]
