"""Tests for the preview and publish workflow."""

from pathlib import Path

import pytest

from vaultpub.config import PublisherConfig
from vaultpub.criteria import TagCriterion, TagMatchMode
from vaultpub.publishing import FileRecord, FileUpdateStatus
from vaultpub.vault import Vault
from vaultpub.vcs import GitError, MergeConflictError
from vaultpub.workflow import (
    NO_BRANCH_MESSAGE,
    PublishAction,
    PublishError,
    Publisher,
    PublishPreview,
)


def _config(repo_dir: Path, **overrides) -> PublisherConfig:
    values = {"repo": str(repo_dir), "criterion": TagCriterion("public").serialize()}
    values.update(overrides)
    return PublisherConfig(**values)


@pytest.fixture()
def publisher(vault_dir: Path, repo_dir: Path, write_file, fake_git) -> Publisher:
    write_file(vault_dir, "a.md", "---\ntags: [public]\n---\nAlpha")
    write_file(vault_dir, "b.md", "Beta without tags")
    return Publisher(_config(repo_dir), Vault(vault_dir), git=fake_git)


def test_preview_lists_only_publishable_notes(publisher: Publisher, fake_git) -> None:
    preview = publisher.preview()

    assert preview.records == [FileRecord(path="a.md", status=FileUpdateStatus.NEW)]
    assert [record.path for record in preview.changed] == ["a.md"]
    assert preview.unmodified == []
    assert not preview.is_empty
    assert fake_git.names == ["status"]


def test_publish_runs_git_steps_in_order(publisher: Publisher, repo_dir: Path, fake_git) -> None:
    report = publisher.publish()

    assert fake_git.calls == [
        ("pull", "main"),
        ("add",),
        ("commit", "Update published notes"),
        ("push", "main"),
    ]
    assert report.action is PublishAction.PUBLISH
    assert report.published_count == 1
    assert report.message == "Successfully published 1 notes."
    assert (repo_dir / "a.md").exists()
    assert not (repo_dir / "b.md").exists()


def test_second_preview_after_publish_is_unmodified(publisher: Publisher) -> None:
    publisher.publish()

    preview = publisher.preview()

    assert preview.changed == []
    assert [record.path for record in preview.unmodified] == ["a.md"]
    assert not preview.is_empty


def test_stale_published_note_is_deleted(
    publisher: Publisher, repo_dir: Path, write_file
) -> None:
    write_file(repo_dir, "old.md", "no longer published")

    preview = publisher.preview()
    assert FileRecord(path="old.md", status=FileUpdateStatus.DELETED) in preview.changed

    report = publisher.publish()

    assert report.reconcile.deleted == ["old.md"]
    assert not (repo_dir / "old.md").exists()


def test_commit_only_skips_pull_and_push(publisher: Publisher, fake_git) -> None:
    report = publisher.publish(PublishAction.COMMIT)

    assert fake_git.names == ["add", "commit"]
    assert report.message == "Successfully committed 1 notes."


def test_pull_failure_aborts_before_reconcile(
    publisher: Publisher, repo_dir: Path, fake_git
) -> None:
    fake_git.fail_on["pull"] = MergeConflictError(
        "Merge conflict detected.", action="pull from remote", cwd=repo_dir, output="CONFLICT"
    )

    with pytest.raises(PublishError, match="^Cannot sync with remote: ") as excinfo:
        publisher.publish()

    assert isinstance(excinfo.value.__cause__, MergeConflictError)
    assert excinfo.value.repo_path == str(repo_dir)
    assert not (repo_dir / "a.md").exists()
    assert fake_git.names == ["pull"]


def test_git_failure_after_reconcile_is_wrapped(
    publisher: Publisher, repo_dir: Path, fake_git
) -> None:
    fake_git.fail_on["push"] = GitError(
        "Failed to push changes.", action="push changes", cwd=repo_dir, output="rejected"
    )

    with pytest.raises(PublishError, match="^Git operation failed: ") as excinfo:
        publisher.publish()

    assert "rejected" in str(excinfo.value)
    assert (repo_dir / "a.md").exists()


def test_missing_branch_is_rejected(vault_dir: Path, repo_dir: Path, fake_git) -> None:
    publisher = Publisher(_config(repo_dir, repo_branch=""), Vault(vault_dir), git=fake_git)

    with pytest.raises(PublishError, match=NO_BRANCH_MESSAGE):
        publisher.publish(PublishAction.COMMIT)

    assert fake_git.calls == []


def test_preview_empty_only_without_records_or_pending_changes() -> None:
    assert PublishPreview(records=[]).is_empty
    assert not PublishPreview(records=[], has_uncommitted_changes=True).is_empty


def test_preview_counts(vault_dir: Path, repo_dir: Path, write_file, fake_git) -> None:
    write_file(vault_dir, "x.md", "#public")
    write_file(repo_dir, "y.md", "stale")
    fake_git.dirty = True

    preview = Publisher(_config(repo_dir), Vault(vault_dir), git=fake_git).preview()

    assert preview.has_uncommitted_changes
    assert preview.counts() == {"new": 1, "modified": 0, "unmodified": 0, "deleted": 1}


def test_equals_tag_scenario_excludes_draft_note(
    vault_dir: Path, repo_dir: Path, write_file, fake_git
) -> None:
    write_file(vault_dir, "a.md", "#public")
    write_file(vault_dir, "b.md", "#draft")
    write_file(repo_dir, "old.md", "stale")
    criterion = TagCriterion("public", TagMatchMode.EQUALS).serialize()
    publisher = Publisher(
        _config(repo_dir, criterion=criterion), Vault(vault_dir), git=fake_git
    )

    preview = publisher.preview()

    assert [(record.path, record.status) for record in preview.records] == [
        ("a.md", FileUpdateStatus.NEW),
        ("old.md", FileUpdateStatus.DELETED),
    ]

    publisher.publish(PublishAction.COMMIT)

    assert sorted(path.name for path in repo_dir.iterdir()) == ["a.md"]
