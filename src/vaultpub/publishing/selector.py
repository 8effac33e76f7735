"""Select the vault files that should be published."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable

from vaultpub.criteria import Criterion, match_glob_list
from vaultpub.vault import Vault, VaultFile

from .models import PublishOptions

LOGGER = logging.getLogger(__name__)


def is_file_publishable(vault: Vault, file: VaultFile, criterion: Criterion) -> bool:
    """Evaluate ``criterion`` for one markdown note.

    Notes without retrievable metadata are never publishable, and any failure
    while reading or evaluating the note is logged and treated as a non-match.
    """
    try:
        metadata = vault.metadata(file)
        if metadata is None:
            return False
        content = vault.read_text(file)
        return criterion.evaluate(file, content, metadata)
    except Exception as exc:
        LOGGER.error("Error evaluating publishability for %s: %s", file.path, exc)
        return False


def filter_publishable_notes(
    vault: Vault,
    notes: Iterable[VaultFile],
    criterion: Criterion,
    *,
    max_workers: int = 1,
) -> list[VaultFile]:
    """Return the notes that satisfy ``criterion``, preserving input order."""
    notes = list(notes)
    if max_workers <= 1 or len(notes) <= 1:
        verdicts = [is_file_publishable(vault, note, criterion) for note in notes]
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            verdicts = list(
                pool.map(lambda note: is_file_publishable(vault, note, criterion), notes)
            )
    return [note for note, verdict in zip(notes, verdicts) if verdict]


def linked_attachments(vault: Vault, notes: Iterable[VaultFile]) -> list[VaultFile]:
    """Return the non-markdown files linked or embedded from ``notes``, deduplicated."""
    attachments: dict[str, VaultFile] = {}
    for note in notes:
        for target in vault.linked_files(note):
            if not target.is_markdown:
                attachments.setdefault(target.path, target)
    return list(attachments.values())


def files_matching_patterns(files: Iterable[VaultFile], patterns: str) -> list[VaultFile]:
    """Return files whose normalized path matches the glob list ``patterns``."""
    if not patterns.strip():
        return []
    return [file for file in files if match_glob_list(patterns, file.path.replace("\\", "/"))]


def select_publishable_files(
    vault: Vault,
    criterion: Criterion,
    options: PublishOptions | None = None,
) -> list[VaultFile]:
    """Compute the candidate set for one publish cycle.

    The candidate set is the union of notes passing ``criterion``, attachments
    those notes reference (when enabled), and any vault file matching the
    extra glob patterns. A note failing the criterion can still be selected
    through the latter two rules.

    Args:
        vault: Source collection.
        criterion: Root of the publishing criterion tree.
        options: Attachment and extra-pattern inclusion rules.

    Returns:
        list[VaultFile]: Deduplicated candidates sorted by path.
    """
    options = options or PublishOptions()
    selected: dict[str, VaultFile] = {}

    notes = filter_publishable_notes(
        vault, vault.markdown_files(), criterion, max_workers=options.max_workers
    )
    for note in notes:
        selected[note.path] = note

    if options.publish_attachments:
        for attachment in linked_attachments(vault, notes):
            selected.setdefault(attachment.path, attachment)

    for extra in files_matching_patterns(vault.all_files(), options.extra_file_patterns):
        selected.setdefault(extra.path, extra)

    LOGGER.debug(
        "Selected %d publishable files (%d notes passed the criterion).",
        len(selected),
        len(notes),
    )
    return sorted(selected.values(), key=lambda item: item.path)


__all__ = [
    "files_matching_patterns",
    "filter_publishable_notes",
    "is_file_publishable",
    "linked_attachments",
    "select_publishable_files",
]
