"""Filesystem-backed vault: file enumeration, content access, and note metadata."""

from __future__ import annotations

import logging
import os
import posixpath
from collections import defaultdict
from pathlib import Path
from typing import Iterable, Optional

from .errors import VaultError
from .models import NoteMetadata, VaultFile
from .parsing import extract_links, split_frontmatter

LOGGER = logging.getLogger(__name__)


def _is_hidden(name: str) -> bool:
    return name.startswith(".")


class Vault:
    """Enumerate and read the files of a note collection rooted at a directory.

    Directories and files whose names start with ``.`` (``.obsidian``,
    ``.git``, ``.trash``) are not part of the vault, nor is the top-level
    ``config_dir`` when the application keeps its settings elsewhere.
    """

    def __init__(self, root: Path, *, config_dir: str = ".obsidian") -> None:
        self._root = Path(root).expanduser().resolve()
        self._config_dir = config_dir
        self._files: dict[str, VaultFile] | None = None
        self._by_name: dict[str, list[VaultFile]] = {}

    @property
    def root(self) -> Path:
        return self._root

    def refresh(self) -> None:
        """Rescan the vault root, discarding previously enumerated files."""
        if not self._root.is_dir():
            raise VaultError(f"Vault directory does not exist: {self._root}")

        files: dict[str, VaultFile] = {}
        by_name: dict[str, list[VaultFile]] = defaultdict(list)

        def _on_error(exc: OSError) -> None:
            LOGGER.error("Failed to scan %s: %s", exc.filename, exc)

        for dirpath, dirnames, filenames in os.walk(self._root, onerror=_on_error):
            at_root = Path(dirpath) == self._root
            dirnames[:] = sorted(
                name
                for name in dirnames
                if not _is_hidden(name) and not (at_root and name == self._config_dir)
            )
            for filename in sorted(filenames):
                if _is_hidden(filename):
                    continue
                absolute = Path(dirpath) / filename
                try:
                    stat = absolute.stat()
                except OSError as exc:
                    LOGGER.error("Failed to stat %s: %s", absolute, exc)
                    continue
                relative = absolute.relative_to(self._root).as_posix()
                record = VaultFile(path=relative, mtime=stat.st_mtime, size=stat.st_size)
                files[relative] = record
                by_name[record.name.lower()].append(record)

        self._files = files
        self._by_name = dict(by_name)

    def _index(self) -> dict[str, VaultFile]:
        if self._files is None:
            self.refresh()
        assert self._files is not None
        return self._files

    def all_files(self) -> list[VaultFile]:
        return list(self._index().values())

    def markdown_files(self) -> list[VaultFile]:
        return [file for file in self._index().values() if file.is_markdown]

    def other_files(self) -> list[VaultFile]:
        return [file for file in self._index().values() if not file.is_markdown]

    def get_file(self, path: str) -> Optional[VaultFile]:
        return self._index().get(path.replace("\\", "/"))

    def absolute_path(self, file: VaultFile) -> Path:
        return self._root / Path(*file.path.split("/"))

    def read_bytes(self, file: VaultFile) -> bytes:
        try:
            return self.absolute_path(file).read_bytes()
        except OSError as exc:
            raise VaultError(f"Failed to read {file.path}: {exc}") from exc

    def read_text(self, file: VaultFile) -> str:
        return self.read_bytes(file).decode("utf-8", errors="replace")

    def metadata(self, file: VaultFile) -> Optional[NoteMetadata]:
        """Parse frontmatter and links of a markdown note.

        Args:
            file: Markdown file inside the vault.

        Returns:
            Optional[NoteMetadata]: Parsed metadata, or None when ``file`` is not
            a markdown note or cannot be read.
        """
        if not file.is_markdown:
            return None
        try:
            content = self.read_text(file)
        except VaultError as exc:
            LOGGER.error("%s", exc)
            return None

        frontmatter, body = split_frontmatter(content)
        links, embeds = extract_links(body)
        for reference in (*links, *embeds):
            reference.resolved = self.resolve_link(reference.target, file.path)
        return NoteMetadata(frontmatter=frontmatter, links=links, embeds=embeds)

    def resolve_link(self, target: str, source_path: str) -> Optional[VaultFile]:
        """Resolve a link target written in ``source_path`` to a vault file.

        Relative paths are tried against the linking note's folder first, then
        the vault root, each with an implicit ``.md`` when the target has no
        extension. Bare names fall back to the shortest path with that file name.
        """
        files = self._index()
        target = target.replace("\\", "/").strip()
        if not target:
            return None

        folder = posixpath.dirname(source_path)
        bases: list[str] = []
        if target.startswith("/"):
            bases.append(posixpath.normpath(target.lstrip("/")))
        else:
            bases.append(posixpath.normpath(posixpath.join(folder, target)))
            bases.append(posixpath.normpath(target))

        for candidate in self._with_markdown_suffix(bases):
            if candidate in files:
                return files[candidate]

        name = posixpath.basename(target)
        for candidate_name in self._with_markdown_suffix([name]):
            matches = self._by_name.get(candidate_name.lower())
            if matches:
                return min(matches, key=lambda item: (len(item.path), item.path))
        return None

    @staticmethod
    def _with_markdown_suffix(paths: Iterable[str]) -> list[str]:
        expanded: list[str] = []
        for path in paths:
            expanded.append(path)
            if not posixpath.splitext(path)[1]:
                expanded.append(f"{path}.md")
        return expanded

    def linked_files(self, file: VaultFile) -> list[VaultFile]:
        """Return the distinct files that ``file`` links to or embeds."""
        metadata = self.metadata(file)
        if metadata is None:
            return []
        return metadata.resolved_targets()


__all__ = ["Vault"]
