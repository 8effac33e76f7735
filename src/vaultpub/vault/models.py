"""Data models describing files and note metadata inside a vault."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional, Union

FrontmatterValue = Union[
    str,
    int,
    float,
    bool,
    None,
    date,
    datetime,
    List["FrontmatterValue"],
    Dict[str, "FrontmatterValue"],
]

MARKDOWN_EXTENSION = "md"


@dataclass(frozen=True, slots=True)
class VaultFile:
    """A single file tracked by a vault.

    Attributes:
        path: Path relative to the vault root using forward slashes.
        mtime: Modification time in seconds since the epoch.
        size: File size in bytes.
    """

    path: str
    mtime: float = 0.0
    size: int = 0

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def basename(self) -> str:
        """File name without its extension."""
        name = self.name
        stem, dot, _ = name.rpartition(".")
        return stem if dot and stem else name

    @property
    def extension(self) -> str:
        name = self.name
        stem, dot, suffix = name.rpartition(".")
        return suffix.lower() if dot and stem else ""

    @property
    def parent(self) -> str:
        return self.path.rpartition("/")[0]

    @property
    def is_markdown(self) -> bool:
        return self.extension == MARKDOWN_EXTENSION


@dataclass(slots=True)
class LinkReference:
    """A link or embed found in a note body.

    Attributes:
        target: Link target as written, without alias or heading suffixes.
        embed: Whether the reference is an embed (``![[...]]`` or ``![](...)``).
        resolved: Vault file the target resolves to, when it exists.
    """

    target: str
    embed: bool = False
    resolved: Optional[VaultFile] = None


@dataclass(slots=True)
class NoteMetadata:
    """Structured metadata for a markdown note.

    Attributes:
        frontmatter: Parsed YAML frontmatter mapping (empty when absent).
        links: Wiki and markdown links found in the body.
        embeds: Embedded references found in the body.
    """

    frontmatter: Dict[str, FrontmatterValue] = field(default_factory=dict)
    links: List[LinkReference] = field(default_factory=list)
    embeds: List[LinkReference] = field(default_factory=list)

    def references(self) -> List[LinkReference]:
        return [*self.links, *self.embeds]

    def resolved_targets(self) -> List[VaultFile]:
        """Return every distinct resolved link/embed destination in document order."""
        seen: dict[str, VaultFile] = {}
        for reference in self.references():
            if reference.resolved is not None:
                seen.setdefault(reference.resolved.path, reference.resolved)
        return list(seen.values())


__all__ = [
    "FrontmatterValue",
    "LinkReference",
    "MARKDOWN_EXTENSION",
    "NoteMetadata",
    "VaultFile",
]
