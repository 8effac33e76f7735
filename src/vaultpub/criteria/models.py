"""Criterion tree nodes deciding whether a note is publishable.

Every node evaluates a ``(file, content, metadata)`` triple without side
effects, serializes to a plain ``{"kind": ..., ...}`` mapping, and renders a
human-readable summary. Composite nodes (``And``, ``Or``, ``Not``) combine
other nodes; leaf nodes test tags, frontmatter, titles, paths, or content.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Iterator, Optional

from vaultpub.vault.models import NoteMetadata, VaultFile

from .matching import (
    TextMatchMode,
    invalid_glob_lines,
    is_valid_regex,
    match_text,
    regex_search,
)
from .tags import get_all_tags, stringify_value

SUMMARY_INDENT = 2

SerializedCriterion = dict[str, Any]


class CriterionKind(str, Enum):
    """Discriminant stored in the ``kind`` field of a serialized criterion."""

    TAG = "Tag"
    FRONTMATTER = "Frontmatter"
    TITLE = "Title"
    PATH = "Path"
    CONTENT = "Content"
    AND = "And"
    OR = "Or"
    NOT = "Not"


class TagMatchMode(str, Enum):
    """How a configured tag is compared against a note's tags."""

    EQUALS = "equals"
    STARTS_WITH = "starts_with"
    INCLUDES = "includes"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")


def _indent(text: str, spaces: int = SUMMARY_INDENT) -> str:
    pad = " " * spaces
    return "\n".join(pad + line for line in text.split("\n"))


class Criterion(ABC):
    """Abstract node of the publishing predicate tree."""

    kind: ClassVar[CriterionKind]

    @abstractmethod
    def evaluate(
        self,
        file: VaultFile,
        content: str,
        metadata: Optional[NoteMetadata],
    ) -> bool:
        """Return True when the note satisfies this criterion."""

    @abstractmethod
    def serialize(self) -> SerializedCriterion:
        """Return a plain mapping that :func:`deserialize_criterion` accepts."""

    @abstractmethod
    def summary(self) -> str:
        """Return a readable, possibly multi-line description of the node."""

    def children(self) -> list["Criterion"]:
        return []

    def walk(self) -> Iterator["Criterion"]:
        """Yield this node and all descendants depth-first."""
        yield self
        for child in self.children():
            yield from child.walk()


@dataclass
class TagCriterion(Criterion):
    """Match notes carrying a tag, compared case-insensitively.

    ``STARTS_WITH`` also accepts nested subtags (``public`` matches
    ``public/blog``) and ``INCLUDES`` accepts the tag as any ``/`` segment.
    """

    kind: ClassVar[CriterionKind] = CriterionKind.TAG

    tag: str
    match_mode: TagMatchMode = TagMatchMode.STARTS_WITH

    def __post_init__(self) -> None:
        self.tag = self.tag.lower()

    def evaluate(self, file, content, metadata) -> bool:
        return any(self._matches(tag.lower()) for tag in get_all_tags(file, content, metadata))

    def _matches(self, tag: str) -> bool:
        if self.match_mode is TagMatchMode.EQUALS:
            return tag == self.tag
        if self.match_mode is TagMatchMode.STARTS_WITH:
            return tag == self.tag or tag.startswith(self.tag + "/")
        return self.tag in tag.split("/")

    def summary(self) -> str:
        return f"Tag {self.match_mode.label}: {self.tag}"

    def serialize(self) -> SerializedCriterion:
        return {"kind": self.kind.value, "tag": self.tag, "match_mode": self.match_mode.value}


@dataclass
class FrontmatterCriterion(Criterion):
    """Match notes whose frontmatter ``key`` fully matches ``value``.

    ``value`` is a regular expression fragment: it is anchored at both ends
    and compared case-insensitively, so ``draft`` does not match ``drafted``
    while ``draft|review`` matches either word. Literal values containing
    regex metacharacters must be escaped.
    """

    kind: ClassVar[CriterionKind] = CriterionKind.FRONTMATTER

    key: str
    value: str

    def evaluate(self, file, content, metadata) -> bool:
        if metadata is None or self.key not in metadata.frontmatter:
            return False
        rendered = stringify_value(metadata.frontmatter[self.key])
        return regex_search(self.anchored_pattern, rendered)

    @property
    def anchored_pattern(self) -> str:
        return f"^(?:{self.value})\\Z"

    def summary(self) -> str:
        return f"Frontmatter: {self.key} = {self.value}"

    def serialize(self) -> SerializedCriterion:
        return {"kind": self.kind.value, "key": self.key, "value": self.value}


@dataclass
class ContentCriterion(Criterion):
    """Match notes whose body contains a case-insensitive regex match."""

    kind: ClassVar[CriterionKind] = CriterionKind.CONTENT

    regex: str

    def evaluate(self, file, content, metadata) -> bool:
        return regex_search(self.regex, content)

    def summary(self) -> str:
        return f"Content matches regex: {self.regex}"

    def serialize(self) -> SerializedCriterion:
        return {"kind": self.kind.value, "regex": self.regex}


@dataclass
class PatternCriterion(Criterion):
    """Base for criteria applying a text pattern to a value derived from the file."""

    pattern: str
    match_mode: TextMatchMode = TextMatchMode.CONTAINS

    @abstractmethod
    def target_value(self, file: VaultFile) -> str:
        """Return the string the pattern is tested against."""

    def evaluate(self, file, content, metadata) -> bool:
        return match_text(self.pattern, self.target_value(file), self.match_mode)

    def summary(self) -> str:
        return f"{self.kind.value} {self.match_mode.label}: {self.pattern}"

    def serialize(self) -> SerializedCriterion:
        return {
            "kind": self.kind.value,
            "pattern": self.pattern,
            "match_mode": self.match_mode.value,
        }


@dataclass
class TitleCriterion(PatternCriterion):
    """Match against the file name without its extension."""

    kind: ClassVar[CriterionKind] = CriterionKind.TITLE

    def target_value(self, file: VaultFile) -> str:
        return file.basename


@dataclass
class PathCriterion(PatternCriterion):
    """Match against the vault-relative path with forward slashes."""

    kind: ClassVar[CriterionKind] = CriterionKind.PATH

    def target_value(self, file: VaultFile) -> str:
        return file.path.replace("\\", "/")


@dataclass
class AndCriterion(Criterion):
    """True when every child is true; an empty AND is vacuously true."""

    kind: ClassVar[CriterionKind] = CriterionKind.AND

    criteria: list[Criterion] = field(default_factory=list)

    def evaluate(self, file, content, metadata) -> bool:
        return all(child.evaluate(file, content, metadata) for child in self.criteria)

    def children(self) -> list[Criterion]:
        return list(self.criteria)

    def summary(self) -> str:
        return "\n".join(["AND:", *(_indent(child.summary()) for child in self.criteria)])

    def serialize(self) -> SerializedCriterion:
        return {"kind": self.kind.value, "children": [c.serialize() for c in self.criteria]}


@dataclass
class OrCriterion(Criterion):
    """True when any child is true; an empty OR is false."""

    kind: ClassVar[CriterionKind] = CriterionKind.OR

    criteria: list[Criterion] = field(default_factory=list)

    def evaluate(self, file, content, metadata) -> bool:
        return any(child.evaluate(file, content, metadata) for child in self.criteria)

    def children(self) -> list[Criterion]:
        return list(self.criteria)

    def summary(self) -> str:
        return "\n".join(["OR:", *(_indent(child.summary()) for child in self.criteria)])

    def serialize(self) -> SerializedCriterion:
        return {"kind": self.kind.value, "children": [c.serialize() for c in self.criteria]}


@dataclass
class NotCriterion(Criterion):
    """Negate exactly one child criterion."""

    kind: ClassVar[CriterionKind] = CriterionKind.NOT

    criterion: Criterion

    def evaluate(self, file, content, metadata) -> bool:
        return not self.criterion.evaluate(file, content, metadata)

    def children(self) -> list[Criterion]:
        return [self.criterion]

    def summary(self) -> str:
        return "NOT:\n" + _indent(self.criterion.summary())

    def serialize(self) -> SerializedCriterion:
        return {"kind": self.kind.value, "child": self.criterion.serialize()}


def is_pattern_valid(criterion: Criterion) -> bool:
    """Return False when a leaf carries a regex or glob that can never match.

    Such patterns fail closed during evaluation instead of raising.
    """
    if isinstance(criterion, ContentCriterion):
        return is_valid_regex(criterion.regex)
    if isinstance(criterion, FrontmatterCriterion):
        return is_valid_regex(criterion.anchored_pattern)
    if isinstance(criterion, PatternCriterion):
        if criterion.match_mode is TextMatchMode.REGEX:
            return is_valid_regex(criterion.pattern)
        if criterion.match_mode is TextMatchMode.GLOB:
            return not invalid_glob_lines(criterion.pattern)
    return True


def invalid_pattern_nodes(criterion: Criterion) -> list[Criterion]:
    """Return every node of the tree rooted at ``criterion`` with an unusable pattern."""
    return [node for node in criterion.walk() if not is_pattern_valid(node)]


__all__ = [
    "AndCriterion",
    "ContentCriterion",
    "Criterion",
    "CriterionKind",
    "FrontmatterCriterion",
    "NotCriterion",
    "OrCriterion",
    "PathCriterion",
    "PatternCriterion",
    "SerializedCriterion",
    "SUMMARY_INDENT",
    "TagCriterion",
    "TagMatchMode",
    "TitleCriterion",
    "invalid_pattern_nodes",
    "is_pattern_valid",
]
