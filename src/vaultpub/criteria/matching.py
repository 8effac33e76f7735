"""Text, regex, and gitignore-style glob matching helpers.

All matchers fail closed: an invalid regex or glob is logged and treated as a
non-match so a single bad pattern never blocks a publish run.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import NamedTuple

from pathspec import PathSpec

LOGGER = logging.getLogger(__name__)


class TextMatchMode(str, Enum):
    """How a textual pattern is applied to its target value."""

    CONTAINS = "contains"
    REGEX = "regex"
    GLOB = "glob"

    @property
    def label(self) -> str:
        return _TEXT_MODE_LABELS[self]


_TEXT_MODE_LABELS = {
    TextMatchMode.CONTAINS: "contains",
    TextMatchMode.REGEX: "matches regex",
    TextMatchMode.GLOB: "matches glob",
}


class GlobLine(NamedTuple):
    """A single parsed line of a gitignore-style pattern list.

    Attributes:
        negated: Whether the line started with ``!``.
        glob: Bare glob with the negation marker removed; empty for blanks/comments.
    """

    negated: bool
    glob: str


def parse_glob_line(line: str) -> GlobLine:
    """Parse one line of a glob list, handling blanks, ``#`` comments, and ``!``."""
    trimmed = line.strip()
    if not trimmed or trimmed.startswith("#"):
        return GlobLine(False, "")
    negated = trimmed.startswith("!")
    glob = trimmed[1:] if negated else trimmed
    return GlobLine(negated, glob)


def _compile_glob(glob: str) -> PathSpec:
    return PathSpec.from_lines("gitwildmatch", [glob])


def is_valid_regex(pattern: str) -> bool:
    """Return True when ``pattern`` compiles as a regular expression."""
    try:
        re.compile(pattern)
    except re.error:
        return False
    return True


def is_valid_glob_pattern(
    line: str,
    *,
    allow_negated: bool = False,
    allow_empty_or_comment: bool = False,
) -> bool:
    """Return True if ``line`` is a usable gitignore-style glob.

    Args:
        line: Raw line as typed by the user.
        allow_negated: Accept ``!``-prefixed lines.
        allow_empty_or_comment: Accept blank and ``#`` comment lines.
    """
    negated, glob = parse_glob_line(line)
    if not glob:
        return allow_empty_or_comment
    try:
        _compile_glob(glob)
    except ValueError:
        return False
    return allow_negated or not negated


def invalid_glob_lines(multiline_pattern: str) -> list[str]:
    """Return every line of a glob list that would be skipped as invalid."""
    return [
        line.strip()
        for line in multiline_pattern.splitlines()
        if not is_valid_glob_pattern(line, allow_negated=True, allow_empty_or_comment=True)
    ]


def regex_search(pattern: str, value: str, flags: int = re.IGNORECASE) -> bool:
    """Search ``value`` for ``pattern``; invalid patterns count as no match."""
    try:
        compiled = re.compile(pattern, flags)
    except re.error as exc:
        LOGGER.error("Invalid regex pattern %r: %s", pattern, exc)
        return False
    return compiled.search(value) is not None


def match_glob_list(multiline_pattern: str, value: str) -> bool:
    """Test ``value`` against newline-separated gitignore-style globs.

    Blank lines and ``#`` comments are ignored, ``!`` negates a line, and the
    last matching line decides the verdict. Lines that fail to compile are
    logged and skipped without touching the running result.
    """
    matched = False
    for raw_line in multiline_pattern.splitlines():
        negated, glob = parse_glob_line(raw_line)
        if not glob:
            continue
        try:
            spec = _compile_glob(glob)
        except ValueError as exc:
            LOGGER.error("Invalid glob pattern %r: %s", glob, exc)
            continue
        if spec.match_file(value):
            matched = not negated
    return matched


def match_text(pattern: str, value: str, mode: TextMatchMode) -> bool:
    """Apply ``pattern`` to ``value`` according to ``mode``."""
    if mode is TextMatchMode.REGEX:
        return regex_search(pattern, value)
    if mode is TextMatchMode.GLOB:
        return match_glob_list(pattern, value)
    return pattern.lower() in value.lower()


__all__ = [
    "GlobLine",
    "TextMatchMode",
    "invalid_glob_lines",
    "is_valid_glob_pattern",
    "is_valid_regex",
    "match_glob_list",
    "match_text",
    "parse_glob_line",
    "regex_search",
]
