"""Tag extraction from note bodies and frontmatter."""

from __future__ import annotations

import json
import re
from datetime import date, datetime
from typing import Optional

from vaultpub.vault.models import FrontmatterValue, NoteMetadata, VaultFile

_INLINE_TAG = re.compile(r"#([\w-]+)")
_CODE_FENCE = "```"
_COMMENT_MARKER = "%%"


def stringify_value(value: FrontmatterValue) -> str:
    """Render a frontmatter value as text for matching.

    Scalars render the way a YAML author wrote them (``true``/``false`` for
    booleans, integral floats without a fraction, dates in ISO format); lists
    and mappings render as compact JSON.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else repr(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)


def extract_tags(content: str) -> set[str]:
    """Collect inline ``#tags`` outside fenced code blocks and ``%%`` comment lines."""
    tags: set[str] = set()
    in_code_block = False
    for line in content.split("\n"):
        stripped = line.strip()
        if stripped.startswith(_CODE_FENCE):
            in_code_block = not in_code_block
            continue
        if in_code_block or stripped.startswith(_COMMENT_MARKER):
            continue
        tags.update(_INLINE_TAG.findall(line))
    return tags


def frontmatter_tags(metadata: Optional[NoteMetadata]) -> set[str]:
    if metadata is None:
        return set()
    raw = metadata.frontmatter.get("tags")
    if isinstance(raw, list):
        return {stringify_value(item) for item in raw}
    if not raw:
        return set()
    return {stringify_value(raw)}


def get_all_tags(
    file: VaultFile,
    content: str,
    metadata: Optional[NoteMetadata],
) -> set[str]:
    """Return the union of frontmatter ``tags`` and inline body tags for a note."""
    return frontmatter_tags(metadata) | extract_tags(content)


__all__ = ["extract_tags", "frontmatter_tags", "get_all_tags", "stringify_value"]
