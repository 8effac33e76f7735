"""Frontmatter and link extraction for markdown notes."""

from __future__ import annotations

import logging
import re
from typing import Any
from urllib.parse import unquote

import yaml

from .models import LinkReference

LOGGER = logging.getLogger(__name__)

_FRONTMATTER_DELIMITER = "---"
_WIKILINK = re.compile(r"(!?)\[\[([^\[\]\n]+?)\]\]")
_MARKDOWN_LINK = re.compile(r"(!?)\[[^\]\n]*\]\(\s*<?([^)\s>]+)>?(?:\s+\"[^\"]*\")?\s*\)")
_URL_SCHEME = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")


def split_frontmatter(content: str) -> tuple[dict[str, Any], str]:
    """Split YAML frontmatter from the body of a note.

    Returns an empty mapping when the note has no frontmatter block, when the
    block is not valid YAML, or when it does not contain a mapping.
    """
    lines = content.split("\n")
    if not lines or lines[0].strip() != _FRONTMATTER_DELIMITER:
        return {}, content
    for index in range(1, len(lines)):
        if lines[index].strip() == _FRONTMATTER_DELIMITER:
            block = "\n".join(lines[1:index])
            body = "\n".join(lines[index + 1 :])
            break
    else:
        return {}, content

    try:
        data = yaml.safe_load(block) or {}
    except yaml.YAMLError as exc:
        LOGGER.warning("Ignoring invalid frontmatter: %s", exc)
        return {}, body
    if not isinstance(data, dict):
        return {}, body
    return {str(key): value for key, value in data.items()}, body


def normalize_link_target(raw: str) -> str:
    """Strip aliases, heading and block anchors from a link target."""
    target = raw.split("|", 1)[0]
    target = target.split("#", 1)[0]
    return target.strip()


def extract_links(body: str) -> tuple[list[LinkReference], list[LinkReference]]:
    """Return ``(links, embeds)`` referenced from a note body.

    Wiki links (``[[note]]``) and markdown links (``[text](path)``) are
    collected; external URLs and in-note anchors are skipped.
    """
    links: list[LinkReference] = []
    embeds: list[LinkReference] = []

    def _add(raw: str, embed: bool) -> None:
        target = normalize_link_target(raw)
        if not target:
            return
        reference = LinkReference(target=target, embed=embed)
        (embeds if embed else links).append(reference)

    for match in _WIKILINK.finditer(body):
        _add(match.group(2), bool(match.group(1)))
    for match in _MARKDOWN_LINK.finditer(body):
        target = match.group(2)
        if _URL_SCHEME.match(target):
            continue
        _add(unquote(target), bool(match.group(1)))
    return links, embeds


__all__ = ["extract_links", "normalize_link_target", "split_frontmatter"]
