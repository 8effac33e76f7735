"""Kind-to-constructor registry for serialized criterion trees."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable, Optional

from .errors import InvalidCriterionError, UnknownCriterionError
from .matching import TextMatchMode
from .models import (
    AndCriterion,
    ContentCriterion,
    Criterion,
    CriterionKind,
    FrontmatterCriterion,
    NotCriterion,
    OrCriterion,
    PathCriterion,
    TagCriterion,
    TagMatchMode,
    TitleCriterion,
)

# Mode spellings written by earlier releases of the settings file.
_LEGACY_TEXT_MODES = {
    "matches regex": TextMatchMode.REGEX,
    "matches glob": TextMatchMode.GLOB,
}
_LEGACY_TAG_MODES = {"starts with": TagMatchMode.STARTS_WITH}


def _require_str(data: Mapping[str, Any], key: str, *, default: Optional[str] = None) -> str:
    value = data.get(key, default)
    if value is None:
        raise InvalidCriterionError(f"{data.get('kind')} criterion is missing '{key}'.")
    if not isinstance(value, str):
        raise InvalidCriterionError(
            f"{data.get('kind')} criterion field '{key}' must be a string, got {value!r}."
        )
    return value


def _mode_value(data: Mapping[str, Any]) -> Any:
    return data.get("match_mode", data.get("matchMode"))


def _text_mode(data: Mapping[str, Any]) -> TextMatchMode:
    raw = _mode_value(data)
    if raw is None:
        return TextMatchMode.CONTAINS
    if isinstance(raw, bool):
        return TextMatchMode.REGEX if raw else TextMatchMode.CONTAINS
    if isinstance(raw, str) and raw in _LEGACY_TEXT_MODES:
        return _LEGACY_TEXT_MODES[raw]
    try:
        return TextMatchMode(raw)
    except ValueError as exc:
        raise InvalidCriterionError(f"Unknown text match mode: {raw!r}") from exc


def _tag_mode(data: Mapping[str, Any]) -> TagMatchMode:
    raw = _mode_value(data)
    if raw is None:
        return TagMatchMode.STARTS_WITH
    if isinstance(raw, str) and raw in _LEGACY_TAG_MODES:
        return _LEGACY_TAG_MODES[raw]
    try:
        return TagMatchMode(raw)
    except ValueError as exc:
        raise InvalidCriterionError(f"Unknown tag match mode: {raw!r}") from exc


def _children(data: Mapping[str, Any]) -> list[Criterion]:
    raw = data.get("children", data.get("criteria", []))
    if not isinstance(raw, list):
        raise InvalidCriterionError(f"{data.get('kind')} criterion children must be a list.")
    return [deserialize_criterion(child) for child in raw]


def _single_child(data: Mapping[str, Any]) -> Criterion:
    raw = data.get("child", data.get("criterion"))
    if raw is None:
        raise InvalidCriterionError("Not criterion requires exactly one child.")
    return deserialize_criterion(raw)


CRITERION_BUILDERS: dict[CriterionKind, Callable[[Mapping[str, Any]], Criterion]] = {
    CriterionKind.TAG: lambda d: TagCriterion(_require_str(d, "tag"), _tag_mode(d)),
    CriterionKind.FRONTMATTER: lambda d: FrontmatterCriterion(
        _require_str(d, "key"), _require_str(d, "value", default="")
    ),
    CriterionKind.TITLE: lambda d: TitleCriterion(
        _require_str(d, "pattern", default=""), _text_mode(d)
    ),
    CriterionKind.PATH: lambda d: PathCriterion(
        _require_str(d, "pattern", default=""), _text_mode(d)
    ),
    CriterionKind.CONTENT: lambda d: ContentCriterion(_require_str(d, "regex")),
    CriterionKind.AND: lambda d: AndCriterion(_children(d)),
    CriterionKind.OR: lambda d: OrCriterion(_children(d)),
    CriterionKind.NOT: lambda d: NotCriterion(_single_child(d)),
}


def deserialize_criterion(data: Mapping[str, Any]) -> Criterion:
    """Rebuild a criterion tree from its serialized mapping.

    Args:
        data: Mapping produced by :meth:`Criterion.serialize`. The legacy
            ``type``/``criteria``/``criterion``/``matchMode`` spellings are
            accepted as well.

    Returns:
        Criterion: Root node of the rebuilt tree.

    Raises:
        UnknownCriterionError: If any node names an unregistered kind.
        InvalidCriterionError: If a node is missing required fields.
    """
    if not isinstance(data, Mapping):
        raise InvalidCriterionError(f"Serialized criterion must be a mapping, got {data!r}.")
    raw_kind = data.get("kind", data.get("type"))
    try:
        kind = CriterionKind(raw_kind)
    except ValueError as exc:
        raise UnknownCriterionError(raw_kind) from exc
    builder = CRITERION_BUILDERS.get(kind)
    if builder is None:
        raise UnknownCriterionError(raw_kind)
    return builder({**data, "kind": kind.value})


def clone_criterion(criterion: Criterion) -> Criterion:
    """Return a detached deep copy of ``criterion`` via a serialization round trip."""
    return deserialize_criterion(criterion.serialize())


def default_publish_criterion() -> Criterion:
    """Criterion used by a fresh configuration.

    Publishes every note except those under ``_``-prefixed path segments,
    notes tagged ``todo``, and notes still titled ``Untitled``.
    """
    return AndCriterion(
        [
            PathCriterion(r"^(?!.*(?:^|[\\/])_).*", TextMatchMode.REGEX),
            NotCriterion(TagCriterion("todo")),
            NotCriterion(TitleCriterion("^Untitled.*", TextMatchMode.REGEX)),
        ]
    )


__all__ = [
    "CRITERION_BUILDERS",
    "clone_criterion",
    "default_publish_criterion",
    "deserialize_criterion",
]
