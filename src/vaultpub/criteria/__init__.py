"""Publishing criteria: pattern matchers, tag extraction, and the criterion tree."""

from .errors import CriterionError, InvalidCriterionError, UnknownCriterionError
from .matching import (
    TextMatchMode,
    invalid_glob_lines,
    is_valid_glob_pattern,
    is_valid_regex,
    match_glob_list,
    match_text,
)
from .models import (
    AndCriterion,
    ContentCriterion,
    Criterion,
    CriterionKind,
    FrontmatterCriterion,
    NotCriterion,
    OrCriterion,
    PathCriterion,
    SerializedCriterion,
    TagCriterion,
    TagMatchMode,
    TitleCriterion,
    invalid_pattern_nodes,
    is_pattern_valid,
)
from .registry import (
    clone_criterion,
    default_publish_criterion,
    deserialize_criterion,
)
from .tags import extract_tags, get_all_tags, stringify_value

__all__ = [
    "AndCriterion",
    "ContentCriterion",
    "Criterion",
    "CriterionError",
    "CriterionKind",
    "FrontmatterCriterion",
    "InvalidCriterionError",
    "NotCriterion",
    "OrCriterion",
    "PathCriterion",
    "SerializedCriterion",
    "TagCriterion",
    "TagMatchMode",
    "TextMatchMode",
    "TitleCriterion",
    "UnknownCriterionError",
    "clone_criterion",
    "default_publish_criterion",
    "deserialize_criterion",
    "extract_tags",
    "invalid_pattern_nodes",
    "get_all_tags",
    "invalid_glob_lines",
    "is_pattern_valid",
    "is_valid_glob_pattern",
    "is_valid_regex",
    "match_glob_list",
    "match_text",
    "stringify_value",
]
