"""Tests for tag extraction and frontmatter value rendering."""

from datetime import date

from vaultpub.criteria import extract_tags, get_all_tags, stringify_value
from vaultpub.vault import NoteMetadata, VaultFile


def test_extract_tags_skips_code_blocks_and_comment_lines() -> None:
    content = "\n".join(
        [
            "Intro #public and #blog-post",
            "```python",
            "# not a tag #secret",
            "```",
            "%% #hidden comment %%",
            "Closing #final_draft",
        ]
    )

    assert extract_tags(content) == {"public", "blog-post", "final_draft"}


def test_extract_tags_stops_at_slash() -> None:
    assert extract_tags("See #public/blog") == {"public"}


def test_get_all_tags_unions_frontmatter_and_body() -> None:
    file = VaultFile("note.md")
    metadata = NoteMetadata(frontmatter={"tags": ["public/blog", "Travel"]})

    assert get_all_tags(file, "Body #inline", metadata) == {"public/blog", "Travel", "inline"}


def test_scalar_frontmatter_tag_and_missing_metadata() -> None:
    file = VaultFile("note.md")

    assert get_all_tags(file, "", NoteMetadata(frontmatter={"tags": "solo"})) == {"solo"}
    assert get_all_tags(file, "", NoteMetadata(frontmatter={"tags": None})) == set()
    assert get_all_tags(file, "#x", None) == {"x"}


def test_stringify_value_renders_yaml_scalars() -> None:
    assert stringify_value(True) == "true"
    assert stringify_value(False) == "false"
    assert stringify_value(3) == "3"
    assert stringify_value(3.0) == "3"
    assert stringify_value(2.5) == "2.5"
    assert stringify_value("draft") == "draft"
    assert stringify_value(date(2024, 5, 1)) == "2024-05-01"


def test_stringify_value_renders_collections_as_compact_json() -> None:
    assert stringify_value([1, "a"]) == '[1,"a"]'
    assert stringify_value({"k": None}) == '{"k":null}'
