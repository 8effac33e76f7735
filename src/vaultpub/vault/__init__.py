"""Access to the source note collection (the vault)."""

from .errors import VaultError
from .models import FrontmatterValue, LinkReference, NoteMetadata, VaultFile
from .parsing import extract_links, split_frontmatter
from .scanner import Vault

__all__ = [
    "FrontmatterValue",
    "LinkReference",
    "NoteMetadata",
    "Vault",
    "VaultError",
    "VaultFile",
    "extract_links",
    "split_frontmatter",
]
