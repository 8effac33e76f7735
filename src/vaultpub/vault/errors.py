"""Vault access errors."""


class VaultError(Exception):
    """Raised when a vault root or one of its files cannot be accessed."""
