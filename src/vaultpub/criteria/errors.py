"""Criterion tree errors."""


class CriterionError(Exception):
    """Base exception for criterion tree operations."""


class UnknownCriterionError(CriterionError):
    """Raised when a serialized criterion names a kind that is not registered."""

    def __init__(self, kind: object) -> None:
        super().__init__(f"Unknown criterion type: {kind}")
        self.kind = kind


class InvalidCriterionError(CriterionError):
    """Raised when a serialized criterion record is malformed."""
