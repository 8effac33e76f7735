"""Configuration models describing vaultpub settings."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from vaultpub.criteria import (
    Criterion,
    CriterionError,
    default_publish_criterion,
    deserialize_criterion,
    invalid_glob_lines,
)
from vaultpub.publishing.models import PublishOptions


class VaultpubBaseModel(BaseModel):
    """Shared configuration for vaultpub Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class LoggingSettings(VaultpubBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level name.
        file: Optional path of a log file receiving the same records.
    """

    level: str = "WARNING"
    file: Optional[str] = None


class CLIOptions(VaultpubBaseModel):
    """CLI behavior defaults and presentation preferences.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
        summary_default: Whether commands only print summary lines by default.
    """

    quiet_default: bool = False
    summary_default: bool = False


class PublisherConfig(VaultpubBaseModel):
    """Top-level configuration for publishing a vault.

    Attributes:
        repo: Directory (a git work tree) receiving the published files.
        repo_branch: Branch pulled from and pushed to.
        criterion: Serialized criterion tree selecting publishable notes.
        commit_message: Message used for publishing commits.
        show_preview_before_publishing: Whether ``publish`` confirms first.
        publish_attachments: Whether files linked from selected notes are published.
        extra_file_patterns: Multi-line glob list selecting additional files.
        logging: Logging configuration.
        cli: CLI presentation defaults.
    """

    repo: str = "/path/to/publish/repo"
    repo_branch: str = "main"
    criterion: dict[str, Any] = Field(
        default_factory=lambda: default_publish_criterion().serialize()
    )
    commit_message: str = "Update published notes"
    show_preview_before_publishing: bool = True
    publish_attachments: bool = False
    extra_file_patterns: str = ""
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)

    @field_validator("criterion")
    @classmethod
    def _validate_criterion(cls, value: dict[str, Any]) -> dict[str, Any]:
        try:
            return deserialize_criterion(value).serialize()
        except CriterionError as exc:
            raise ValueError(str(exc)) from exc

    @field_validator("extra_file_patterns")
    @classmethod
    def _validate_patterns(cls, value: str) -> str:
        invalid = invalid_glob_lines(value)
        if invalid:
            raise ValueError(f"Invalid glob pattern(s): {', '.join(invalid)}")
        return value

    def load_criterion(self) -> Criterion:
        """Return the criterion tree described by :attr:`criterion`."""
        return deserialize_criterion(self.criterion)

    def with_criterion(self, criterion: Criterion) -> "PublisherConfig":
        """Return a copy of this configuration using ``criterion``.

        The receiver is left untouched; callers swap the returned object in.
        """
        return self.model_copy(update={"criterion": criterion.serialize()}, deep=True)

    def publish_options(self) -> PublishOptions:
        return PublishOptions(
            publish_attachments=self.publish_attachments,
            extra_file_patterns=self.extra_file_patterns,
        )


__all__ = [
    "CLIOptions",
    "LoggingSettings",
    "PublisherConfig",
    "VaultpubBaseModel",
]
