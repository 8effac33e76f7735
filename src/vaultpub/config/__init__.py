"""Configuration management for vaultpub."""

from __future__ import annotations

import logging
import os
import tempfile
import textwrap
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from vaultpub.criteria import Criterion, clone_criterion

from .exceptions import ConfigError
from .models import CLIOptions, LoggingSettings, PublisherConfig
from .resolver import (
    ENV_PREFIX,
    flatten_for_env,
    normalize_legacy_keys,
    resolve_with_precedence,
)

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("~/.vaultpub/config.yaml")
_CONFIG_HEADER = textwrap.dedent(
    """\
    # vaultpub configuration file
    # Generated automatically; manage via `vaultpub config edit`, `vaultpub config set`,
    # or `vaultpub criterion edit`.
    """
)


class ConfigManager:
    """Load and persist configuration data, applying precedence rules."""

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()
        self._env = env if env is not None else os.environ

    @property
    def config_path(self) -> Path:
        """Return the resolved configuration path."""
        return self._config_path

    def load(
        self,
        *,
        cli_overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
        ensure_file: bool = True,
        env_overrides: Mapping[str, str] | None = None,
    ) -> PublisherConfig:
        """Load configuration data from disk, applying precedence rules.

        Raises:
            ConfigError: If the file cannot be parsed or holds invalid values,
                including a criterion tree naming an unknown kind.
        """
        if ensure_file:
            self.ensure_exists()

        file_data = self._read_file()
        env_data: Mapping[str, str] | None
        if include_env:
            env_data = env_overrides if env_overrides is not None else self._env
        else:
            env_data = None

        return resolve_with_precedence(
            defaults=PublisherConfig(),
            file_overrides=file_data,
            env_overrides=self._extract_env(env_data) if env_data else None,
            cli_overrides=cli_overrides,
        )

    def load_file_overrides(self) -> dict[str, Any]:
        """Return raw overrides stored on disk."""
        return self._read_file()

    def save(self, config: PublisherConfig | Mapping[str, Any]) -> None:
        """Persist configuration data to disk."""
        data = self._coerce_to_dict(config)
        self._write_file(data, include_header=True)

    def update_criterion(self, criterion: Criterion) -> PublisherConfig:
        """Replace the stored criterion tree and persist it in one write.

        Other stored values are kept as they are on disk; environment
        overrides are not written back.

        Args:
            criterion: Edited tree. A detached copy is stored.

        Returns:
            PublisherConfig: File-backed configuration after the update.
        """
        stored = resolve_with_precedence(
            defaults=PublisherConfig(), file_overrides=self._read_file()
        )
        updated = stored.with_criterion(clone_criterion(criterion))
        self.save(updated)
        LOGGER.info("Saved publishing criterion to %s.", self._config_path)
        return updated

    def ensure_exists(self) -> Path:
        """Create a configuration file with defaults if one does not exist."""
        path = self._config_path
        if path.exists():
            return path

        self._write_file(PublisherConfig().model_dump(mode="python"), include_header=True)
        return path

    def read_text(self) -> str:
        """Return the current configuration file contents."""
        if not self._config_path.exists():
            return ""
        return self._config_path.read_text(encoding="utf-8")

    # Internal helpers -------------------------------------------------

    def _coerce_to_dict(self, value: PublisherConfig | Mapping[str, Any]) -> dict[str, Any]:
        if isinstance(value, PublisherConfig):
            return value.model_dump(mode="python")
        return dict(value)

    def _read_file(self) -> dict[str, Any]:
        if not self._config_path.exists():
            return {}

        try:
            raw = yaml.safe_load(self._config_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse configuration file: {exc}") from exc
        except OSError as exc:
            raise ConfigError(f"Failed to read configuration file: {exc}") from exc

        if not isinstance(raw, dict):
            raise ConfigError("Configuration file must contain a mapping at the top level.")

        return normalize_legacy_keys(raw)

    def _write_file(self, data: Mapping[str, Any], *, include_header: bool = False) -> None:
        path = self._config_path
        path.parent.mkdir(parents=True, exist_ok=True)
        serialized = yaml.safe_dump(dict(data), sort_keys=False, allow_unicode=True)
        header = _CONFIG_HEADER if include_header else ""
        stamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        timestamp = f"# Last updated: {stamp}\n"

        fd, temp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(header + timestamp + serialized)
            os.replace(temp_name, path)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise

    def _extract_env(self, env: Mapping[str, str]) -> dict[str, Any]:
        overrides: dict[str, Any] = {}
        for key, raw_value in env.items():
            if not key.startswith(ENV_PREFIX):
                continue
            path = key[len(ENV_PREFIX) :].split("__")
            if not path or not all(path):
                continue
            parsed_value: Any
            try:
                parsed_value = yaml.safe_load(raw_value)
            except yaml.YAMLError:
                parsed_value = raw_value

            self._assign_nested(overrides, [segment.lower() for segment in path], parsed_value)

        return overrides

    def _assign_nested(self, target: dict[str, Any], path: list[str], value: Any) -> None:
        current = target
        for segment in path[:-1]:
            existing = current.get(segment)
            if not isinstance(existing, dict):
                existing = {}
                current[segment] = existing
            current = existing
        current[path[-1]] = value


__all__ = [
    "CLIOptions",
    "ConfigError",
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "LoggingSettings",
    "PublisherConfig",
    "flatten_for_env",
    "resolve_with_precedence",
]
