"""CLI tests for configuration commands."""

import os
from pathlib import Path
from typing import Any

import yaml
from click.testing import CliRunner

from vaultpub.cli import cli
from vaultpub.config import ConfigManager


def _env_with_home(tmp_path: Path) -> dict[str, Any]:
    env = {key: value for key, value in os.environ.items() if not key.startswith("VAULTPUB__")}
    env["HOME"] = str(tmp_path)
    return env


def _config_path(tmp_path: Path) -> Path:
    return tmp_path / ".vaultpub" / "config.yaml"


def test_config_view_creates_and_displays_config(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(cli, ["config", "view"], env=env)

    assert result.exit_code == 0
    assert "repo_branch:" in result.output
    assert "Publishing criterion:" in result.output
    assert "Tag starts with: todo" in result.output
    assert _config_path(tmp_path).exists()


def test_config_set_updates_value_and_writes_diff(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(cli, ["config", "set", "repo_branch", "--value", "gh-pages"], env=env)

    assert result.exit_code == 0
    assert "gh-pages" in result.output

    manager = ConfigManager(config_path=_config_path(tmp_path))
    config = manager.load(include_env=False)
    assert config.repo_branch == "gh-pages"


def test_config_set_reports_unchanged_value(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(cli, ["config", "set", "repo_branch", "--value", "main"], env=env)

    assert result.exit_code == 0
    assert "already up to date" in result.output


def test_config_set_rejects_invalid_value(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(
        cli, ["config", "set", "show_preview_before_publishing", "--value", "[1, 2]"], env=env
    )

    assert result.exit_code != 0
    assert "Invalid configuration values" in result.output


def test_config_edit_applies_changes(tmp_path: Path, monkeypatch) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    manager = ConfigManager(config_path=_config_path(tmp_path))
    manager.ensure_exists()

    def _mock_edit(text: str, **_: Any) -> str:
        return text.replace("commit_message: Update published notes", "commit_message: Ship it")

    monkeypatch.setattr("vaultpub.cli.click.edit", _mock_edit)

    result = runner.invoke(cli, ["config", "edit"], env=env)

    assert result.exit_code == 0
    assert "updated" in result.output.lower()
    assert "Publishing criterion:" in result.output

    config = manager.load(include_env=False)
    assert config.commit_message == "Ship it"


def test_config_edit_no_changes(tmp_path: Path, monkeypatch) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    monkeypatch.setattr("vaultpub.cli.click.edit", lambda text, **_: text)

    result = runner.invoke(cli, ["config", "edit"], env=env)

    assert result.exit_code == 0
    assert "No changes detected" in result.output


def test_config_edit_warns_about_unusable_criterion_patterns(tmp_path: Path, monkeypatch) -> None:
    env = _env_with_home(tmp_path)
    manager = ConfigManager(config_path=_config_path(tmp_path))
    manager.ensure_exists()

    def _mock_edit(text: str, **_: Any) -> str:
        data = yaml.safe_load(text)
        data["criterion"] = {"kind": "Content", "regex": "[unclosed"}
        return yaml.safe_dump(data, sort_keys=False)

    monkeypatch.setattr("vaultpub.cli.click.edit", _mock_edit)

    result = CliRunner().invoke(cli, ["config", "edit"], env=env)

    assert result.exit_code == 0, result.output
    assert "Content matches regex: [unclosed" in result.output
    assert "Warning: invalid pattern never matches" in result.output
    assert manager.load(include_env=False).criterion == {"kind": "Content", "regex": "[unclosed"}
