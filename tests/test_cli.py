"""CLI tests for preview, publish, status, criterion, and repo commands."""

import json
import os
from pathlib import Path
from typing import Any

import pytest
import yaml
from click.testing import CliRunner

from vaultpub.cli import cli
from vaultpub.config import ConfigManager
from vaultpub.criteria import TagCriterion
from vaultpub.vcs import GitError, RepoValidationResult


def _env_with_home(tmp_path: Path) -> dict[str, Any]:
    env = {key: value for key, value in os.environ.items() if not key.startswith("VAULTPUB__")}
    env["HOME"] = str(tmp_path)
    return env


def _manager(tmp_path: Path) -> ConfigManager:
    return ConfigManager(config_path=tmp_path / ".vaultpub" / "config.yaml")


@pytest.fixture()
def cli_env(tmp_path: Path, vault_dir: Path, repo_dir: Path, write_file, fake_git, monkeypatch):
    write_file(vault_dir, "a.md", "---\ntags: [public]\n---\nAlpha")
    write_file(vault_dir, "b.md", "Beta")
    _manager(tmp_path).save(
        {"repo": str(repo_dir), "criterion": TagCriterion("public").serialize()}
    )
    monkeypatch.setattr("vaultpub.workflow.GitHelper", lambda: fake_git)
    monkeypatch.setattr("vaultpub.cli.GitHelper", lambda: fake_git)
    return _env_with_home(tmp_path)


def test_status_counts_publishable_notes(cli_env, vault_dir: Path) -> None:
    result = CliRunner().invoke(cli, ["status", str(vault_dir)], env=cli_env)

    assert result.exit_code == 0, result.output
    assert "1 publishable notes" in result.output


def test_preview_renders_changes(cli_env, vault_dir: Path, repo_dir: Path, write_file) -> None:
    write_file(repo_dir, "old.md", "stale")

    result = CliRunner().invoke(cli, ["preview", str(vault_dir)], env=cli_env)

    assert result.exit_code == 0, result.output
    assert "a.md" in result.output
    assert "old.md" in result.output
    assert "deleted" in result.output
    assert "b.md" not in result.output


def test_preview_json(cli_env, vault_dir: Path) -> None:
    result = CliRunner().invoke(cli, ["preview", str(vault_dir), "--json"], env=cli_env)

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["changed"] == [{"path": "a.md", "status": "new"}]
    assert payload["has_uncommitted_changes"] is False


def test_preview_reports_nothing_to_publish(cli_env, tmp_path: Path) -> None:
    empty = tmp_path / "empty-vault"
    empty.mkdir()

    result = CliRunner().invoke(cli, ["preview", str(empty)], env=cli_env)

    assert result.exit_code == 0, result.output
    assert "No files to publish or unpublish." in result.output


def test_publish_cancel_has_no_side_effects(
    cli_env, vault_dir: Path, repo_dir: Path, fake_git
) -> None:
    result = CliRunner().invoke(cli, ["publish", str(vault_dir)], env=cli_env, input="cancel\n")

    assert result.exit_code == 0, result.output
    assert "cancelled" in result.output.lower()
    assert not (repo_dir / "a.md").exists()
    assert fake_git.names == ["status"]


def test_publish_prompt_can_choose_commit(
    cli_env, vault_dir: Path, repo_dir: Path, fake_git
) -> None:
    result = CliRunner().invoke(cli, ["publish", str(vault_dir)], env=cli_env, input="commit\n")

    assert result.exit_code == 0, result.output
    assert "Successfully committed 1 notes." in result.output
    assert (repo_dir / "a.md").exists()
    assert "push" not in fake_git.names


def test_publish_yes_pushes(cli_env, vault_dir: Path, repo_dir: Path, fake_git) -> None:
    result = CliRunner().invoke(cli, ["publish", str(vault_dir), "--yes"], env=cli_env)

    assert result.exit_code == 0, result.output
    assert "Successfully published 1 notes." in result.output
    assert fake_git.names == ["pull", "add", "commit", "push"]


def test_publish_commit_only_json(cli_env, vault_dir: Path, fake_git) -> None:
    result = CliRunner().invoke(
        cli, ["publish", str(vault_dir), "--commit-only", "--yes", "--json"], env=cli_env
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["action"] == "commit"
    assert payload["published_count"] == 1
    assert payload["reconcile"]["written"] == ["a.md"]
    assert fake_git.names == ["add", "commit"]


def test_publish_failure_shows_diagnostics(
    cli_env, vault_dir: Path, repo_dir: Path, fake_git
) -> None:
    fake_git.fail_on["push"] = GitError(
        "Failed to push changes.",
        action="push changes",
        cwd=repo_dir,
        output="remote rejected",
        returncode=1,
    )

    result = CliRunner().invoke(cli, ["publish", str(vault_dir), "--yes"], env=cli_env)

    assert result.exit_code == 1
    assert "Publishing failed: Git operation failed:" in result.output
    assert "remote rejected" in result.output


def test_publish_failure_json_payload(cli_env, vault_dir: Path, repo_dir: Path, fake_git) -> None:
    fake_git.fail_on["pull"] = GitError(
        "Failed to pull from remote.", action="pull from remote", cwd=repo_dir, output="offline"
    )

    result = CliRunner().invoke(
        cli, ["publish", str(vault_dir), "--yes", "--json"], env=cli_env
    )

    assert result.exit_code == 1
    payload = json.loads(result.stdout)
    assert payload["error"]["code"] == "publish_failed"
    assert payload["error"]["details"]["action"] == "pull from remote"


def test_criterion_show(cli_env) -> None:
    result = CliRunner().invoke(cli, ["criterion", "show"], env=cli_env)

    assert result.exit_code == 0, result.output
    assert "Tag starts with: public" in result.output


def test_criterion_edit_saves_valid_tree(cli_env, tmp_path: Path, monkeypatch) -> None:
    edited_tree = {"kind": "Or", "children": [{"kind": "Tag", "tag": "blog"}]}

    def _mock_edit(text: str, **_: Any) -> str:
        assert yaml.safe_load(text) == TagCriterion("public").serialize()
        return yaml.safe_dump(edited_tree)

    monkeypatch.setattr("vaultpub.cli.click.edit", _mock_edit)

    result = CliRunner().invoke(cli, ["criterion", "edit"], env=cli_env)

    assert result.exit_code == 0, result.output
    assert "OR:" in result.output
    config = _manager(tmp_path).load(include_env=False)
    assert config.criterion["kind"] == "Or"
    assert config.criterion["children"][0]["match_mode"] == "starts_with"


def test_criterion_edit_warns_about_unusable_patterns(
    cli_env, tmp_path: Path, monkeypatch
) -> None:
    edited_tree = {
        "kind": "And",
        "children": [
            {"kind": "Tag", "tag": "blog"},
            {"kind": "Title", "pattern": "(draft", "match_mode": "regex"},
        ],
    }
    monkeypatch.setattr(
        "vaultpub.cli.click.edit", lambda *_args, **_kw: yaml.safe_dump(edited_tree)
    )

    result = CliRunner().invoke(cli, ["criterion", "edit"], env=cli_env)

    assert result.exit_code == 0, result.output
    assert "Warning: invalid pattern never matches: Title matches regex: (draft" in result.output
    assert result.output.count("Warning:") == 1
    assert _manager(tmp_path).load(include_env=False).criterion["kind"] == "And"


def test_criterion_edit_rejects_unknown_kind(cli_env, tmp_path: Path, monkeypatch) -> None:
    before = _manager(tmp_path).read_text()
    monkeypatch.setattr("vaultpub.cli.click.edit", lambda *_args, **_kw: "kind: Sentiment\n")

    result = CliRunner().invoke(cli, ["criterion", "edit"], env=cli_env)

    assert result.exit_code != 0
    assert "Unknown criterion type: Sentiment" in result.output
    assert _manager(tmp_path).read_text() == before


def test_criterion_edit_cancel(cli_env, tmp_path: Path, monkeypatch) -> None:
    before = _manager(tmp_path).read_text()
    monkeypatch.setattr("vaultpub.cli.click.edit", lambda *_args, **_kw: None)

    result = CliRunner().invoke(cli, ["criterion", "edit"], env=cli_env)

    assert result.exit_code == 0
    assert "cancelled" in result.output.lower()
    assert _manager(tmp_path).read_text() == before


def test_criterion_check(cli_env, vault_dir: Path) -> None:
    runner = CliRunner()

    passing = runner.invoke(cli, ["criterion", "check", str(vault_dir), "a.md"], env=cli_env)
    failing = runner.invoke(
        cli, ["criterion", "check", str(vault_dir), str(vault_dir / "b.md")], env=cli_env
    )
    missing = runner.invoke(cli, ["criterion", "check", str(vault_dir), "zzz.md"], env=cli_env)

    assert "a.md is publishable" in passing.output
    assert "b.md is not publishable" in failing.output
    assert missing.exit_code != 0


def test_repo_validate_reports_errors(cli_env, fake_git, monkeypatch) -> None:
    ok = CliRunner().invoke(cli, ["repo", "validate"], env=cli_env)
    assert ok.exit_code == 0, ok.output
    assert "is a valid Git repository." in ok.output

    monkeypatch.setattr(
        fake_git,
        "validate_repo",
        lambda _path: RepoValidationResult(False, "Path is not a valid Git repository."),
    )
    bad = CliRunner().invoke(cli, ["repo", "validate"], env=cli_env)

    assert bad.exit_code != 0
    assert "Path is not a valid Git repository." in bad.output


def test_repo_branches_falls_back_to_first_branch(cli_env, tmp_path: Path, fake_git) -> None:
    fake_git.branches = ["trunk", "dev"]

    result = CliRunner().invoke(cli, ["repo", "branches"], env=cli_env)

    assert result.exit_code == 0, result.output
    assert "* trunk" in result.output
    assert _manager(tmp_path).load(include_env=False).repo_branch == "trunk"


def test_long_messages_stay_on_one_line(cli_env, tmp_path: Path) -> None:
    deep_repo = tmp_path.joinpath(*(["nested-publishing-directory"] * 6))
    deep_repo.mkdir(parents=True)

    result = CliRunner().invoke(cli, ["repo", "validate", "--repo", str(deep_repo)], env=cli_env)

    assert result.exit_code == 0, result.output
    assert f"{deep_repo} is a valid Git repository." in result.output.splitlines()
