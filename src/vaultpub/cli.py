"""Command line interface for vaultpub."""

from __future__ import annotations

import difflib
from pathlib import Path
from typing import Any

import click
import yaml
from click.core import ParameterSource
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from vaultpub.config import ConfigError, ConfigManager, PublisherConfig, resolve_with_precedence
from vaultpub.criteria import (
    Criterion,
    CriterionError,
    clone_criterion,
    deserialize_criterion,
    invalid_pattern_nodes,
)
from vaultpub.logging_setup import configure_logging
from vaultpub.publishing import FileRecord, FileUpdateStatus, is_file_publishable
from vaultpub.vault import Vault, VaultError
from vaultpub.vcs import GitError, GitHelper
from vaultpub.workflow import (
    NOTHING_TO_PUBLISH_MESSAGE,
    PublishAction,
    PublishError,
    Publisher,
    PublishPreview,
)

console = Console(soft_wrap=True)

_STATUS_STYLES = {
    FileUpdateStatus.NEW: "green",
    FileUpdateStatus.MODIFIED: "yellow",
    FileUpdateStatus.DELETED: "red",
    FileUpdateStatus.UNMODIFIED: "dim",
}
_CANCEL = "cancel"

_vault_argument = click.argument(
    "vault_path",
    metavar="VAULT",
    type=click.Path(exists=True, file_okay=False, path_type=str),
)


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    details: Any | None = None,
    original: Exception | None = None,
) -> None:
    """Emit a standardized error and terminate the command appropriately.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        details: Optional structured details to include in the payload.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output to terminate the command.
        click.ClickException: For non-JSON flows to surface the error.
    """

    if json_output:
        payload: dict[str, Any] = {"error": {"code": code, "message": message}}
        if details is not None:
            payload["error"]["details"] = details
        console.print_json(data=payload)
        raise SystemExit(1)

    if isinstance(original, click.ClickException):
        raise original

    raise click.ClickException(message) from original


def _emit_message(message: Any, *, mode: str, quiet: bool, summary_only: bool) -> None:
    """Conditionally print CLI output according to quiet/summary settings.

    Args:
        message: Renderable or string to emit.
        mode: Output mode identifier (`detail`, `summary`, `warning`, or `error`).
        quiet: Whether quiet mode is active.
        summary_only: Whether only summary lines should be emitted.
    """

    if quiet and mode != "error":
        return

    important_modes = {"summary", "warning", "error"}
    if summary_only and mode not in important_modes:
        return

    console.print(message)


def _format_summary_line(command: str, root: Path | str, metrics: dict[str, Any]) -> str:
    """Return a consistent summary line for CLI commands."""

    parts = ", ".join(f"{key}={value}" for key, value in metrics.items())
    return f"[green]{command} summary for {root}: {parts}.[/green]"


def _git_details(exc: Exception) -> dict[str, Any] | None:
    cause = exc if isinstance(exc, GitError) else exc.__cause__
    if not isinstance(cause, GitError):
        return None
    return {
        "action": cause.action,
        "cwd": cause.cwd,
        "output": cause.output,
        "returncode": cause.returncode,
    }


def _warn_invalid_patterns(tree: Criterion) -> None:
    """Print a warning for every criterion node whose pattern can never match."""
    for node in invalid_pattern_nodes(tree):
        console.print(
            f"[yellow]Warning: invalid pattern never matches: {escape(node.summary())}[/yellow]"
        )


def _load_config(json_output: bool = False) -> tuple[ConfigManager, PublisherConfig]:
    """Load the effective configuration and configure logging from it."""
    manager = ConfigManager()
    try:
        manager.ensure_exists()
        config = manager.load()
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
        raise  # _handle_cli_error always raises
    configure_logging(config.logging, Console(stderr=True))
    return manager, config


def _resolve_output_modes(
    ctx: click.Context,
    config: PublisherConfig,
    *,
    quiet: bool,
    summary_mode: bool,
    json_output: bool,
) -> tuple[bool, bool]:
    """Combine explicit flags with configured CLI defaults.

    Returns:
        tuple[bool, bool]: Effective ``(quiet, summary_only)`` flags.

    Raises:
        click.ClickException: If the requested modes conflict.
    """
    explicit_quiet = ctx.get_parameter_source("quiet") == ParameterSource.COMMANDLINE
    explicit_summary = ctx.get_parameter_source("summary_mode") == ParameterSource.COMMANDLINE

    quiet_enabled = quiet if explicit_quiet else config.cli.quiet_default
    summary_only = summary_mode if explicit_summary else config.cli.summary_default

    if json_output:
        if explicit_quiet and quiet_enabled:
            raise click.ClickException("--json cannot be combined with --quiet.")
        if explicit_summary and summary_only:
            raise click.ClickException("--json cannot be combined with --summary.")
        return False, False

    if quiet_enabled and summary_only:
        raise click.ClickException(
            "Quiet and summary modes cannot both be enabled. Adjust CLI defaults or flags."
        )
    return quiet_enabled, summary_only


def _open_vault(path: str) -> Vault:
    vault = Vault(Path(path))
    try:
        vault.refresh()
    except VaultError as exc:
        raise click.ClickException(str(exc)) from exc
    return vault


def _records_table(title: str, records: list[FileRecord]) -> Table:
    table = Table(title=title, show_lines=False)
    table.add_column("Status", no_wrap=True)
    table.add_column("Path", overflow="fold")
    for record in records:
        style = _STATUS_STYLES[record.status]
        table.add_row(f"[{style}]{record.status.value}[/{style}]", record.path)
    return table


def _preview_payload(preview: PublishPreview) -> dict[str, Any]:
    return {
        "changed": [record.model_dump(mode="json") for record in preview.changed],
        "unmodified": [record.model_dump(mode="json") for record in preview.unmodified],
        "has_uncommitted_changes": preview.has_uncommitted_changes,
        "counts": preview.counts(),
    }


def _render_preview(preview: PublishPreview, *, quiet: bool, summary_only: bool) -> None:
    if preview.changed:
        _emit_message(
            _records_table("Changes to publish", preview.changed),
            mode="detail",
            quiet=quiet,
            summary_only=summary_only,
        )
    else:
        _emit_message(
            "[yellow]No file changes to publish.[/yellow]",
            mode="detail",
            quiet=quiet,
            summary_only=summary_only,
        )
    if preview.unmodified:
        _emit_message(
            _records_table("Unmodified files", preview.unmodified),
            mode="detail",
            quiet=quiet,
            summary_only=summary_only,
        )
    if preview.has_uncommitted_changes:
        _emit_message(
            "[yellow]The publishing repository has uncommitted changes; "
            "they will be included in the next commit.[/yellow]",
            mode="warning",
            quiet=quiet,
            summary_only=summary_only,
        )


def _compute_preview(publisher: Publisher, json_output: bool) -> PublishPreview:
    try:
        return publisher.preview()
    except (GitError, VaultError, OSError) as exc:
        _handle_cli_error(
            f"Preview failed: {exc}",
            code="preview_failed",
            json_output=json_output,
            details=_git_details(exc),
            original=exc,
        )
        raise


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="vaultpub")
def cli() -> None:
    """Publish a selected subset of a markdown vault to a git repository."""


@cli.command()
@_vault_argument
@click.option("--json", "json_output", is_flag=True, help="Emit the preview as JSON.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def preview(
    ctx: click.Context,
    vault_path: str,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Show what publishing VAULT would add, update, and remove."""
    _, config = _load_config(json_output)
    quiet_enabled, summary_only = _resolve_output_modes(
        ctx, config, quiet=quiet, summary_mode=summary_mode, json_output=json_output
    )
    publisher = Publisher(config, _open_vault(vault_path))
    result = _compute_preview(publisher, json_output)

    if json_output:
        console.print_json(data=_preview_payload(result))
        return

    if result.is_empty:
        _emit_message(
            f"[yellow]{NOTHING_TO_PUBLISH_MESSAGE}[/yellow]",
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
        return

    _render_preview(result, quiet=quiet_enabled, summary_only=summary_only)
    _emit_message(
        _format_summary_line("Preview", publisher.repo_path, result.counts()),
        mode="summary",
        quiet=quiet_enabled,
        summary_only=summary_only,
    )


@cli.command()
@_vault_argument
@click.option("--commit-only", is_flag=True, help="Commit locally without pulling or pushing.")
@click.option("-y", "--yes", is_flag=True, help="Skip the preview confirmation.")
@click.option("--json", "json_output", is_flag=True, help="Emit the publish report as JSON.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def publish(
    ctx: click.Context,
    vault_path: str,
    commit_only: bool,
    yes: bool,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Mirror the publishable notes of VAULT into the repository and commit them.

    Unless ``--yes`` is given or previews are disabled, the pending changes
    are shown first and the command asks whether to publish, only commit, or
    cancel. Cancelling changes nothing.
    """
    _, config = _load_config(json_output)
    quiet_enabled, summary_only = _resolve_output_modes(
        ctx, config, quiet=quiet, summary_mode=summary_mode, json_output=json_output
    )
    publisher = Publisher(config, _open_vault(vault_path))
    action = PublishAction.COMMIT if commit_only else PublishAction.PUBLISH

    if config.show_preview_before_publishing and not yes:
        if json_output:
            raise click.ClickException("--json requires --yes while previews are enabled.")
        result = _compute_preview(publisher, json_output)
        if result.is_empty:
            _emit_message(
                f"[yellow]{NOTHING_TO_PUBLISH_MESSAGE}[/yellow]",
                mode="summary",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
            return
        _render_preview(result, quiet=quiet_enabled, summary_only=summary_only)
        choice = click.prompt(
            "Action",
            type=click.Choice([PublishAction.PUBLISH.value, PublishAction.COMMIT.value, _CANCEL]),
            default=action.value,
        )
        if choice == _CANCEL:
            console.print("[yellow]Publishing cancelled; no changes applied.[/yellow]")
            return
        action = PublishAction(choice)

    try:
        report = publisher.publish(action)
    except PublishError as exc:
        _handle_cli_error(
            f"Publishing failed: {exc}",
            code="publish_failed",
            json_output=json_output,
            details=_git_details(exc),
            original=exc,
        )
        return

    if json_output:
        console.print_json(
            data={
                "action": report.action.value,
                "published_count": report.published_count,
                "committed": report.committed,
                "reconcile": report.reconcile.model_dump(mode="json"),
            }
        )
        return

    for path, message in report.reconcile.errors.items():
        _emit_message(
            f"[red]Failed to update {path}: {message}[/red]",
            mode="error",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    if not report.committed:
        _emit_message(
            "[yellow]Nothing to commit; the repository was already up to date.[/yellow]",
            mode="warning",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    _emit_message(
        f"[green]{report.message}[/green]",
        mode="summary",
        quiet=quiet_enabled,
        summary_only=summary_only,
    )


@cli.command()
@_vault_argument
@click.option("--json", "json_output", is_flag=True, help="Emit the count as JSON.")
def status(vault_path: str, json_output: bool) -> None:
    """Print how many notes of VAULT are currently publishable."""
    _, config = _load_config(json_output)
    publisher = Publisher(config, _open_vault(vault_path))
    notes = [file for file in publisher.publishable_files() if file.is_markdown]
    if json_output:
        console.print_json(data={"publishable_notes": len(notes)})
        return
    console.print(f"{len(notes)} publishable notes")


@cli.group()
def criterion() -> None:
    """Inspect, edit, and test the publishing criterion."""


@criterion.command("show")
@click.option("--json", "json_output", is_flag=True, help="Emit the serialized tree as JSON.")
def criterion_show(json_output: bool) -> None:
    """Print a readable summary of the configured criterion tree."""
    _, config = _load_config(json_output)
    tree = config.load_criterion()
    if json_output:
        console.print_json(data=tree.serialize())
        return
    console.print(tree.summary(), markup=False, highlight=False)
    _warn_invalid_patterns(tree)


@criterion.command("edit")
def criterion_edit() -> None:
    """Edit the criterion tree as YAML and save it once it validates.

    The editor works on a copy; closing it without saving or without changes
    leaves the stored configuration untouched.
    """
    manager, config = _load_config()
    draft = clone_criterion(config.load_criterion())
    original = yaml.safe_dump(draft.serialize(), sort_keys=False, allow_unicode=True)
    edited = click.edit(original, extension=".yaml")

    if edited is None:
        console.print("[yellow]Edit cancelled; no changes applied.[/yellow]")
        return

    if edited == original:
        console.print("[yellow]No changes detected.[/yellow]")
        return

    try:
        parsed = yaml.safe_load(edited)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Invalid YAML: {exc}") from exc

    try:
        tree = deserialize_criterion(parsed)
    except CriterionError as exc:
        raise click.ClickException(f"Invalid criterion: {exc}") from exc

    try:
        manager.update_criterion(tree)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    console.print("[green]Criterion updated successfully.[/green]")
    console.print(tree.summary(), markup=False, highlight=False)
    _warn_invalid_patterns(tree)


@criterion.command("check")
@_vault_argument
@click.argument("note")
def criterion_check(vault_path: str, note: str) -> None:
    """Report whether NOTE (a path inside VAULT) satisfies the criterion."""
    _, config = _load_config()
    vault = _open_vault(vault_path)

    candidate = Path(note).expanduser()
    if candidate.is_absolute():
        try:
            note = candidate.resolve().relative_to(vault.root).as_posix()
        except ValueError as exc:
            raise click.ClickException(f"{note} is not inside {vault.root}.") from exc

    file = vault.get_file(note)
    if file is None:
        raise click.ClickException(f"No such file in vault: {note}")

    if is_file_publishable(vault, file, config.load_criterion()):
        console.print(f"[green]{file.path} is publishable.[/green]")
    else:
        console.print(f"[yellow]{file.path} is not publishable.[/yellow]")


@cli.group()
def repo() -> None:
    """Inspect the publishing repository."""


@repo.command("validate")
@click.option("--repo", "repo_path", type=str, help="Repository path (defaults to config).")
def repo_validate(repo_path: str | None) -> None:
    """Check that the publishing directory is a git work tree."""
    _, config = _load_config()
    target = repo_path or config.repo
    result = GitHelper().validate_repo(target)
    if not result.is_valid:
        raise click.ClickException(f"{target}: {result.error}")
    console.print(f"[green]{target} is a valid Git repository.[/green]")


@repo.command("branches")
def repo_branches() -> None:
    """List local branches and mark the configured publishing branch.

    When the configured branch does not exist, the first listed branch is
    stored as the publishing branch instead.
    """
    manager, config = _load_config()
    try:
        branches = GitHelper().get_branches(config.repo)
    except GitError as exc:
        raise click.ClickException(str(exc)) from exc

    if not branches:
        console.print("[yellow]No branches found.[/yellow]")
        return

    selected = config.repo_branch
    if selected not in branches:
        selected = branches[0]
        file_data = manager.load_file_overrides()
        file_data["repo_branch"] = selected
        try:
            resolve_with_precedence(defaults=PublisherConfig(), file_overrides=file_data)
        except ConfigError as exc:
            raise click.ClickException(str(exc)) from exc
        manager.save(file_data)
        console.print(
            f"[yellow]Branch '{config.repo_branch}' not found; "
            f"publishing to '{selected}' instead.[/yellow]"
        )

    for branch in branches:
        marker = "*" if branch == selected else " "
        console.print(f"{marker} {branch}", markup=False, highlight=False)


@cli.group()
def config() -> None:
    """Manage vaultpub configuration files and overrides."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
def config_view(no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules.

    Raises:
        click.ClickException: If configuration cannot be loaded.
    """
    manager = ConfigManager()
    try:
        manager.ensure_exists()
        loaded = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    yaml_text = yaml.safe_dump(loaded.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))
    _print_criterion_report(loaded)


def _print_criterion_report(config: PublisherConfig) -> None:
    console.print("[bold]Publishing criterion:[/bold]")
    tree = config.load_criterion()
    console.print(tree.summary(), markup=False, highlight=False)
    _warn_invalid_patterns(tree)


def _assign_nested(target: dict[str, Any], path: list[str], value: Any) -> None:
    """Assign ``value`` at a dotted ``path`` inside ``target``.

    Raises:
        ConfigError: If a non-mapping value is encountered along the path.
    """

    node = target
    for segment in path[:-1]:
        existing = node.get(segment)
        if existing is None:
            existing = {}
            node[segment] = existing
        elif not isinstance(existing, dict):
            raise ConfigError(
                f"Cannot assign into '{segment}' because it is not a mapping in the config file."
            )
        node = existing
    node[path[-1]] = value


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY.

    Raises:
        click.ClickException: If parsing, assignment, or validation fails.
    """
    manager = ConfigManager()
    try:
        manager.ensure_exists()
        before = manager.read_text().splitlines()
        file_data = manager.load_file_overrides()
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    segments = [segment.strip() for segment in key.split(".") if segment.strip()]
    if not segments:
        raise click.ClickException("KEY must specify a dotted path such as 'repo_branch'.")

    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    try:
        _assign_nested(file_data, segments, parsed_value)
        resolve_with_precedence(defaults=PublisherConfig(), file_overrides=file_data)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(file_data)
    after = manager.read_text().splitlines()

    # The timestamp comment always changes; only real value changes count.
    diff = [
        line
        for line in difflib.unified_diff(
            before,
            after,
            fromfile="config.yaml (before)",
            tofile="config.yaml (after)",
            lineterm="",
        )
    ]
    changed = [
        line
        for line in diff
        if line[:1] in {"+", "-"}
        and not line.startswith(("+++", "---"))
        and "# Last updated:" not in line
    ]

    if not changed:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {'.'.join(segments)}.[/green]")


@config.command("edit")
def config_edit() -> None:
    """Open the configuration file in an interactive editor session.

    Raises:
        click.ClickException: If edited content is invalid or cannot be saved.
    """
    manager = ConfigManager()
    manager.ensure_exists()

    original = manager.read_text()
    edited = click.edit(original, extension=".yaml")

    if edited is None:
        console.print("[yellow]Edit cancelled; no changes applied.[/yellow]")
        return

    if edited == original:
        console.print("[yellow]No changes detected.[/yellow]")
        return

    try:
        parsed = yaml.safe_load(edited) or {}
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Invalid YAML: {exc}") from exc

    if not isinstance(parsed, dict):
        raise click.ClickException("Configuration file must contain a top-level mapping.")

    try:
        updated = resolve_with_precedence(defaults=PublisherConfig(), file_overrides=parsed)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(parsed)
    console.print("[green]Configuration updated successfully.[/green]")
    _print_criterion_report(updated)


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
