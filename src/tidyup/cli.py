"""Command line interface for the tidyup project."""

from __future__ import annotations

import difflib
from pathlib import Path
from typing import Any, Optional

import click
import yaml
from click.core import ParameterSource
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from tidyup.classification import CustomRuleSet
from tidyup.config import (
    ConfigError,
    ConfigManager,
    TidyupConfig,
    resolve_with_precedence,
)
from tidyup.logging_setup import configure_logging
from tidyup.organization import (
    MODES,
    InputError,
    OrganizationOrchestrator,
    OrganizationSummary,
    OrganizerError,
    UndoEngine,
    UndoError,
    UndoSummary,
    resolve_target,
)
from tidyup.state import (
    ConfidenceModelStore,
    JournalBlock,
    JournalRepository,
    StateError,
)

console = Console()


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
    """Return a consistent summary line for CLI commands.

    Args:
        command: Command name to include in the summary.
        root: Target root path relevant to the command.
        metrics: Ordered mapping of metric names to values.

    Returns:
        str: Rich-formatted summary string.
    """

    formatted_root = str(root)
    parts = ", ".join(f"{key}={value}" for key, value in metrics.items())
    return f"[green]{command} summary for {formatted_root}: {parts}.[/green]"


def _resolve_output_modes(
    ctx: click.Context,
    config: TidyupConfig,
    *,
    quiet: bool,
    summary_mode: bool,
    json_output: bool,
) -> tuple[bool, bool]:
    """Combine CLI flags with configured defaults for quiet and summary output.

    Returns:
        tuple[bool, bool]: Effective quiet and summary-only flags.

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


def _assign_nested(target: dict[str, Any], path: list[str], value: Any) -> None:
    """Assign a nested value within a dictionary for a dotted path.

    Args:
        target: Mapping to mutate in-place.
        path: Sequence of keys representing the nested location.
        value: Value to assign at the nested location.

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


def _relative(path: Optional[Path], root: Path) -> str:
    if path is None:
        return "-"
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()


def _organize_payload(summary: OrganizationSummary) -> dict[str, Any]:
    return {
        "context": {
            "root": summary.root.as_posix(),
            "mode": summary.mode,
            "dry_run": summary.dry_run,
            "block_id": summary.block_id,
        },
        "counts": _organize_counts(summary),
        "files": [
            {
                "path": outcome.path.as_posix(),
                "action": outcome.action,
                "destination": outcome.destination.as_posix() if outcome.destination else None,
                "classification": outcome.result.model_dump(mode="json"),
                "error": outcome.error,
            }
            for outcome in summary.outcomes
        ],
        "moves": [operation.model_dump(mode="json") for operation in summary.moves],
        "errors": list(summary.errors),
        "duration_seconds": summary.duration_seconds,
        "interrupted": summary.interrupted,
    }


def _organize_counts(summary: OrganizationSummary) -> dict[str, Any]:
    counts: dict[str, Any] = {"processed": summary.processed}
    if summary.dry_run:
        counts["dry_run"] = True
        counts["planned"] = len(summary.moves)
    else:
        counts["moved"] = summary.applied
    counts["identical"] = summary.skipped_identical
    counts["in_place"] = summary.in_place
    counts["errors"] = len(summary.errors)
    return counts


def _undo_payload(summary: UndoSummary, *, dry_run: bool) -> dict[str, Any]:
    return {
        "context": {
            "root": summary.root.as_posix(),
            "block_id": summary.block_id,
            "dry_run": dry_run,
        },
        "counts": {"restored": len(summary.restored), "skipped": len(summary.skipped)},
        "restored": [path.as_posix() for path in summary.restored],
        "skipped": [path.as_posix() for path in summary.skipped],
        "messages": list(summary.messages),
    }


def _format_block(block: JournalBlock) -> str:
    header = block.header
    flags = []
    if block.undone:
        flags.append("undone")
    if header.interrupted:
        flags.append("interrupted")
    if not block.closed:
        flags.append("incomplete")
    suffix = f" ({', '.join(flags)})" if flags else ""
    return (
        f"[{header.timestamp.isoformat()}] {header.mode.upper()} "
        f"{len(block.records)} file(s) in {header.duration_seconds:.2f}s{suffix}"
    )


def _emit_organize_report(
    summary: OrganizationSummary, *, verbose: bool, quiet: bool, summary_only: bool
) -> None:
    """Render per-file lines or a table, errors, and the summary line."""

    root = summary.root
    if verbose or summary.dry_run:
        title = "Organization preview" if summary.dry_run else "Organization results"
        table = Table(title=f"{title} for {root}")
        table.add_column("File", overflow="fold")
        table.add_column("Category")
        table.add_column("Conf.", justify="right")
        table.add_column("Source")
        table.add_column("Destination", overflow="fold")
        table.add_column("Action")
        for outcome in summary.outcomes:
            result = outcome.result
            category = result.category
            if result.subcategory:
                category = f"{category}/{result.subcategory}"
            table.add_row(
                _relative(outcome.path, root),
                category,
                str(result.confidence),
                result.source,
                _relative(outcome.destination, root),
                outcome.action,
            )
        _emit_message(table, mode="detail", quiet=quiet, summary_only=summary_only)
    else:
        for outcome in summary.outcomes:
            if outcome.action != "move":
                continue
            _emit_message(
                f"{_relative(outcome.path, root)} → {_relative(outcome.destination, root)} "
                f"({outcome.result.category}, {outcome.result.confidence}%)",
                mode="detail",
                quiet=quiet,
                summary_only=summary_only,
            )

    if summary.errors:
        _emit_message(
            "[red]Errors encountered:[/red]",
            mode="error",
            quiet=quiet,
            summary_only=summary_only,
        )
        for entry in summary.errors:
            _emit_message(
                f"  - {entry}", mode="error", quiet=quiet, summary_only=summary_only
            )
    if summary.interrupted:
        _emit_message(
            "[yellow]Run interrupted; remaining files were left untouched.[/yellow]",
            mode="warning",
            quiet=quiet,
            summary_only=summary_only,
        )

    _emit_message(
        _format_summary_line("Organization", root, _organize_counts(summary)),
        mode="summary",
        quiet=quiet,
        summary_only=summary_only,
    )
    if summary.dry_run:
        _emit_message(
            "[yellow]Dry run selected; no files moved and no journal written.[/yellow]",
            mode="warning",
            quiet=quiet,
            summary_only=summary_only,
        )


def _run_undo(
    root_path: str,
    config: TidyupConfig,
    *,
    dry_run: bool,
    json_output: bool,
    quiet: bool,
    summary_only: bool,
) -> None:
    engine = UndoEngine(JournalRepository(config.organization.state_dirname))
    summary = engine.undo(Path(root_path), dry_run=dry_run)

    if json_output:
        console.print_json(data=_undo_payload(summary, dry_run=dry_run))
        return

    verb = "Would restore" if dry_run else "Restored"
    for restored in summary.restored:
        _emit_message(
            f"[cyan]{verb} {_relative(restored, summary.root)}[/cyan]",
            mode="detail",
            quiet=quiet,
            summary_only=summary_only,
        )
    for message in summary.messages:
        _emit_message(
            f"[yellow]Skipped: {message}[/yellow]",
            mode="warning",
            quiet=quiet,
            summary_only=summary_only,
        )
    metrics: dict[str, Any] = {}
    if dry_run:
        metrics["dry_run"] = True
    metrics["restored"] = len(summary.restored)
    metrics["skipped"] = len(summary.skipped)
    _emit_message(
        _format_summary_line("Undo", summary.root, metrics),
        mode="summary",
        quiet=quiet,
        summary_only=summary_only,
    )


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="tidyup")
def cli() -> None:
    """Tidyup classifies files by content and name and files them into folders."""


@cli.command()
@click.argument("path", default=".", type=click.Path(path_type=str))
@click.option(
    "-m",
    "--mode",
    type=click.Choice(MODES),
    help="Placement mode; defaults to organization.default_mode.",
)
@click.option("-r", "--recursive", is_flag=True, help="Include all subdirectories.")
@click.option("-d", "--dry-run", is_flag=True, help="Preview changes without modifying files.")
@click.option(
    "-c",
    "--custom-rules",
    type=click.Path(exists=True, dir_okay=False, path_type=str),
    help="YAML file with rules consulted before the built-in ones.",
)
@click.option("--undo", "undo_last", is_flag=True, help="Undo the last run for PATH instead.")
@click.option("-l", "--learn", is_flag=True, help="Record patterns of existing subfolders.")
@click.option("-v", "--verbose", is_flag=True, help="Show per-file decisions and debug logs.")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing the run.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def organize(
    ctx: click.Context,
    path: str,
    mode: str | None,
    recursive: bool,
    dry_run: bool,
    custom_rules: str | None,
    undo_last: bool,
    learn: bool,
    verbose: bool,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Classify the files in PATH and move them into category folders.

    Args:
        ctx: Click context used for parameter source inspection.
        path: Directory to organize.
        mode: Placement mode (auto, type, date, size, or project).
        recursive: Whether to include subdirectories during scanning.
        dry_run: If True, report planned moves without touching files or the journal.
        custom_rules: Optional YAML rules file.
        undo_last: Undo the most recent run instead of organizing.
        learn: Record extension patterns of existing subfolders.
        verbose: Show per-file decisions and debug logging.
        json_output: If True, emit JSON describing planned or applied changes.
        summary_mode: When True, limit output to summary lines and warnings.
        quiet: When True, suppress non-error CLI output entirely.
    """

    json_enabled = json_output
    exit_code = 0
    try:
        manager = ConfigManager()
        manager.ensure_exists()
        config = manager.load()
        configure_logging(config.logging, verbose=verbose)

        quiet_enabled, summary_only = _resolve_output_modes(
            ctx, config, quiet=quiet, summary_mode=summary_mode, json_output=json_output
        )

        if undo_last:
            _run_undo(
                path,
                config,
                dry_run=dry_run,
                json_output=json_output,
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
            return

        rules = CustomRuleSet.from_file(Path(custom_rules)) if custom_rules else None
        store = ConfidenceModelStore(Path(config.classification.model_path))
        orchestrator = OrganizationOrchestrator(config, model_store=store, custom_rules=rules)
        summary = orchestrator.organize(
            Path(path),
            mode=mode or config.organization.default_mode,
            recursive=True if recursive else None,
            dry_run=dry_run,
            learn=learn,
        )
        if summary.failed:
            exit_code = 1

        if json_output:
            console.print_json(data=_organize_payload(summary))
        else:
            _emit_organize_report(
                summary, verbose=verbose, quiet=quiet_enabled, summary_only=summary_only
            )
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_enabled, original=exc)
    except InputError as exc:
        _handle_cli_error(str(exc), code="input_error", json_output=json_enabled, original=exc)
    except UndoError as exc:
        _handle_cli_error(str(exc), code="undo_error", json_output=json_enabled, original=exc)
    except (OrganizerError, StateError) as exc:
        _handle_cli_error(str(exc), code="state_error", json_output=json_enabled, original=exc)
    except click.ClickException as exc:
        _handle_cli_error(str(exc), code="cli_error", json_output=json_enabled, original=exc)
    except Exception as exc:
        _handle_cli_error(
            f"Unexpected error while organizing files: {exc}",
            code="internal_error",
            json_output=json_enabled,
            details={"exception": type(exc).__name__},
            original=exc,
        )
    if exit_code:
        ctx.exit(exit_code)


@cli.command()
@click.argument("path", default=".", type=click.Path(path_type=str))
@click.option("-d", "--dry-run", is_flag=True, help="Preview the restore without moving files.")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing the restore.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def undo(
    ctx: click.Context,
    path: str,
    dry_run: bool,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Move the files of the last organization of PATH back to where they were.

    Args:
        ctx: Click context for parameter inspection.
        path: Directory that was organized.
        dry_run: If True, only report what would be restored.
        json_output: When True, emit JSON instead of textual output.
        summary_mode: When True, limit output to summary lines and warnings.
        quiet: When True, suppress non-error output entirely.
    """

    json_enabled = json_output
    try:
        manager = ConfigManager()
        manager.ensure_exists()
        config = manager.load()
        configure_logging(config.logging)

        quiet_enabled, summary_only = _resolve_output_modes(
            ctx, config, quiet=quiet, summary_mode=summary_mode, json_output=json_output
        )
        _run_undo(
            path,
            config,
            dry_run=dry_run,
            json_output=json_output,
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_enabled, original=exc)
    except InputError as exc:
        _handle_cli_error(str(exc), code="input_error", json_output=json_enabled, original=exc)
    except UndoError as exc:
        _handle_cli_error(str(exc), code="undo_error", json_output=json_enabled, original=exc)
    except (OrganizerError, StateError) as exc:
        _handle_cli_error(str(exc), code="state_error", json_output=json_enabled, original=exc)
    except click.ClickException as exc:
        _handle_cli_error(str(exc), code="cli_error", json_output=json_enabled, original=exc)
    except Exception as exc:
        _handle_cli_error(
            f"Unexpected error while restoring files: {exc}",
            code="internal_error",
            json_output=json_enabled,
            details={"exception": type(exc).__name__},
            original=exc,
        )


@cli.command()
@click.argument("path", default=".", type=click.Path(path_type=str))
@click.option("-n", "--limit", type=int, help="Number of runs to display (newest first).")
@click.option("--json", "json_output", is_flag=True, help="Emit history as JSON.")
def history(path: str, limit: int | None, json_output: bool) -> None:
    """Show the journaled organization runs for PATH.

    Args:
        path: Directory whose journal should be read.
        limit: Maximum number of runs to show.
        json_output: When True, emit JSON instead of a table.
    """

    try:
        manager = ConfigManager()
        manager.ensure_exists()
        config = manager.load()
        root = resolve_target(Path(path))
        journal = JournalRepository(config.organization.state_dirname)
        blocks = list(reversed(journal.read_blocks(root)))
        effective_limit = limit if limit is not None else config.cli.history_limit
        if effective_limit > 0:
            blocks = blocks[:effective_limit]

        if json_output:
            console.print_json(
                data={
                    "context": {"root": root.as_posix(), "limit": effective_limit},
                    "blocks": [block.model_dump(mode="json") for block in blocks],
                }
            )
            return

        if not blocks:
            console.print(f"[yellow]No organization history recorded for {root}.[/yellow]")
            return

        console.print(f"[green]Organization history for {root} (newest first):[/green]")
        for block in blocks:
            console.print(f"  - {_format_block(block)}")
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
    except InputError as exc:
        _handle_cli_error(str(exc), code="input_error", json_output=json_output, original=exc)
    except StateError as exc:
        _handle_cli_error(str(exc), code="state_error", json_output=json_output, original=exc)


@cli.command()
@click.option("--json", "json_output", is_flag=True, help="Emit the model as JSON.")
def model(json_output: bool) -> None:
    """Display the confidence thresholds and learned folder patterns."""

    try:
        config = ConfigManager().load()
        store = ConfidenceModelStore(Path(config.classification.model_path))
        confidence_model = store.load()
    except (ConfigError, StateError) as exc:
        _handle_cli_error(str(exc), code="state_error", json_output=json_output, original=exc)
        return

    if json_output:
        console.print_json(data=confidence_model.model_dump(mode="json"))
        return

    table = Table(title=f"Confidence model ({store.path})")
    table.add_column("Category")
    table.add_column("Threshold", justify="right")
    table.add_column("Adjustment", justify="right")
    categories = list(confidence_model.thresholds)
    categories += [name for name in confidence_model.adjustments if name not in categories]
    for category in categories:
        table.add_row(
            category,
            str(confidence_model.threshold_for(category)),
            f"{confidence_model.adjustment_for(category):+d}",
        )
    console.print(table)
    console.print(
        f"Created {confidence_model.created.isoformat()}; "
        f"last updated {confidence_model.last_updated.isoformat()}."
    )
    if confidence_model.learned_patterns:
        console.print("[cyan]Learned folder patterns:[/cyan]")
        for pattern in confidence_model.learned_patterns:
            extensions = ", ".join(pattern.extensions) or "-"
            console.print(f"  - {pattern.directory}: {extensions} ({pattern.file_count} files)")


@cli.group()
def config() -> None:
    """Manage tidyup configuration files and overrides."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
def config_view(no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules.

    Args:
        no_env: If True, ignore environment-derived overrides.

    Raises:
        click.ClickException: If configuration cannot be loaded.
    """
    manager = ConfigManager()
    try:
        manager.ensure_exists()
        config = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    yaml_text = yaml.safe_dump(config.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY.

    Args:
        key: Dotted path describing the configuration field to update.
        value: YAML-literal value to write into the configuration file.

    Raises:
        click.ClickException: If parsing, assignment, or validation fails.
    """
    manager = ConfigManager()
    manager.ensure_exists()

    before = manager.read_text().splitlines()
    segments = [segment.strip() for segment in key.split(".") if segment.strip()]
    if not segments:
        raise click.ClickException(
            "KEY must specify a dotted path such as 'classification.ensemble_scale'."
        )

    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    try:
        file_data = manager.load_file_overrides()
        _assign_nested(file_data, segments, parsed_value)
        resolve_with_precedence(defaults=TidyupConfig(), file_overrides=file_data)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(file_data)
    after = manager.read_text().splitlines()

    diff = list(
        difflib.unified_diff(
            before,
            after,
            fromfile="config.yaml (before)",
            tofile="config.yaml (after)",
            lineterm="",
        )
    )

    # The timestamp header always changes; ignore it when deciding whether anything did.
    meaningful = [
        line
        for line in diff
        if line.startswith(("+", "-"))
        and not line.startswith(("+++", "---"))
        and "# Last updated:" not in line
    ]
    if not meaningful:
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
        resolve_with_precedence(defaults=TidyupConfig(), file_overrides=parsed)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(parsed)
    console.print("[green]Configuration updated successfully.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
