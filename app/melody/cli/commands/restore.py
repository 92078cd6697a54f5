"""Restore command implementation.

Restores the selected features from the machine backup tree, falling
back to the shared tree, and records the run in history.
"""

from pathlib import Path
from typing import Annotated

import typer

from melody.cli.common import require_config, require_features
from melody.cli.display import create_outcomes_table, create_results_table, print_results_summary
from melody.core.executor import RestoreExecutor, record_run_to_history
from melody.models.history import RunAction
from melody.utils.formatting import console, print_info, print_json

app = typer.Typer(
    help="Restore features from a backup.",
    invoke_without_command=True,
)


def _confirm_restore(feature_count: int, machine: str) -> bool:
    """Prompt user to confirm the restore.

    Args:
        feature_count: Number of features to restore.
        machine: Machine whose backup is restored.

    Returns:
        True if user confirms, False otherwise.
    """
    return typer.confirm(
        f"\nRestore {feature_count} feature(s) from the '{machine}' backup?",
        default=False,
    )


@app.callback(invoke_without_command=True)
def restore(
    ctx: typer.Context,
    feature: Annotated[
        list[str] | None,
        typer.Option(
            "--feature",
            "-f",
            help="Feature to restore (repeatable). Default: all features.",
        ),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            "-n",
            help="Show what would be restored without making changes.",
        ),
    ] = False,
    yes: Annotated[
        bool,
        typer.Option(
            "--yes",
            "-y",
            help="Skip confirmation prompt and proceed.",
        ),
    ] = False,
    backup_root: Annotated[
        Path | None,
        typer.Option(
            "--backup-root",
            "-r",
            help="Override the backup root directory.",
        ),
    ] = None,
    machine: Annotated[
        str | None,
        typer.Option(
            "--machine",
            "-m",
            help="Restore the backup of another machine.",
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output results as JSON.",
        ),
    ] = False,
) -> None:
    """Restore features.

    Registry exports are imported with reg.exe, files are copied back
    (directories are merged) and recorded packages are reinstalled
    through winget, Chocolatey or Scoop.

    Examples:
        melody restore --dry-run            # Preview the restore
        melody restore -f mouse --yes       # Restore one feature
        melody restore -m old-laptop        # Restore another machine's backup
    """
    if ctx.invoked_subcommand is not None:
        return

    options = ctx.obj or {}
    config = require_config(backup_root=backup_root, machine_name=machine)
    selected = require_features(config, feature)

    if not dry_run and not yes and not _confirm_restore(len(selected), config.machine_name):
        print_info("Aborted.")
        raise typer.Exit(code=0)

    executor = RestoreExecutor(config, dry_run=dry_run)
    results = []
    for definition in selected:
        if not json_output and not options.get("quiet"):
            prefix = "Checking" if dry_run else "Restoring"
            print_info(f"{prefix} {definition.title}...")
        results.append(executor.restore_feature(definition))

    record_run_to_history(
        RunAction.RESTORE,
        config,
        results,
        dry_run=dry_run,
        command="melody restore",
    )

    if json_output:
        print_json([r.to_dict() for r in results])
    else:
        title = "Restore Preview (Dry Run)" if dry_run else "Restore Results"
        console.print(create_results_table(results, title=title))
        if options.get("verbose") or dry_run:
            for result in results:
                if result.outcomes:
                    console.print(create_outcomes_table(result))
        print_results_summary(results, verb="checked" if dry_run else "restored")

    if not all(r.success for r in results):
        raise typer.Exit(code=1)
