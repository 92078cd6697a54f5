"""Backup command implementation.

Backs up the selected features into ``<backup_root>/<machine_name>``
(or the shared tree) and records the run in history.
"""

from pathlib import Path
from typing import Annotated

import typer

from melody.cli.common import require_config, require_features
from melody.cli.display import create_outcomes_table, create_results_table, print_results_summary
from melody.core.executor import BackupExecutor, record_run_to_history
from melody.models.history import RunAction
from melody.utils.formatting import console, print_info, print_json

app = typer.Typer(
    help="Back up features to the backup directory.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def backup(
    ctx: typer.Context,
    feature: Annotated[
        list[str] | None,
        typer.Option(
            "--feature",
            "-f",
            help="Feature to back up (repeatable). Default: all features.",
        ),
    ] = None,
    shared: Annotated[
        bool,
        typer.Option(
            "--shared",
            help="Write to the shared backup tree instead of the machine tree.",
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
            help="Override the machine name.",
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
    """Back up features.

    Each feature exports its registry keys, copies its files and runs its
    collectors. Missing keys and paths are skipped; failures of single
    items are reported but do not stop the run.

    Examples:
        melody backup                       # Back up every feature
        melody backup -f mouse -f keyboard  # Only selected features
        melody backup --shared -f terminal  # Into the shared tree
        melody backup --json                # JSON output for scripting
    """
    if ctx.invoked_subcommand is not None:
        return

    options = ctx.obj or {}
    config = require_config(backup_root=backup_root, machine_name=machine)
    selected = require_features(config, feature)

    executor = BackupExecutor(config, shared=shared)
    results = []
    for definition in selected:
        if not json_output and not options.get("quiet"):
            print_info(f"Backing up {definition.title}...")
        results.append(executor.backup_feature(definition))

    record_run_to_history(RunAction.BACKUP, config, results, command="melody backup")

    if json_output:
        print_json([r.to_dict() for r in results])
    else:
        console.print(create_results_table(results, title="Backup Results"))
        if options.get("verbose"):
            for result in results:
                if result.outcomes:
                    console.print(create_outcomes_table(result))
        print_results_summary(results, verb="backed up")

    if not all(r.success for r in results):
        raise typer.Exit(code=1)
