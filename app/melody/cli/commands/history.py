"""History command for viewing past runs.

This module provides the `melody history` command for viewing the
history of backup and restore runs.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated

import typer
from rich.table import Table

from melody.core.state import StateManager
from melody.models.history import RunAction, RunRecord
from melody.utils.formatting import console, print_error, print_info, print_json, status_markup

app = typer.Typer(
    name="history",
    help="View history of backup and restore runs.",
    invoke_without_command=True,
)


class ActionChoice(str, Enum):
    """Run types for history filtering."""

    BACKUP = "backup"
    RESTORE = "restore"
    ALL = "all"


@app.callback(invoke_without_command=True)
def history(
    ctx: typer.Context,
    limit: Annotated[
        int,
        typer.Option(
            "--limit",
            "-n",
            help="Maximum number of runs to show.",
        ),
    ] = 20,
    action: Annotated[
        ActionChoice,
        typer.Option(
            "--action",
            "-a",
            help="Only show backup or restore runs.",
            case_sensitive=False,
        ),
    ] = ActionChoice.ALL,
    run_id: Annotated[
        str | None,
        typer.Option(
            "--id",
            help="Show the per-feature details of one run (ID or prefix).",
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """Show history of backup and restore runs.

    Examples:
        melody history                  # Show last 20 runs
        melody history -n 50 -a backup  # Last 50 backups
        melody history --id 3f2a9c      # Details of one run
        melody history --json           # JSON output for scripting
    """
    if ctx.invoked_subcommand is not None:
        return

    state = StateManager()

    if run_id is not None:
        record = state.get_record_by_id(run_id)
        if record is None:
            print_error(f"No unique run found for ID '{run_id}'.")
            raise typer.Exit(code=1)
        if json_output:
            _print_json([record])
        else:
            _print_details(record)
        return

    action_filter = None if action == ActionChoice.ALL else RunAction(action.value)
    records = state.get_history(limit=limit, action=action_filter)

    if not records:
        print_info("No history entries found.")
        return

    if json_output:
        _print_json(records)
    else:
        _print_table(records)


def _print_table(records: list[RunRecord]) -> None:
    """Print run history as Rich table.

    Args:
        records: List of run records to display.
    """
    table = Table(
        title="Run History",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("ID", style="muted")
    table.add_column("Timestamp", style="info")
    table.add_column("Action")
    table.add_column("Machine")
    table.add_column("Features")
    table.add_column("Status", justify="center")

    for record in records:
        names = ", ".join(f.name for f in record.features[:3])
        if len(record.features) > 3:
            names += f" (+{len(record.features) - 3} more)"
        action = record.action.value + (" (dry run)" if record.dry_run else "")

        table.add_row(
            record.id[:8],
            _format_timestamp(record.timestamp),
            action,
            record.machine,
            names,
            status_markup(record.success),
        )

    console.print(table)


def _print_details(record: RunRecord) -> None:
    """Print per-feature details of one run."""
    console.print(
        f"[bold_header]{record.action.value.title()} {record.id}[/bold_header] "
        f"on {record.machine} at {_format_timestamp(record.timestamp)}"
    )
    table = Table(show_header=True, header_style="bold_header", border_style="border")
    table.add_column("Feature", style="feature")
    table.add_column("Status", justify="center")
    table.add_column("Items", justify="right")
    table.add_column("Errors")

    for summary in record.features:
        table.add_row(
            summary.name,
            status_markup(summary.success),
            str(len(summary.items)),
            "\n".join(summary.errors),
        )
    console.print(table)


def _format_timestamp(iso_timestamp: str) -> str:
    """Format ISO timestamp for display.

    Args:
        iso_timestamp: ISO format timestamp string.

    Returns:
        Formatted timestamp string (YYYY-MM-DD HH:MM).
    """
    dt = datetime.fromisoformat(iso_timestamp.replace("Z", "+00:00"))
    return dt.strftime("%Y-%m-%d %H:%M")


def _print_json(records: list[RunRecord]) -> None:
    """Print history as JSON for scripting."""
    print_json([record.to_dict() for record in records])
