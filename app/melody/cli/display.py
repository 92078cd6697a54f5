"""Shared Rich display functions for feature results.

Provides reusable table builders and summary printers used by the
backup and restore commands.
"""

from rich.table import Table

from melody.models.outcome import FeatureResult, Outcome
from melody.utils.formatting import console, print_success, status_markup


def create_results_table(results: list[FeatureResult], title: str = "Results") -> Table:
    """Create a Rich table with one row per feature.

    Args:
        results: Feature results to display.
        title: Table title.

    Returns:
        Rich Table with Status, Feature, Items, Skipped and Errors columns.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Status", width=6, justify="center")
    table.add_column("Feature", style="feature", no_wrap=True)
    table.add_column("Items", justify="right")
    table.add_column("Skipped", justify="right")
    table.add_column("Errors")

    for result in results:
        status = status_markup(result.success)
        errors = result.errors
        error_text = errors[0] if errors else ""
        if len(errors) > 1:
            error_text += f" (+{len(errors) - 1} more)"

        table.add_row(
            status,
            result.feature,
            str(len(result.items)),
            f"[skipped]{len(result.skipped)}[/skipped]",
            f"[error]{error_text}[/error]" if error_text else "",
        )

    return table


def _outcome_status(outcome: Outcome) -> str:
    if outcome.skipped:
        return "[skipped]SKIP[/skipped]"
    return status_markup(outcome.success)


def create_outcomes_table(result: FeatureResult) -> Table:
    """Create a Rich table with one row per item of a feature.

    Args:
        result: Feature result whose outcomes to display.

    Returns:
        Rich Table with Status, Kind, Item and Detail columns.
    """
    table = Table(
        title=result.feature,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Status", width=6, justify="center")
    table.add_column("Kind", width=9)
    table.add_column("Item", no_wrap=True)
    table.add_column("Detail")

    for outcome in result.outcomes:
        table.add_row(
            _outcome_status(outcome),
            outcome.kind.value,
            outcome.name,
            f"[muted]{outcome.detail or ''}[/muted]",
        )

    return table


def print_results_summary(results: list[FeatureResult], verb: str = "backed up") -> None:
    """Print a one-line summary of feature results.

    Args:
        results: Feature results.
        verb: Past participle for the success message.
    """
    success_count = sum(1 for r in results if r.success)
    fail_count = len(results) - success_count

    if fail_count == 0:
        print_success(f"All {success_count} feature(s) {verb} successfully.")
    else:
        console.print(
            f"\n[success]{success_count} succeeded[/success], [error]{fail_count} failed[/error]"
        )
