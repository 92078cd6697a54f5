"""Unmanaged command: find programs no package manager can reinstall."""

import json
import subprocess
from typing import Annotated

import typer
from rich.table import Table

from melody.analysis import compare_after_restore
from melody.cli.common import require_config
from melody.collectors import take_inventory
from melody.core.config import MelodyConfig
from melody.core.executor import write_json
from melody.core.paths import get_feature_backup_dir, resolve_restore_directory
from melody.models.package import InstalledProgram
from melody.utils.formatting import (
    console,
    print_error,
    print_info,
    print_json,
    print_success,
    print_warning,
)

app = typer.Typer(
    help="Find installed programs that are not managed by a package manager.",
    invoke_without_command=True,
)

# Same location the applications feature writes its unmanaged snapshot to
FEATURE = "applications"
OUTPUT = "unmanaged.json"


@app.callback(invoke_without_command=True)
def unmanaged(
    ctx: typer.Context,
    save: Annotated[
        bool,
        typer.Option(
            "--save",
            help="Save the list into the applications backup.",
        ),
    ] = False,
    compare: Annotated[
        bool,
        typer.Option(
            "--compare",
            help="Compare the saved list against what is installed now.",
        ),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """List programs in Add/Remove Programs that winget, Chocolatey, Scoop
    and the Store do not track.

    Examples:
        melody unmanaged                # Show unmanaged programs
        melody unmanaged --save         # Save them with the backup
        melody unmanaged --compare      # After restore: what is still missing
    """
    if ctx.invoked_subcommand is not None:
        return

    config = require_config()

    try:
        inventory = take_inventory()
    except (RuntimeError, subprocess.SubprocessError) as e:
        print_error(f"Cannot read installed programs: {e}")
        raise typer.Exit(code=1) from e

    for error in inventory.errors:
        print_warning(f"Package scan failed: {error}")

    if compare:
        _compare(config, inventory.installed, json_output)
        return

    programs = inventory.unmanaged

    if save:
        dest = get_feature_backup_dir(config, FEATURE) / OUTPUT
        data = {"sources": inventory.sources, "unmanaged": [p.to_dict() for p in programs]}
        try:
            write_json(dest, data)
        except OSError as e:
            print_error(f"Failed to save {dest}: {e}")
            raise typer.Exit(code=1) from e
        if not json_output:
            print_success(f"Saved {len(programs)} unmanaged program(s) to {dest}")

    if json_output:
        print_json([p.to_dict() for p in programs])
        return

    if not programs:
        print_success("Every installed program is managed by a package manager.")
        return

    console.print(_create_programs_table(programs, "Unmanaged Programs"))
    print_info(
        f"{len(programs)} of {len(inventory.installed)} program(s) unmanaged "
        f"(scanned: {', '.join(inventory.sources) or 'none'})"
    )


def _compare(config: MelodyConfig, installed: list[InstalledProgram], json_output: bool) -> None:
    backup_dir = resolve_restore_directory(config, FEATURE)
    saved_path = backup_dir / OUTPUT if backup_dir is not None else None
    if saved_path is None or not saved_path.is_file():
        print_error("No saved unmanaged list found. Run 'melody unmanaged --save' first.")
        raise typer.Exit(code=1)

    try:
        data = json.loads(saved_path.read_text(encoding="utf-8"))
        saved = [InstalledProgram.from_dict(entry) for entry in data.get("unmanaged", [])]
    except (OSError, ValueError, KeyError, AttributeError) as e:
        print_error(f"Cannot read {saved_path}: {e}")
        raise typer.Exit(code=1) from e

    now_installed, still_missing = compare_after_restore(saved, installed)

    if json_output:
        print_json(
            {
                "installed": [p.to_dict() for p in now_installed],
                "missing": [p.to_dict() for p in still_missing],
            }
        )
        return

    if still_missing:
        console.print(_create_programs_table(still_missing, "Still Missing"))
    print_info(f"{len(now_installed)} reinstalled, {len(still_missing)} still missing")


def _create_programs_table(programs: list[InstalledProgram], title: str) -> Table:
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Name", no_wrap=True)
    table.add_column("Version")
    table.add_column("Publisher", style="muted")

    for program in programs:
        table.add_row(program.name, program.version or "", program.publisher or "")
    return table
