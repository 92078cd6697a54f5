"""Config commands: show, create and locate the configuration file."""

from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from melody.cli.common import require_config
from melody.core.config import ConfigError, MelodyConfig, config_to_dict, save_config
from melody.core.paths import get_config_path, get_machine_backup_dir
from melody.utils.formatting import (
    console,
    print_error,
    print_info,
    print_json,
    print_success,
)

app = typer.Typer(
    help="Show and create the melody configuration.",
    no_args_is_help=True,
)


@app.command()
def show(
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """Show the effective configuration (file, environment and defaults)."""
    config = require_config()

    if json_output:
        data = config_to_dict(config)
        data["shared_path"] = str(config.effective_shared_path)
        print_json(data)
        return

    table = Table(
        title="Configuration",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Setting", style="info", no_wrap=True)
    table.add_column("Value")

    table.add_row("config file", str(get_config_path()))
    table.add_row("backup_root", str(config.backup_root))
    table.add_row("machine_name", config.machine_name)
    table.add_row("machine backups", str(get_machine_backup_dir(config)))
    table.add_row("shared_path", str(config.effective_shared_path))
    table.add_row("features", ", ".join(config.features) or "[muted](all)[/muted]")
    table.add_row("command_timeout", f"{config.command_timeout:g}s")
    console.print(table)


@app.command()
def init(
    backup_root: Annotated[
        Path | None,
        typer.Option(
            "--backup-root",
            "-r",
            help="Backup root directory.",
        ),
    ] = None,
    machine: Annotated[
        str | None,
        typer.Option(
            "--machine",
            "-m",
            help="Machine name.",
        ),
    ] = None,
    shared_path: Annotated[
        Path | None,
        typer.Option(
            "--shared-path",
            help="Shared backup directory.",
        ),
    ] = None,
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            help="Overwrite an existing configuration file.",
        ),
    ] = False,
) -> None:
    """Create the configuration file.

    Examples:
        melody config init --backup-root D:\\Backups
        melody config init --machine work-laptop --force
    """
    path = get_config_path()
    if path.exists() and not force:
        print_error(f"Configuration already exists: {path}")
        print_info("Use --force to overwrite it.")
        raise typer.Exit(code=1)

    try:
        config = MelodyConfig().with_overrides(
            backup_root=backup_root,
            machine_name=machine,
            shared_path=shared_path,
        )
        saved = save_config(config, path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    print_success(f"Configuration written to {saved}")


@app.command()
def path() -> None:
    """Print the configuration file path."""
    typer.echo(str(get_config_path()))
