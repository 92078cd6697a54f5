"""Main CLI application entry point.

Defines the Typer application and global options.
"""

from typing import Annotated

import typer

from melody import __version__
from melody.cli.commands import backup, config, features, history, restore, unmanaged
from melody.utils.log import setup_logging

# Create main Typer app
app = typer.Typer(
    name="melody",
    help="Back up and restore Windows settings, applications and game libraries.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"melody version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output (debug logging).",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress non-essential output.",
        ),
    ] = False,
) -> None:
    """melody - Windows Melody Recovery.

    Back up registry settings, configuration files, package lists and game
    libraries feature by feature, and restore them on a fresh machine.
    """
    setup_logging(verbose=verbose, quiet=quiet)

    # Store options in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet


# Register commands
app.add_typer(backup.app, name="backup")
app.add_typer(restore.app, name="restore")
app.add_typer(features.app, name="features")
app.add_typer(unmanaged.app, name="unmanaged")
app.add_typer(history.app, name="history")
app.add_typer(config.app, name="config")


if __name__ == "__main__":
    app()
