"""Features command: list the feature catalog."""

from typing import Annotated

import typer
from rich.table import Table

from melody.core.catalog import CatalogError, load_catalog
from melody.models.feature import FeatureDefinition
from melody.utils.formatting import console, print_error, print_json

app = typer.Typer(
    help="List available features.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def list_features(
    ctx: typer.Context,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """List the features melody can back up and restore.

    Bundled features can be overridden or extended with TOML files in the
    ``features`` directory next to the configuration file.
    """
    if ctx.invoked_subcommand is not None:
        return

    try:
        catalog = load_catalog()
    except CatalogError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if json_output:
        print_json([d.model_dump() for d in catalog.values()])
    else:
        console.print(_create_features_table(list(catalog.values())))


def _create_features_table(definitions: list[FeatureDefinition]) -> Table:
    table = Table(
        title="Features",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Name", style="feature", no_wrap=True)
    table.add_column("Title")
    table.add_column("Registry", justify="right")
    table.add_column("Files", justify="right")
    table.add_column("Collectors", justify="right")
    table.add_column("Requires", style="muted")

    for definition in definitions:
        table.add_row(
            definition.name,
            definition.title,
            str(len(definition.registry)),
            str(len(definition.files)),
            str(len(definition.collectors)),
            ", ".join([*definition.requires, *definition.requires_cmdlets]) or "-",
        )
    return table
