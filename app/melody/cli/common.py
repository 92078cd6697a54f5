"""Shared helpers for CLI commands.

Loading the configuration and the feature catalog is the same for every
command: print the error and exit with code 1 on failure.
"""

import typer

from melody.core.catalog import CatalogError, load_catalog, select_features
from melody.core.config import ConfigError, MelodyConfig, load_config
from melody.models.feature import FeatureDefinition
from melody.utils.formatting import print_error


def require_config(**overrides: object) -> MelodyConfig:
    """Load the configuration and apply CLI overrides.

    Raises:
        typer.Exit: If the configuration is invalid.
    """
    try:
        return load_config().with_overrides(**overrides)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e


def require_features(config: MelodyConfig, names: list[str] | None) -> list[FeatureDefinition]:
    """Load the catalog and select features.

    Names given on the command line win over ``features`` in the config.

    Raises:
        typer.Exit: If the catalog is invalid or a name is unknown.
    """
    try:
        catalog = load_catalog()
        return select_features(catalog, names or config.features)
    except CatalogError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
