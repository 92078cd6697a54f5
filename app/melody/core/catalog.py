"""Feature catalog loading.

The catalog is the declarative table of everything melody can back up.
Bundled definitions live in ``melody/data/features/*.toml``; users can add
or override features by dropping files with the same schema into
:func:`melody.core.paths.get_user_features_dir`.
"""

import logging
import tomllib
from collections.abc import Iterable, Sequence
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path

from pydantic import ValidationError

from melody.core.paths import get_user_features_dir
from melody.models.feature import FeatureDefinition

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    """Base exception for feature catalog errors."""


class CatalogParseError(CatalogError):
    """Raised when a catalog file is not valid TOML."""


class CatalogValidationError(CatalogError):
    """Raised when a catalog file does not match the feature schema."""


class UnknownFeatureError(CatalogError):
    """Raised when a requested feature is not in the catalog."""


def _bundled_feature_files() -> list[Traversable]:
    features_dir = resources.files("melody.data").joinpath("features")
    return sorted(
        (entry for entry in features_dir.iterdir() if entry.name.endswith(".toml")),
        key=lambda entry: entry.name,
    )


def parse_feature(text: str, origin: str) -> FeatureDefinition:
    """Parse and validate a single feature definition.

    Args:
        text: TOML document.
        origin: File name used in error messages.

    Returns:
        Validated FeatureDefinition.

    Raises:
        CatalogParseError: If the TOML syntax is invalid.
        CatalogValidationError: If the content doesn't match the schema.
    """
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise CatalogParseError(f"Invalid TOML syntax in {origin}: {e}") from e

    try:
        return FeatureDefinition.model_validate(data)
    except ValidationError as e:
        raise CatalogValidationError(f"Invalid feature definition in {origin}: {e}") from e


def _load_files(files: Iterable[Traversable | Path]) -> dict[str, FeatureDefinition]:
    features: dict[str, FeatureDefinition] = {}
    for entry in files:
        try:
            text = entry.read_text(encoding="utf-8")
        except OSError as e:
            raise CatalogError(f"Failed to read feature file {entry.name}: {e}") from e
        feature = parse_feature(text, entry.name)
        if feature.name in features:
            msg = f"Feature {feature.name!r} is defined more than once ({entry.name})"
            raise CatalogValidationError(msg)
        features[feature.name] = feature
    return features


def load_catalog(user_dir: Path | None = None) -> dict[str, FeatureDefinition]:
    """Load bundled and user feature definitions.

    User definitions replace bundled definitions with the same name.

    Args:
        user_dir: Directory with user feature files. If None, uses the
            default user features directory.

    Returns:
        Dictionary of feature name to definition, sorted by name.

    Raises:
        CatalogError: If any feature file cannot be read or is invalid.
    """
    catalog = _load_files(_bundled_feature_files())

    features_dir = user_dir or get_user_features_dir()
    if features_dir.is_dir():
        user_features = _load_files(sorted(features_dir.glob("*.toml")))
        for name in user_features:
            if name in catalog:
                logger.debug("User definition overrides bundled feature %s", name)
        catalog.update(user_features)

    return dict(sorted(catalog.items()))


def select_features(
    catalog: dict[str, FeatureDefinition],
    names: Sequence[str] | None = None,
) -> list[FeatureDefinition]:
    """Pick features from the catalog.

    Args:
        catalog: Loaded catalog.
        names: Requested feature names in the desired order. Empty or None
            selects every feature in name order.

    Returns:
        Selected definitions with duplicates removed.

    Raises:
        UnknownFeatureError: If a requested name is not in the catalog.
    """
    if not names:
        return list(catalog.values())

    unknown = [name for name in names if name not in catalog]
    if unknown:
        available = ", ".join(catalog)
        msg = f"Unknown feature(s): {', '.join(unknown)}. Available: {available}"
        raise UnknownFeatureError(msg)

    return [catalog[name] for name in dict.fromkeys(names)]
