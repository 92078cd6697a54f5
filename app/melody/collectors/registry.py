"""Collector that snapshots registry values as JSON."""

import logging

from melody.collectors.base import CollectionResult, Collector, CollectorContext
from melody.models.feature import CollectorItem
from melody.registry import (
    RegistryError,
    is_available,
    key_exists,
    query_key,
    values_to_dict,
)

logger = logging.getLogger(__name__)


def _option_keys(item: CollectorItem) -> list[str]:
    keys = item.options.get("keys")
    if keys is None:
        key = item.options.get("key")
        keys = [key] if key else []
    return [str(k) for k in keys]


class RegistryValuesCollector(Collector):
    """Read values with ``reg query``.

    Options:
        key / keys: Key path or list of key paths.
        recursive: Include subkeys (default False).
    """

    kind = "registry_values"

    def is_available(self, item: CollectorItem) -> bool:
        return is_available()

    def collect(self, item: CollectorItem, context: CollectorContext) -> CollectionResult:
        keys = _option_keys(item)
        if not keys:
            return CollectionResult(errors=["No registry key configured"])

        recursive = bool(item.options.get("recursive", False))
        data: dict[str, object] = {}
        errors: list[str] = []

        for key in keys:
            try:
                if not key_exists(key):
                    logger.debug("Registry key not found: %s", key)
                    continue
                data.update(values_to_dict(query_key(key, recursive=recursive)))
            except (RegistryError, RuntimeError) as e:
                errors.append(str(e))

        if not data and not errors:
            return CollectionResult.skipped("Registry key not found")
        return CollectionResult(data=data, errors=errors)
