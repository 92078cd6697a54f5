"""Collector plugins for the feature catalog.

Each collector handles one ``kind`` of catalog item. The executors build
their kind mapping with :func:`default_collectors` unless a custom mapping
is passed in.
"""

from melody.collectors.base import CollectionResult, Collector, CollectorContext
from melody.collectors.games import EpicGamesCollector, GogGamesCollector, SteamGamesCollector
from melody.collectors.packages import InstalledProgramsCollector, PackagesCollector
from melody.collectors.registry import RegistryValuesCollector
from melody.collectors.system import CommandCollector, PowerShellCollector
from melody.collectors.unmanaged import Inventory, UnmanagedAppsCollector, take_inventory
from melody.collectors.wsl import WslDistributionsCollector, WslPackagesCollector


def default_collectors() -> dict[str, Collector]:
    """Create one instance of every built-in collector, keyed by kind."""
    collectors: list[Collector] = [
        RegistryValuesCollector(),
        CommandCollector(),
        PowerShellCollector(),
        PackagesCollector(),
        InstalledProgramsCollector(),
        WslDistributionsCollector(),
        WslPackagesCollector(),
        SteamGamesCollector(),
        EpicGamesCollector(),
        GogGamesCollector(),
        UnmanagedAppsCollector(),
    ]
    return {collector.kind: collector for collector in collectors}


__all__ = [
    "CollectionResult",
    "Collector",
    "CollectorContext",
    "Inventory",
    "default_collectors",
    "take_inventory",
]
