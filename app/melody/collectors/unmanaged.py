"""Collector for programs that no package manager can reinstall."""

import logging
import subprocess
from dataclasses import dataclass, field
from typing import Any

from melody.analysis import compare_after_restore, find_unmanaged
from melody.collectors.base import CollectionResult, Collector, CollectorContext
from melody.models.feature import CollectorItem
from melody.models.outcome import Outcome, OutcomeKind
from melody.models.package import InstalledProgram, ManagedPackage
from melody.scanners import InstalledProgramsScanner, Scanner, get_scanners

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Inventory:
    """Installed programs next to everything the package managers track.

    Attributes:
        installed: Add/Remove Programs entries.
        managed: Packages reported by all available scanners.
        sources: Package sources that were scanned.
        errors: Scanner failures (the source is left out of ``managed``).
    """

    installed: list[InstalledProgram] = field(default_factory=lambda: [])
    managed: list[ManagedPackage] = field(default_factory=lambda: [])
    sources: list[str] = field(default_factory=lambda: [])
    errors: list[str] = field(default_factory=lambda: [])

    @property
    def unmanaged(self) -> list[InstalledProgram]:
        """Installed programs matching no managed package."""
        return find_unmanaged(self.installed, self.managed)


def take_inventory(scanners: list[Scanner] | None = None) -> Inventory:
    """Scan installed programs and every available package manager.

    Raises:
        RuntimeError: If the installed programs cannot be read.
    """
    inventory = Inventory(installed=InstalledProgramsScanner().scan())

    for scanner in scanners if scanners is not None else get_scanners():
        if not scanner.is_available():
            logger.debug("Skipping unavailable scanner: %s", scanner.source.value)
            continue
        try:
            inventory.managed.extend(scanner.scan())
        except (RuntimeError, subprocess.TimeoutExpired) as e:
            inventory.errors.append(f"{scanner.source.value}: {e}")
            continue
        inventory.sources.append(scanner.source.value)

    return inventory


class UnmanagedAppsCollector(Collector):
    """Record installed programs that must be reinstalled by hand.

    On restore, programs that are installed again by then are not
    reported; the rest are listed as skipped items.
    """

    kind = "unmanaged_apps"

    def is_available(self, item: CollectorItem) -> bool:
        return InstalledProgramsScanner().is_available()

    def collect(self, item: CollectorItem, context: CollectorContext) -> CollectionResult:
        inventory = take_inventory()
        return CollectionResult(
            data={
                "sources": inventory.sources,
                "unmanaged": [p.to_dict() for p in inventory.unmanaged],
            },
            errors=inventory.errors,
        )

    def restore(self, item: CollectorItem, data: Any, context: CollectorContext) -> list[Outcome]:
        entries = data.get("unmanaged", []) if isinstance(data, dict) else []
        unmanaged = [InstalledProgram.from_dict(e) for e in entries if isinstance(e, dict)]
        if not unmanaged:
            return []

        scanner = InstalledProgramsScanner()
        if not scanner.is_available():
            return []

        _, still_missing = compare_after_restore(unmanaged, scanner.scan())
        return [
            Outcome.skip(f"app:{program.name}", OutcomeKind.COLLECTOR, "install manually")
            for program in still_missing
        ]
