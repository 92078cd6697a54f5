"""Abstract base class for feature collectors.

A collector gathers one kind of state that is not a plain registry key or
file (package lists, WSL distributions, game libraries, ...) and returns
it as JSON-serializable data. Collectors are looked up by the ``kind`` of
a :class:`~melody.models.feature.CollectorItem`.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from melody.core.config import MelodyConfig
from melody.models.feature import CollectorItem
from melody.models.outcome import Outcome


@dataclass(frozen=True, slots=True)
class CollectorContext:
    """Run-wide information passed to collectors.

    Attributes:
        config: Configuration of the current run.
        backup_dir: Feature directory being written or read.
        dry_run: If True, restore must not change the system.
    """

    config: MelodyConfig
    backup_dir: Path
    dry_run: bool = False

    @property
    def timeout(self) -> float:
        """Timeout for external commands."""
        return self.config.command_timeout


@dataclass(slots=True)
class CollectionResult:
    """Data gathered by a collector.

    Attributes:
        data: JSON-serializable snapshot, or None if nothing was collected.
        errors: Non-fatal error strings.
        skip_reason: Set when there was nothing to collect (tool or
            source missing); the item is reported as skipped.
    """

    data: Any = None
    errors: list[str] = field(default_factory=lambda: [])
    skip_reason: str | None = None

    @classmethod
    def skipped(cls, reason: str) -> "CollectionResult":
        """Create a result for an item with nothing to collect."""
        return cls(skip_reason=reason)


class Collector(ABC):
    """Abstract base class for all collectors."""

    #: Collector kind as used in the feature catalog.
    kind: str = ""

    #: Whether :meth:`restore` applies collected data back to the system.
    restorable: bool = False

    def is_available(self, item: CollectorItem) -> bool:
        """Check if the tools needed for this item exist."""
        return True

    @abstractmethod
    def collect(self, item: CollectorItem, context: CollectorContext) -> CollectionResult:
        """Gather data for one catalog item.

        Raises:
            RuntimeError: If the underlying tool fails outright.
        """

    def restore(self, item: CollectorItem, data: Any, context: CollectorContext) -> list[Outcome]:
        """Apply previously collected data.

        The default treats the data as informational and does nothing.
        """
        return []
