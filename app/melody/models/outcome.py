"""Per-item outcomes and their aggregation into a feature result.

Every registry key, file and collector attempted for a feature yields one
:class:`Outcome`. :class:`FeatureResult` aggregates them into the
``success / backup_path / feature / items / errors`` view that the CLI,
the run history and ``feature.json`` all use.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class OutcomeKind(str, Enum):
    """Which part of a feature definition an outcome belongs to."""

    REGISTRY = "registry"
    FILE = "file"
    COLLECTOR = "collector"
    PACKAGE = "package"
    FEATURE = "feature"


@dataclass(frozen=True, slots=True)
class Outcome:
    """Result of a single attempted item.

    Attributes:
        name: Item name from the feature definition.
        kind: Registry key, file, collector or package.
        success: Whether the item was handled without error.
        detail: Destination path, error message or reason for skipping.
        skipped: True when the source did not exist or the tool is missing.
    """

    name: str
    kind: OutcomeKind
    success: bool
    detail: str | None = None
    skipped: bool = False

    @property
    def failed(self) -> bool:
        """Check if the item failed (skips are not failures)."""
        return not self.success

    @classmethod
    def ok(cls, name: str, kind: OutcomeKind, detail: str | None = None) -> "Outcome":
        """Create a successful outcome."""
        return cls(name=name, kind=kind, success=True, detail=detail)

    @classmethod
    def fail(cls, name: str, kind: OutcomeKind, detail: str) -> "Outcome":
        """Create a failed outcome."""
        return cls(name=name, kind=kind, success=False, detail=detail)

    @classmethod
    def skip(cls, name: str, kind: OutcomeKind, detail: str) -> "Outcome":
        """Create a skipped outcome (counts as success)."""
        return cls(name=name, kind=kind, success=True, detail=detail, skipped=True)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "kind": self.kind.value,
            "success": self.success,
            "skipped": self.skipped,
            "detail": self.detail,
        }


@dataclass(slots=True)
class FeatureResult:
    """Aggregated outcome of backing up or restoring one feature.

    Attributes:
        feature: Feature name (catalog key).
        backup_path: Directory the feature was written to / read from.
        outcomes: Outcomes in the order items were attempted.
        fatal_error: Set when the feature could not run at all.
    """

    feature: str
    backup_path: str | None = None
    outcomes: list[Outcome] = field(default_factory=lambda: [])
    fatal_error: str | None = None

    def add(self, outcome: Outcome) -> None:
        """Append an outcome."""
        self.outcomes.append(outcome)

    def extend(self, outcomes: list[Outcome]) -> None:
        """Append several outcomes."""
        self.outcomes.extend(outcomes)

    @property
    def success(self) -> bool:
        """True when the feature ran and no item failed."""
        return self.fatal_error is None and not any(o.failed for o in self.outcomes)

    @property
    def items(self) -> list[str]:
        """Names of items handled successfully (skips excluded)."""
        return [o.name for o in self.outcomes if o.success and not o.skipped]

    @property
    def skipped(self) -> list[str]:
        """Names of items that were skipped."""
        return [o.name for o in self.outcomes if o.skipped]

    @property
    def errors(self) -> list[str]:
        """Non-fatal error strings, prefixed with the fatal error if any."""
        errors = [f"{o.name}: {o.detail or 'unknown error'}" for o in self.outcomes if o.failed]
        if self.fatal_error is not None:
            errors.insert(0, self.fatal_error)
        return errors

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "feature": self.feature,
            "success": self.success,
            "backup_path": self.backup_path,
            "items": self.items,
            "skipped": self.skipped,
            "errors": self.errors,
            "outcomes": [o.to_dict() for o in self.outcomes],
        }
