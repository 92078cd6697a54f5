"""Run history models.

Each backup or restore invocation is recorded as one :class:`RunRecord`
in a JSON Lines file so past runs can be listed with ``melody history``.
"""

import json
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from melody.models.outcome import FeatureResult


class RunAction(str, Enum):
    """Type of run recorded in history."""

    BACKUP = "backup"
    RESTORE = "restore"


@dataclass(frozen=True, slots=True)
class FeatureSummary:
    """Condensed result of one feature within a run.

    Attributes:
        name: Feature name.
        success: Whether the feature completed without failed items.
        items: Names of items handled successfully.
        errors: Error strings for failed items.
    """

    name: str
    success: bool
    items: tuple[str, ...] = ()
    errors: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        return {
            "name": self.name,
            "success": self.success,
            "items": list(self.items),
            "errors": list(self.errors),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FeatureSummary":
        """Deserialize from dictionary.

        Raises:
            KeyError: If required fields are missing.
        """
        return cls(
            name=data["name"],
            success=bool(data["success"]),
            items=tuple(data.get("items", ())),
            errors=tuple(data.get("errors", ())),
        )

    @classmethod
    def from_result(cls, result: FeatureResult) -> "FeatureSummary":
        """Build a summary from an executor result."""
        return cls(
            name=result.feature,
            success=result.success,
            items=tuple(result.items),
            errors=tuple(result.errors),
        )


@dataclass(frozen=True, slots=True)
class RunRecord:
    """Record of a single backup or restore run.

    Attributes:
        id: Unique identifier (12-character hex string from UUID).
        timestamp: When the run finished (ISO 8601 with timezone).
        action: Backup or restore.
        machine: Machine name from the configuration.
        features: Per-feature summaries.
        dry_run: Whether the run was a dry-run restore.
    """

    id: str
    timestamp: str
    action: RunAction
    machine: str
    features: tuple[FeatureSummary, ...]
    dry_run: bool = False
    metadata: dict[str, Any] = field(default_factory=lambda: {})

    def __post_init__(self) -> None:
        """Validate record data after initialization."""
        if not self.id:
            msg = "Run record ID cannot be empty"
            raise ValueError(msg)
        if not self.timestamp:
            msg = "Timestamp cannot be empty"
            raise ValueError(msg)

    @property
    def success(self) -> bool:
        """True when every feature in the run succeeded."""
        return all(f.success for f in self.features)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "action": self.action.value,
            "machine": self.machine,
            "features": [f.to_dict() for f in self.features],
            "dry_run": self.dry_run,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RunRecord":
        """Deserialize from dictionary.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If action or feature data is invalid.
        """
        return cls(
            id=data["id"],
            timestamp=data["timestamp"],
            action=RunAction(data["action"]),
            machine=data["machine"],
            features=tuple(FeatureSummary.from_dict(f) for f in data["features"]),
            dry_run=data.get("dry_run", False),
            metadata=data.get("metadata", {}),
        )

    def to_json_line(self) -> str:
        """Serialize to a single JSON line (no trailing newline)."""
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_json_line(cls, line: str) -> "RunRecord":
        """Deserialize from a JSON line.

        Raises:
            json.JSONDecodeError: If line is not valid JSON.
            KeyError: If required fields are missing.
            ValueError: If data is invalid.
        """
        return cls.from_dict(json.loads(line.strip()))


def create_run_record(
    action: RunAction,
    machine: str,
    results: list[FeatureResult],
    *,
    dry_run: bool = False,
    metadata: dict[str, Any] | None = None,
) -> RunRecord:
    """Create a RunRecord with generated ID and current timestamp.

    Args:
        action: Backup or restore.
        machine: Machine name the run targeted.
        results: Executor results for every feature in the run.
        dry_run: Whether the run was a dry-run.
        metadata: Optional additional context (command, backup root, ...).

    Returns:
        New RunRecord.
    """
    return RunRecord(
        id=uuid.uuid4().hex[:12],
        timestamp=datetime.now(UTC).isoformat(),
        action=action,
        machine=machine,
        features=tuple(FeatureSummary.from_result(r) for r in results),
        dry_run=dry_run,
        metadata=metadata or {},
    )
