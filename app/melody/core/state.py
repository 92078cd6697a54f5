"""Run history persistence.

This module provides the StateManager class for persisting and querying
backup/restore run records in a JSON Lines file.
"""

import json
import logging
from pathlib import Path

from melody.core.paths import ensure_state_dir, get_state_dir
from melody.models.history import RunAction, RunRecord

logger = logging.getLogger(__name__)


class StateManager:
    """Manages run history in a JSONL file.

    Each line is a complete JSON object representing a RunRecord, which
    allows append-only writes and line-by-line recovery from corruption.

    Attributes:
        state_dir: Directory containing the history file.
    """

    HISTORY_FILENAME = "history.jsonl"

    def __init__(self, state_dir: Path | None = None) -> None:
        """Initialize StateManager.

        Args:
            state_dir: Optional override for the state directory.
        """
        self._state_dir = state_dir if state_dir is not None else get_state_dir()

    @property
    def history_path(self) -> Path:
        """Path to the history.jsonl file."""
        return self._state_dir / self.HISTORY_FILENAME

    def record_run(self, record: RunRecord) -> None:
        """Append a run record to the history file.

        Args:
            record: The run record to append.

        Raises:
            RuntimeError: If the state directory cannot be created.
            OSError: If the file cannot be written.
        """
        if self._state_dir == get_state_dir():
            ensure_state_dir()
        else:
            self._state_dir.mkdir(parents=True, exist_ok=True)

        with self.history_path.open(mode="a", encoding="utf-8") as f:
            f.write(record.to_json_line() + "\n")
            f.flush()

    def get_history(
        self,
        limit: int | None = None,
        action: RunAction | None = None,
    ) -> list[RunRecord]:
        """Read run records, newest first.

        Args:
            limit: Maximum number of records to return. None returns all.
            action: Only return records of this action type.

        Returns:
            List of RunRecord, newest first. Empty if the file doesn't exist.
        """
        if not self.history_path.exists():
            return []

        records: list[RunRecord] = []

        with self.history_path.open(encoding="utf-8") as f:
            for line_num, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue

                try:
                    record = RunRecord.from_json_line(line)
                except (json.JSONDecodeError, KeyError, ValueError, TypeError) as e:
                    logger.warning("Skipping corrupt history line %d: %s", line_num, str(e))
                    continue

                if action is None or record.action == action:
                    records.append(record)

        records.reverse()

        if limit is not None:
            return records[:limit]

        return records

    def get_record_by_id(self, record_id: str) -> RunRecord | None:
        """Find a record by ID or unique ID prefix.

        Args:
            record_id: Full ID or a prefix of at least four characters.

        Returns:
            Matching RunRecord, or None if not found or ambiguous.
        """
        if len(record_id) < 4:
            return None
        matches = [r for r in self.get_history() if r.id.startswith(record_id)]
        return matches[0] if len(matches) == 1 else None
