"""Backup and restore executors.

Both executors walk a :class:`~melody.models.feature.FeatureDefinition`
item by item and record one :class:`~melody.models.outcome.Outcome` per
item. A failing item never stops the feature; only a missing backup
directory does.
A feature whose required tools are missing is skipped as a whole.

Backup layout of one feature::

    <feature dir>/
        registry/<item>.reg
        files/<item>            (file or directory copy)
        <collector output>.json
        feature.json            (result summary)
"""

import fnmatch
import json
import logging
import shutil
import subprocess
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from melody import registry
from melody.collectors import CollectionResult, Collector, CollectorContext, default_collectors
from melody.core.config import MelodyConfig
from melody.core.paths import initialize_backup_directory, resolve_restore_directory
from melody.core.state import StateManager
from melody.models.feature import CollectorItem, FeatureDefinition, FileItem, RegistryItem
from melody.models.history import RunAction, create_run_record
from melody.models.outcome import FeatureResult, Outcome, OutcomeKind
from melody.registry import RegistryError
from melody.utils.formatting import print_warning
from melody.utils.pathexpand import expand_path
from melody.utils.shell import command_exists, run_powershell

logger = logging.getLogger(__name__)

REGISTRY_DIR = "registry"
FILES_DIR = "files"
SUMMARY_FILE = "feature.json"

# Exceptions a collector may raise for a single item
_COLLECTOR_ERRORS = (RuntimeError, OSError, ValueError, subprocess.SubprocessError)


def missing_requirements(feature: FeatureDefinition) -> list[str]:
    """List the executables and PowerShell commands a feature needs but lacks.

    Args:
        feature: Feature whose ``requires`` and ``requires_cmdlets`` are checked.

    Returns:
        Missing names in declaration order; empty when the feature can run.
    """
    missing = [name for name in feature.requires if not command_exists(name)]
    if not feature.requires_cmdlets:
        return missing

    names = ", ".join(f"'{name}'" for name in feature.requires_cmdlets)
    script = (
        f"foreach ($c in @({names})) {{ "
        "if (-not (Get-Command $c -ErrorAction SilentlyContinue)) { $c } }"
    )
    try:
        result = run_powershell(script, timeout=30.0)
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug("Cannot check PowerShell commands for %s: %s", feature.name, e)
        return [*missing, *feature.requires_cmdlets]
    if not result.success:
        logger.debug("PowerShell command check failed for %s: %s", feature.name, result.error)
        return [*missing, *feature.requires_cmdlets]

    absent = {line.strip().lower() for line in result.stdout.splitlines() if line.strip()}
    return [*missing, *(c for c in feature.requires_cmdlets if c.lower() in absent)]


def _requirements_outcome(feature: FeatureDefinition) -> Outcome | None:
    missing = missing_requirements(feature)
    if not missing:
        return None
    logger.info("Skipping %s: requires %s", feature.name, ", ".join(missing))
    return Outcome.skip(feature.name, OutcomeKind.FEATURE, f"Requires {', '.join(missing)}")


def _copy_filter(item: FileItem) -> Callable[[str, list[str]], set[str]] | None:
    """Build a copytree ignore callable from the item's include and exclude globs."""
    if not item.include and not item.exclude:
        return None
    excluded = shutil.ignore_patterns(*item.exclude)

    def _ignore(directory: str, names: list[str]) -> set[str]:
        ignored = set(excluded(directory, names))
        if item.include:
            base = Path(directory)
            ignored.update(
                name
                for name in names
                if not (base / name).is_dir()
                and not any(fnmatch.fnmatch(name, pattern) for pattern in item.include)
            )
        return ignored

    return _ignore


def write_json(path: Path, data: Any) -> None:
    """Write data as indented UTF-8 JSON."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


class BackupExecutor:
    """Back up features into the machine (or shared) backup tree.

    Attributes:
        config: Configuration of the run.
        shared: Write to the shared tree instead of the machine tree.
    """

    def __init__(
        self,
        config: MelodyConfig,
        *,
        shared: bool = False,
        collectors: dict[str, Collector] | None = None,
    ) -> None:
        self.config = config
        self.shared = shared
        self._collectors = collectors if collectors is not None else default_collectors()

    def run(self, features: Iterable[FeatureDefinition]) -> list[FeatureResult]:
        """Back up each feature in order."""
        return [self.backup_feature(feature) for feature in features]

    def backup_feature(self, feature: FeatureDefinition) -> FeatureResult:
        """Back up all items of one feature.

        Returns:
            FeatureResult; ``fatal_error`` is set if the backup directory
            could not be created.
        """
        result = FeatureResult(feature=feature.name)
        skipped = _requirements_outcome(feature)
        if skipped is not None:
            result.add(skipped)
            return result
        try:
            backup_dir = initialize_backup_directory(self.config, feature.name, shared=self.shared)
        except RuntimeError as e:
            logger.warning("Cannot back up %s: %s", feature.name, e)
            result.fatal_error = str(e)
            return result

        result.backup_path = str(backup_dir)
        logger.debug("Backing up %s into %s", feature.name, backup_dir)

        for reg_item in feature.registry:
            result.add(self._export_registry(reg_item, backup_dir))
        for file_item in feature.files:
            result.add(self._copy_file(file_item, backup_dir))

        context = CollectorContext(config=self.config, backup_dir=backup_dir)
        for collector_item in feature.collectors:
            result.add(self._run_collector(collector_item, context))

        self._write_summary(feature, result, backup_dir)
        return result

    def _export_registry(self, item: RegistryItem, backup_dir: Path) -> Outcome:
        if not registry.is_available():
            return Outcome.skip(item.name, OutcomeKind.REGISTRY, "reg.exe not available")
        try:
            if not registry.key_exists(item.key):
                return Outcome.skip(item.name, OutcomeKind.REGISTRY, "Key not found")

            dest = backup_dir / REGISTRY_DIR / item.export_name
            dest.parent.mkdir(parents=True, exist_ok=True)
            export = registry.export_key(item.key, dest)
        except (RegistryError, OSError, subprocess.SubprocessError) as e:
            return Outcome.fail(item.name, OutcomeKind.REGISTRY, str(e))

        if not export.success:
            return Outcome.fail(item.name, OutcomeKind.REGISTRY, export.error)
        return Outcome.ok(item.name, OutcomeKind.REGISTRY, str(dest))

    def _copy_file(self, item: FileItem, backup_dir: Path) -> Outcome:
        source = expand_path(item.path)
        if not source.exists():
            return Outcome.skip(item.name, OutcomeKind.FILE, f"Path not found: {source}")

        dest = backup_dir / FILES_DIR / item.backup_name
        try:
            if item.type == "directory":
                if not source.is_dir():
                    return Outcome.fail(item.name, OutcomeKind.FILE, f"Not a directory: {source}")
                shutil.copytree(source, dest, ignore=_copy_filter(item), dirs_exist_ok=True)
            else:
                if not source.is_file():
                    return Outcome.fail(item.name, OutcomeKind.FILE, f"Not a file: {source}")
                dest.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(source, dest)
        except OSError as e:
            return Outcome.fail(item.name, OutcomeKind.FILE, str(e))
        return Outcome.ok(item.name, OutcomeKind.FILE, str(dest))

    def _run_collector(self, item: CollectorItem, context: CollectorContext) -> Outcome:
        collector = self._collectors.get(item.kind)
        if collector is None:
            return Outcome.fail(item.name, OutcomeKind.COLLECTOR, f"No collector for {item.kind}")

        try:
            if not collector.is_available(item):
                return Outcome.skip(item.name, OutcomeKind.COLLECTOR, f"{item.kind} not available")
            collected = collector.collect(item, context)
        except _COLLECTOR_ERRORS as e:
            logger.debug("Collector %s failed for %s", item.kind, item.name, exc_info=True)
            return Outcome.fail(item.name, OutcomeKind.COLLECTOR, str(e))

        return self._store_collected(item, collected, context.backup_dir)

    def _store_collected(
        self, item: CollectorItem, collected: CollectionResult, backup_dir: Path
    ) -> Outcome:
        if collected.skip_reason is not None:
            return Outcome.skip(item.name, OutcomeKind.COLLECTOR, collected.skip_reason)

        dest = backup_dir / item.output_name
        if collected.data is not None:
            try:
                write_json(dest, collected.data)
            except (OSError, TypeError, ValueError) as e:
                return Outcome.fail(item.name, OutcomeKind.COLLECTOR, f"Cannot write {dest}: {e}")

        if collected.errors:
            return Outcome.fail(item.name, OutcomeKind.COLLECTOR, "; ".join(collected.errors))
        return Outcome.ok(item.name, OutcomeKind.COLLECTOR, str(dest))

    def _write_summary(
        self, feature: FeatureDefinition, result: FeatureResult, backup_dir: Path
    ) -> None:
        summary = {
            "feature": feature.name,
            "title": feature.title,
            "machine": self.config.machine_name,
            "timestamp": datetime.now(UTC).isoformat(),
            **result.to_dict(),
        }
        try:
            write_json(backup_dir / SUMMARY_FILE, summary)
        except OSError as e:
            result.add(Outcome.fail(SUMMARY_FILE, OutcomeKind.FILE, str(e)))


class RestoreExecutor:
    """Restore features from the machine tree, falling back to the shared tree.

    Attributes:
        config: Configuration of the run.
        dry_run: Report what would be restored without changing anything.
    """

    def __init__(
        self,
        config: MelodyConfig,
        *,
        dry_run: bool = False,
        collectors: dict[str, Collector] | None = None,
    ) -> None:
        self.config = config
        self.dry_run = dry_run
        self._collectors = collectors if collectors is not None else default_collectors()

    def run(self, features: Iterable[FeatureDefinition]) -> list[FeatureResult]:
        """Restore each feature in order."""
        return [self.restore_feature(feature) for feature in features]

    def restore_feature(self, feature: FeatureDefinition) -> FeatureResult:
        """Restore all items of one feature that are present in the backup."""
        result = FeatureResult(feature=feature.name)
        skipped = _requirements_outcome(feature)
        if skipped is not None:
            result.add(skipped)
            return result
        backup_dir = resolve_restore_directory(self.config, feature.name)
        if backup_dir is None:
            result.fatal_error = f"No backup found for {feature.name}"
            return result

        result.backup_path = str(backup_dir)
        logger.debug("Restoring %s from %s (dry_run=%s)", feature.name, backup_dir, self.dry_run)

        for reg_item in feature.registry:
            result.add(self._import_registry(reg_item, backup_dir))
        for file_item in feature.files:
            result.add(self._restore_file(file_item, backup_dir))

        context = CollectorContext(config=self.config, backup_dir=backup_dir, dry_run=self.dry_run)
        for collector_item in feature.collectors:
            result.extend(self._restore_collector(collector_item, context))

        return result

    def _import_registry(self, item: RegistryItem, backup_dir: Path) -> Outcome:
        export = backup_dir / REGISTRY_DIR / item.export_name
        if not export.is_file():
            return Outcome.skip(item.name, OutcomeKind.REGISTRY, "Not in backup")
        if self.dry_run:
            return Outcome.ok(item.name, OutcomeKind.REGISTRY, f"would import {export.name}")
        if not registry.is_available():
            return Outcome.skip(item.name, OutcomeKind.REGISTRY, "reg.exe not available")

        try:
            imported = registry.import_file(export)
        except (OSError, subprocess.SubprocessError) as e:
            return Outcome.fail(item.name, OutcomeKind.REGISTRY, str(e))
        if not imported.success:
            return Outcome.fail(item.name, OutcomeKind.REGISTRY, imported.error)
        return Outcome.ok(item.name, OutcomeKind.REGISTRY, f"imported {export.name}")

    def _restore_file(self, item: FileItem, backup_dir: Path) -> Outcome:
        source = backup_dir / FILES_DIR / item.backup_name
        if not source.exists():
            return Outcome.skip(item.name, OutcomeKind.FILE, "Not in backup")

        dest = expand_path(item.path)
        if self.dry_run:
            return Outcome.ok(item.name, OutcomeKind.FILE, f"would copy to {dest}")

        try:
            if source.is_dir():
                shutil.copytree(source, dest, dirs_exist_ok=True)
            else:
                dest.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(source, dest)
        except OSError as e:
            return Outcome.fail(item.name, OutcomeKind.FILE, str(e))
        return Outcome.ok(item.name, OutcomeKind.FILE, str(dest))

    def _restore_collector(self, item: CollectorItem, context: CollectorContext) -> list[Outcome]:
        collector = self._collectors.get(item.kind)
        if collector is None:
            return [Outcome.fail(item.name, OutcomeKind.COLLECTOR, f"No collector for {item.kind}")]

        data_path = context.backup_dir / item.output_name
        if not data_path.is_file():
            return [Outcome.skip(item.name, OutcomeKind.COLLECTOR, "Not in backup")]

        try:
            data = json.loads(data_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            return [Outcome.fail(item.name, OutcomeKind.COLLECTOR, f"Cannot read {data_path}: {e}")]

        try:
            outcomes = collector.restore(item, data, context)
        except _COLLECTOR_ERRORS as e:
            logger.debug("Restore of %s failed", item.name, exc_info=True)
            return [Outcome.fail(item.name, OutcomeKind.COLLECTOR, str(e))]

        if not outcomes and not collector.restorable:
            return [Outcome.skip(item.name, OutcomeKind.COLLECTOR, "informational only")]
        return outcomes


def record_run_to_history(
    action: RunAction,
    config: MelodyConfig,
    results: list[FeatureResult],
    *,
    dry_run: bool = False,
    command: str = "melody backup",
) -> None:
    """Append a run to the history file.

    Errors during history recording are logged but do **not** interrupt
    the calling command's flow.

    Args:
        action: Backup or restore.
        config: Configuration of the run.
        results: Results of every feature in the run.
        dry_run: Whether the run was a dry-run.
        command: Command string stored in the record metadata.
    """
    if not results:
        return

    try:
        record = create_run_record(
            action,
            config.machine_name,
            results,
            dry_run=dry_run,
            metadata={"command": command, "backup_root": str(config.backup_root)},
        )
        StateManager().record_run(record)
        logger.debug("Recorded %s run %s to history", action.value, record.id)
    except (OSError, RuntimeError) as e:
        logger.warning("Failed to record run to history: %s", str(e))
        print_warning(f"Could not record run to history: {e}")
