"""Unit tests for the backup and restore executors."""

import json
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
from melody.collectors import CollectionResult, Collector, CollectorContext
from melody.collectors.registry import RegistryValuesCollector
from melody.core.config import MelodyConfig
from melody.core.executor import (
    BackupExecutor,
    RestoreExecutor,
    missing_requirements,
    record_run_to_history,
    write_json,
)
from melody.core.state import StateManager
from melody.models.feature import CollectorItem, FeatureDefinition, RegistryItem
from melody.models.history import RunAction
from melody.models.outcome import FeatureResult, Outcome, OutcomeKind
from melody.utils.shell import CommandResult
from pydantic import ValidationError

OK = CommandResult(stdout="", stderr="", returncode=0)


class FakeCollector(Collector):
    """Collector returning a fixed result."""

    kind = "command"

    def __init__(
        self,
        result: CollectionResult | None = None,
        *,
        available: bool = True,
        error: Exception | None = None,
        restorable: bool = False,
        outcomes: list[Outcome] | None = None,
    ) -> None:
        self.result = result or CollectionResult(data={"value": 1})
        self.available = available
        self.error = error
        self.restorable = restorable
        self.outcomes = outcomes or []
        self.restored: list[Any] = []

    def is_available(self, item: CollectorItem) -> bool:
        return self.available

    def collect(self, item: CollectorItem, context: CollectorContext) -> CollectionResult:
        if self.error is not None:
            raise self.error
        return self.result

    def restore(self, item: CollectorItem, data: Any, context: CollectorContext) -> list[Outcome]:
        self.restored.append((data, context.dry_run))
        return self.outcomes


def _feature(**items: Any) -> FeatureDefinition:
    return FeatureDefinition.model_validate({"name": "demo", "title": "Demo", **items})


@pytest.fixture
def source_file(tmp_path: Path) -> Path:
    """A file to back up."""
    path = tmp_path / "source" / "settings.json"
    path.parent.mkdir(parents=True)
    path.write_text('{"theme": "dark"}', encoding="utf-8")
    return path


class TestWriteJson:
    """Tests for write_json function."""

    def test_writes_indented_utf8(self, tmp_path: Path) -> None:
        """JSON is indented and keeps non-ASCII characters."""
        path = tmp_path / "sub" / "data.json"
        write_json(path, {"name": "Grüße"})

        text = path.read_text(encoding="utf-8")
        assert "Grüße" in text
        assert text.endswith("\n")
        assert json.loads(text) == {"name": "Grüße"}


class TestBackupRegistry:
    """Registry items during backup."""

    def test_reg_unavailable_skips(self, config: MelodyConfig, tmp_path: Path) -> None:
        """Without reg.exe registry items are skipped."""
        feature = _feature(registry=[{"name": "Mouse", "key": "HKCU\\Control Panel"}])

        with patch("melody.core.executor.registry.is_available", return_value=False):
            result = BackupExecutor(config, collectors={}).backup_feature(feature)

        assert result.success is True
        assert result.skipped == ["Mouse"]
        assert result.outcomes[0].detail == "reg.exe not available"

    def test_missing_key_skips(self, config: MelodyConfig, tmp_path: Path) -> None:
        """A missing key is skipped, not failed."""
        feature = _feature(registry=[{"name": "Mouse", "key": "HKCU\\Nope"}])

        with (
            patch("melody.core.executor.registry.is_available", return_value=True),
            patch("melody.core.executor.registry.key_exists", return_value=False),
        ):
            result = BackupExecutor(config, collectors={}).backup_feature(feature)

        assert result.outcomes[0] == Outcome.skip("Mouse", OutcomeKind.REGISTRY, "Key not found")

    def test_exports_key(self, config: MelodyConfig, tmp_path: Path) -> None:
        """Existing keys are exported into registry/<slug>.reg."""
        feature = _feature(registry=[{"name": "Mouse Settings", "key": "HKCU\\X"}])

        with (
            patch("melody.core.executor.registry.is_available", return_value=True),
            patch("melody.core.executor.registry.key_exists", return_value=True),
            patch("melody.core.executor.registry.export_key", return_value=OK) as mock_export,
        ):
            result = BackupExecutor(config, collectors={}).backup_feature(feature)

        dest = config.backup_root / "TESTPC" / "demo" / "registry" / "mouse_settings.reg"
        mock_export.assert_called_once_with("HKCU\\X", dest)
        assert result.items == ["Mouse Settings"]

    def test_export_failure(self, config: MelodyConfig, tmp_path: Path) -> None:
        """A failed export is reported with the reg error."""
        feature = _feature(registry=[{"name": "Mouse", "key": "HKCU\\X"}])
        failed = CommandResult(stdout="", stderr="Access is denied.", returncode=1)

        with (
            patch("melody.core.executor.registry.is_available", return_value=True),
            patch("melody.core.executor.registry.key_exists", return_value=True),
            patch("melody.core.executor.registry.export_key", return_value=failed),
        ):
            result = BackupExecutor(config, collectors={}).backup_feature(feature)

        assert result.success is False
        assert result.errors == ["Mouse: Access is denied."]

    def test_invalid_key_fails(self, config: MelodyConfig, tmp_path: Path) -> None:
        """An unknown hive fails the item."""
        feature = _feature(registry=[{"name": "Bad", "key": "HKXX\\Y"}])

        with patch("melody.core.executor.registry.is_available", return_value=True):
            result = BackupExecutor(config, collectors={}).backup_feature(feature)

        assert result.outcomes[0].failed
        assert "Unknown registry hive" in (result.outcomes[0].detail or "")


class TestBackupFiles:
    """File items during backup."""

    def test_copies_file(self, config: MelodyConfig, tmp_path: Path, source_file: Path) -> None:
        """Files are copied into files/<slug>."""
        feature = _feature(files=[{"name": "Settings", "path": str(source_file)}])

        result = BackupExecutor(config, collectors={}).backup_feature(feature)

        copied = config.backup_root / "TESTPC" / "demo" / "files" / "settings"
        assert copied.read_text(encoding="utf-8") == '{"theme": "dark"}'
        assert result.items == ["Settings"]

    def test_copies_directory(
        self, config: MelodyConfig, tmp_path: Path, source_file: Path
    ) -> None:
        """Directories are copied recursively."""
        feature = _feature(
            files=[{"name": "Profile", "path": str(source_file.parent), "type": "directory"}],
        )

        BackupExecutor(config, collectors={}).backup_feature(feature)

        copied = config.backup_root / "TESTPC" / "demo" / "files" / "profile"
        assert (copied / "settings.json").is_file()

    def test_directory_include_exclude(self, config: MelodyConfig, tmp_path: Path) -> None:
        """include limits copied file names; exclude drops names at any depth."""
        source = tmp_path / "Documents"
        (source / "cache").mkdir(parents=True)
        (source / "work.rdp").write_text("full address:s:host", encoding="utf-8")
        (source / "notes.txt").write_text("x", encoding="utf-8")
        (source / "cache" / "old.rdp").write_text("x", encoding="utf-8")
        feature = _feature(
            files=[
                {
                    "name": "RDP Files",
                    "path": str(source),
                    "type": "directory",
                    "include": ["*.rdp"],
                    "exclude": ["cache"],
                }
            ],
        )

        BackupExecutor(config, collectors={}).backup_feature(feature)

        copied = config.backup_root / "TESTPC" / "demo" / "files" / "rdp_files"
        assert sorted(p.name for p in copied.iterdir()) == ["work.rdp"]

    def test_missing_path_skips(self, config: MelodyConfig, tmp_path: Path) -> None:
        """Missing sources are skipped."""
        feature = _feature(files=[{"name": "Nope", "path": str(tmp_path / "nope")}])

        result = BackupExecutor(config, collectors={}).backup_feature(feature)

        assert result.skipped == ["Nope"]
        assert result.success is True

    def test_type_mismatch_fails(
        self, config: MelodyConfig, tmp_path: Path, source_file: Path
    ) -> None:
        """A file declared as directory fails."""
        feature = _feature(
            files=[{"name": "Dir", "path": str(source_file), "type": "directory"}]
        )

        result = BackupExecutor(config, collectors={}).backup_feature(feature)

        assert result.errors[0].startswith("Dir: Not a directory")

    def test_environment_expanded(
        self,
        config: MelodyConfig,
        tmp_path: Path,
        source_file: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Environment references in paths are expanded."""
        monkeypatch.setenv("MELODY_TEST_SRC", str(source_file.parent))
        feature = _feature(
            files=[{"name": "S", "path": "%MELODY_TEST_SRC%/settings.json"}]
        )

        result = BackupExecutor(config, collectors={}).backup_feature(feature)

        assert result.items == ["S"]


class TestBackupCollectors:
    """Collector items during backup."""

    @pytest.fixture
    def feature(self, tmp_path: Path) -> FeatureDefinition:
        """Feature with one command collector."""
        return _feature(
            collectors=[{"name": "Status", "kind": "command", "output": "status"}],
        )

    def test_writes_data(self, config: MelodyConfig, feature: FeatureDefinition) -> None:
        """Collected data is written to the output JSON file."""
        result = BackupExecutor(config, collectors={"command": FakeCollector()}).backup_feature(
            feature
        )

        path = config.backup_root / "TESTPC" / "demo" / "status.json"
        assert json.loads(path.read_text(encoding="utf-8")) == {"value": 1}
        assert result.items == ["Status"]

    def test_unknown_kind_fails(self, config: MelodyConfig, feature: FeatureDefinition) -> None:
        """A kind without collector fails."""
        result = BackupExecutor(config, collectors={}).backup_feature(feature)
        assert result.errors == ["Status: No collector for command"]

    def test_unavailable_skips(self, config: MelodyConfig, feature: FeatureDefinition) -> None:
        """Unavailable collectors are skipped."""
        collectors = {"command": FakeCollector(available=False)}
        result = BackupExecutor(config, collectors=collectors).backup_feature(feature)
        assert result.outcomes[0].detail == "command not available"
        assert result.outcomes[0].skipped

    def test_skip_reason(self, config: MelodyConfig, feature: FeatureDefinition) -> None:
        """A collector skip reason becomes a skipped outcome."""
        collectors = {"command": FakeCollector(CollectionResult.skipped("Steam is not installed"))}
        result = BackupExecutor(config, collectors=collectors).backup_feature(feature)

        assert result.outcomes[0].detail == "Steam is not installed"
        assert not (config.backup_root / "TESTPC" / "demo" / "status.json").exists()

    def test_partial_data_written_and_failed(
        self, config: MelodyConfig, feature: FeatureDefinition
    ) -> None:
        """Partial data is kept while the item is marked failed."""
        partial = CollectionResult(data={"Ubuntu": {}}, errors=["Debian: timed out", "Arch: x"])
        executor = BackupExecutor(config, collectors={"command": FakeCollector(partial)})
        result = executor.backup_feature(feature)

        assert (config.backup_root / "TESTPC" / "demo" / "status.json").exists()
        assert result.errors == ["Status: Debian: timed out; Arch: x"]

    def test_collector_exception(self, config: MelodyConfig, feature: FeatureDefinition) -> None:
        """Exceptions from a collector fail only that item."""
        collectors = {"command": FakeCollector(error=RuntimeError("wsl failed"))}
        result = BackupExecutor(config, collectors=collectors).backup_feature(feature)
        assert result.errors == ["Status: wsl failed"]

    def test_registry_values_bad_hive(self, config: MelodyConfig) -> None:
        """A registry_values key with an unknown hive fails the item without raising."""
        item = CollectorItem.model_construct(
            name="Bad Values",
            kind="registry_values",
            output=None,
            options={"key": "HKXX:\\Software"},
        )
        feature = FeatureDefinition.model_construct(
            name="demo", title="Demo", registry=[], files=[], collectors=[item]
        )
        executor = BackupExecutor(
            config, collectors={"registry_values": RegistryValuesCollector()}
        )

        with patch("melody.collectors.registry.is_available", return_value=True):
            result = executor.backup_feature(feature)

        assert result.success is False
        assert result.outcomes[0].name == "Bad Values"
        assert "Unknown registry hive" in (result.outcomes[0].detail or "")


class TestBackupFeature:
    """Feature-level backup behavior."""

    def test_summary_written(self, config: MelodyConfig, tmp_path: Path, source_file: Path) -> None:
        """feature.json summarizes the run."""
        feature = _feature(files=[{"name": "Settings", "path": str(source_file)}])

        BackupExecutor(config, collectors={}).backup_feature(feature)

        summary = json.loads(
            (config.backup_root / "TESTPC" / "demo" / "feature.json").read_text(encoding="utf-8")
        )
        assert summary["feature"] == "demo"
        assert summary["title"] == "Demo"
        assert summary["machine"] == "TESTPC"
        assert summary["success"] is True
        assert summary["items"] == ["Settings"]

    def test_shared_tree(self, config: MelodyConfig, tmp_path: Path) -> None:
        """shared=True writes into the shared tree."""
        result = BackupExecutor(config, shared=True, collectors={}).backup_feature(
            _feature()
        )
        assert result.backup_path == str(config.backup_root / "shared" / "demo")

    def test_directory_failure_is_fatal(self, config: MelodyConfig, tmp_path: Path) -> None:
        """A backup directory that cannot be created fails the feature."""
        with patch(
            "melody.core.executor.initialize_backup_directory",
            side_effect=RuntimeError("Cannot create demo backup directory"),
        ):
            result = BackupExecutor(config, collectors={}).backup_feature(_feature())

        assert result.success is False
        assert result.fatal_error == "Cannot create demo backup directory"

    def test_run_keeps_order(self, config: MelodyConfig) -> None:
        """run returns one result per feature in order."""
        features = [
            FeatureDefinition(name="b", title="B"),
            FeatureDefinition(name="a", title="A"),
        ]
        results = BackupExecutor(config, collectors={}).run(features)
        assert [r.feature for r in results] == ["b", "a"]


class TestRestoreExecutor:
    """Tests for RestoreExecutor."""

    @pytest.fixture
    def backup_dir(self, config: MelodyConfig) -> Path:
        """An existing machine backup of the demo feature."""
        path = config.backup_root / "TESTPC" / "demo"
        (path / "registry").mkdir(parents=True)
        (path / "registry" / "mouse.reg").write_text("Windows Registry Editor Version 5.00\n")
        (path / "files").mkdir()
        (path / "files" / "settings").write_text("restored", encoding="utf-8")
        (path / "status.json").write_text('{"value": 1}', encoding="utf-8")
        return path

    def test_no_backup_is_fatal(self, config: MelodyConfig, tmp_path: Path) -> None:
        """Restoring without any backup fails the feature."""
        result = RestoreExecutor(config, collectors={}).restore_feature(_feature())
        assert result.fatal_error == "No backup found for demo"

    def test_imports_registry(
        self, config: MelodyConfig, tmp_path: Path, backup_dir: Path
    ) -> None:
        """Exported keys are imported with reg import."""
        feature = _feature(registry=[{"name": "Mouse", "key": "HKCU\\X"}])

        with (
            patch("melody.core.executor.registry.is_available", return_value=True),
            patch("melody.core.executor.registry.import_file", return_value=OK) as mock_import,
        ):
            result = RestoreExecutor(config, collectors={}).restore_feature(feature)

        mock_import.assert_called_once_with(backup_dir / "registry" / "mouse.reg")
        assert result.items == ["Mouse"]

    def test_registry_not_in_backup(
        self, config: MelodyConfig, tmp_path: Path, backup_dir: Path
    ) -> None:
        """Items missing from the backup are skipped."""
        feature = _feature(registry=[{"name": "Other", "key": "HKCU\\X"}])
        result = RestoreExecutor(config, collectors={}).restore_feature(feature)
        assert result.outcomes[0] == Outcome.skip("Other", OutcomeKind.REGISTRY, "Not in backup")

    def test_restores_file(self, config: MelodyConfig, tmp_path: Path, backup_dir: Path) -> None:
        """Files are copied back to their expanded path."""
        dest = tmp_path / "target" / "settings.json"
        feature = _feature(files=[{"name": "Settings", "path": str(dest)}])

        result = RestoreExecutor(config, collectors={}).restore_feature(feature)

        assert dest.read_text(encoding="utf-8") == "restored"
        assert result.success is True

    def test_dry_run_changes_nothing(
        self, config: MelodyConfig, tmp_path: Path, backup_dir: Path
    ) -> None:
        """Dry-run reports planned work without touching the system."""
        dest = tmp_path / "target" / "settings.json"
        feature = _feature(
            registry=[{"name": "Mouse", "key": "HKCU\\X"}],
            files=[{"name": "Settings", "path": str(dest)}],
        )

        with patch("melody.core.executor.registry.import_file") as mock_import:
            result = RestoreExecutor(config, dry_run=True, collectors={}).restore_feature(feature)

        mock_import.assert_not_called()
        assert not dest.exists()
        assert result.outcomes[0].detail == "would import mouse.reg"
        assert result.outcomes[1].detail == f"would copy to {dest}"

    def test_shared_fallback(self, config: MelodyConfig, tmp_path: Path) -> None:
        """The shared backup is used when the machine has none."""
        shared = config.backup_root / "shared" / "demo"
        shared.mkdir(parents=True)

        result = RestoreExecutor(config, collectors={}).restore_feature(_feature())

        assert result.backup_path == str(shared)

    def test_collector_restore(
        self, config: MelodyConfig, tmp_path: Path, backup_dir: Path
    ) -> None:
        """Collector data is loaded and passed to restore."""
        outcome = Outcome.ok("winget:Git.Git", OutcomeKind.PACKAGE, "Installed")
        collector = FakeCollector(restorable=True, outcomes=[outcome])
        feature = _feature(
            collectors=[{"name": "Status", "kind": "command", "output": "status"}]
        )

        executor = RestoreExecutor(config, dry_run=True, collectors={"command": collector})
        result = executor.restore_feature(feature)

        assert collector.restored == [({"value": 1}, True)]
        assert result.outcomes == [outcome]

    def test_informational_collector(
        self, config: MelodyConfig, tmp_path: Path, backup_dir: Path
    ) -> None:
        """Non-restorable collectors without outcomes are reported as skipped."""
        feature = _feature(
            collectors=[{"name": "Status", "kind": "command", "output": "status"}]
        )

        result = RestoreExecutor(config, collectors={"command": FakeCollector()}).restore_feature(
            feature
        )

        assert result.outcomes == [
            Outcome.skip("Status", OutcomeKind.COLLECTOR, "informational only")
        ]

    def test_collector_data_missing(
        self, config: MelodyConfig, tmp_path: Path, backup_dir: Path
    ) -> None:
        """Collector items without data file are skipped."""
        feature = _feature(collectors=[{"name": "Other", "kind": "command"}])
        result = RestoreExecutor(config, collectors={"command": FakeCollector()}).restore_feature(
            feature
        )
        assert result.outcomes[0].detail == "Not in backup"

    def test_corrupt_collector_data(
        self, config: MelodyConfig, tmp_path: Path, backup_dir: Path
    ) -> None:
        """Unreadable JSON fails the item."""
        (backup_dir / "status.json").write_text("{", encoding="utf-8")
        feature = _feature(
            collectors=[{"name": "Status", "kind": "command", "output": "status"}]
        )

        result = RestoreExecutor(config, collectors={"command": FakeCollector()}).restore_feature(
            feature
        )

        assert result.outcomes[0].failed
        assert "Cannot read" in (result.outcomes[0].detail or "")


class TestRequirements:
    """Feature-level requires and requires_cmdlets gate."""

    def test_no_requirements(self) -> None:
        """A feature without requirements runs no checks."""
        with patch("melody.core.executor.run_powershell") as mock_ps:
            assert missing_requirements(_feature()) == []
        mock_ps.assert_not_called()

    def test_missing_executable(self) -> None:
        """Executables are looked up on PATH."""
        feature = _feature(requires=["winget", "git"])
        with patch(
            "melody.core.executor.command_exists", side_effect=lambda name: name == "git"
        ):
            assert missing_requirements(feature) == ["winget"]

    def test_missing_cmdlets(self) -> None:
        """PowerShell prints the commands it cannot resolve."""
        feature = _feature(requires_cmdlets=["Get-MpPreference", "Get-WindowsCapability"])
        with patch(
            "melody.core.executor.run_powershell",
            return_value=CommandResult(stdout="get-mppreference\r\n", stderr="", returncode=0),
        ) as mock_ps:
            assert missing_requirements(feature) == ["Get-MpPreference"]

        assert "'Get-MpPreference', 'Get-WindowsCapability'" in mock_ps.call_args.args[0]

    def test_no_powershell_misses_all_cmdlets(self) -> None:
        """Without PowerShell every required command counts as missing."""
        feature = _feature(requires_cmdlets=["Get-MpPreference"])
        with patch(
            "melody.core.executor.run_powershell",
            side_effect=FileNotFoundError("PowerShell is not available on this system"),
        ):
            assert missing_requirements(feature) == ["Get-MpPreference"]

    def test_invalid_cmdlet_name_rejected(self) -> None:
        """Command names cannot carry script text."""
        with pytest.raises(ValidationError):
            _feature(requires_cmdlets=["Get-Item; Remove-Item C:\\"])

    def test_backup_skips_feature(self, config: MelodyConfig, source_file: Path) -> None:
        """A missing tool skips the feature without creating its directory."""
        feature = _feature(
            requires=["winget"], files=[{"name": "Settings", "path": str(source_file)}]
        )
        with patch("melody.core.executor.command_exists", return_value=False):
            result = BackupExecutor(config, collectors={}).backup_feature(feature)

        assert result.success is True
        assert result.outcomes == [Outcome.skip("demo", OutcomeKind.FEATURE, "Requires winget")]
        assert result.backup_path is None
        assert not (config.backup_root / "TESTPC" / "demo").exists()

    def test_restore_skips_feature(self, config: MelodyConfig) -> None:
        """Restore applies the same gate before looking for a backup."""
        feature = _feature(requires=["winget"])
        with patch("melody.core.executor.command_exists", return_value=False):
            result = RestoreExecutor(config, collectors={}).restore_feature(feature)

        assert result.fatal_error is None
        assert result.skipped == ["demo"]


class TestRecordRunToHistory:
    """Tests for record_run_to_history function."""

    def test_records_run(self, config: MelodyConfig) -> None:
        """A run is appended to the default history file."""
        record_run_to_history(RunAction.BACKUP, config, [FeatureResult(feature="mouse")])

        records = StateManager().get_history()
        assert len(records) == 1
        assert records[0].machine == "TESTPC"
        assert records[0].metadata["command"] == "melody backup"

    def test_no_results_no_record(self, config: MelodyConfig) -> None:
        """Empty runs are not recorded."""
        record_run_to_history(RunAction.BACKUP, config, [])
        assert StateManager().get_history() == []

    def test_errors_do_not_propagate(self, config: MelodyConfig) -> None:
        """History failures only print a warning."""
        with (
            patch("melody.core.executor.StateManager") as mock_manager,
            patch("melody.core.executor.print_warning") as mock_warning,
        ):
            mock_manager.return_value.record_run.side_effect = OSError("disk full")
            record_run_to_history(RunAction.RESTORE, config, [FeatureResult(feature="mouse")])

        mock_warning.assert_called_once()
        assert "disk full" in mock_warning.call_args.args[0]

    def test_dry_run_flag(self, config: MelodyConfig) -> None:
        """The dry-run flag is stored on the record."""
        with patch("melody.core.executor.StateManager") as mock_manager:
            manager: MagicMock = mock_manager.return_value
            record_run_to_history(
                RunAction.RESTORE,
                config,
                [FeatureResult(feature="mouse")],
                dry_run=True,
                command="melody restore",
            )

        record = manager.record_run.call_args.args[0]
        assert record.dry_run is True
        assert record.metadata["command"] == "melody restore"
