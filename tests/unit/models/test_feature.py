"""Unit tests for feature definition models."""

import pytest
from melody.models.feature import CollectorItem, FeatureDefinition, FileItem, RegistryItem
from pydantic import ValidationError


class TestItems:
    """Tests for item models."""

    def test_registry_export_name_from_slug(self) -> None:
        """The export name defaults to the slugged item name."""
        item = RegistryItem(name="Mouse Settings", key="HKCU:\\Control Panel\\Mouse")
        assert item.export_name == "mouse_settings.reg"

    def test_registry_export_name_from_dest(self) -> None:
        """An explicit dest gains the .reg suffix only when missing."""
        assert RegistryItem(name="a", key="HKCU\\x", dest="cursors").export_name == "cursors.reg"
        assert RegistryItem(name="a", key="HKCU\\x", dest="c.REG").export_name == "c.REG"

    def test_file_defaults(self) -> None:
        """Files default to type file and a slugged backup name."""
        item = FileItem(name="SSH Config", path="~/.ssh/config")
        assert item.type == "file"
        assert item.backup_name == "ssh_config"

    def test_file_patterns_need_directory(self) -> None:
        """include and exclude are rejected on single files."""
        with pytest.raises(ValidationError, match="only apply to directories"):
            FileItem(name="x", path="y", exclude=["*.tmp"])
        assert FileItem(name="x", path="y", type="directory", exclude=["*.tmp"]).exclude == [
            "*.tmp"
        ]

    def test_file_type_validated(self) -> None:
        """Only file and directory types are accepted."""
        with pytest.raises(ValidationError):
            FileItem(name="x", path="y", type="symlink")  # type: ignore[arg-type]

    def test_collector_output_name(self) -> None:
        """Collector output names always end in .json."""
        assert CollectorItem(name="Pointing Devices", kind="powershell").output_name == (
            "pointing_devices.json"
        )
        assert CollectorItem(name="x", kind="command", output="status").output_name == (
            "status.json"
        )

    def test_collector_unknown_kind(self) -> None:
        """Unknown collector kinds are rejected."""
        with pytest.raises(ValidationError):
            CollectorItem(name="x", kind="telepathy")  # type: ignore[arg-type]

    def test_extra_fields_forbidden(self) -> None:
        """Unknown fields are rejected."""
        with pytest.raises(ValidationError):
            RegistryItem(name="a", key="HKCU\\x", recursive=True)  # type: ignore[call-arg]

    def test_registry_unknown_hive_rejected(self) -> None:
        """Keys must start with a known hive."""
        with pytest.raises(ValidationError, match="Unknown registry hive"):
            RegistryItem(name="a", key="HKXX:\\Software")

    def test_registry_values_keys_validated(self) -> None:
        """registry_values collectors validate their key options."""
        with pytest.raises(ValidationError, match="Unknown registry hive"):
            CollectorItem(name="x", kind="registry_values", options={"key": "HKXX:\\Software"})
        with pytest.raises(ValidationError, match="Unknown registry hive"):
            CollectorItem(
                name="x",
                kind="registry_values",
                options={"keys": ["HKCU\\Ok", "Software\\Missing"]},
            )

    @pytest.mark.parametrize("dest", ["../../x", "..", ".", "a\\b", "C:evil", "sub/file"])
    def test_dest_must_be_plain_name(self, dest: str) -> None:
        """Backup names cannot escape the backup directory."""
        with pytest.raises(ValidationError, match="plain file name"):
            RegistryItem(name="a", key="HKCU\\x", dest=dest)
        with pytest.raises(ValidationError, match="plain file name"):
            FileItem(name="a", path="~/x", dest=dest)
        with pytest.raises(ValidationError, match="plain file name"):
            CollectorItem(name="a", kind="command", output=dest)


class TestFeatureDefinition:
    """Tests for FeatureDefinition model."""

    def test_minimal(self) -> None:
        """A feature needs only a name and title."""
        feature = FeatureDefinition(name="mouse", title="Mouse")
        assert feature.item_count == 0
        assert feature.description == ""

    def test_item_count(self) -> None:
        """item_count sums registry, files and collectors."""
        feature = FeatureDefinition.model_validate(
            {
                "name": "ssh",
                "title": "SSH",
                "registry": [{"name": "Agent", "key": "HKLM\\SOFTWARE\\OpenSSH"}],
                "files": [{"name": "Keys", "path": "~/.ssh", "type": "directory"}],
                "collectors": [{"name": "Status", "kind": "command", "options": {"args": ["x"]}}],
            }
        )
        assert feature.item_count == 3

    @pytest.mark.parametrize("name", ["Mouse", "-mouse", "mouse settings", ""])
    def test_invalid_name(self, name: str) -> None:
        """Feature names are lowercase catalog keys."""
        with pytest.raises(ValidationError):
            FeatureDefinition(name=name, title="x")

    def test_duplicate_item_names(self) -> None:
        """Item names must be unique across all item lists."""
        with pytest.raises(ValidationError, match="Duplicate item name"):
            FeatureDefinition.model_validate(
                {
                    "name": "mouse",
                    "title": "Mouse",
                    "registry": [{"name": "Mouse", "key": "HKCU\\x"}],
                    "files": [{"name": "Mouse", "path": "y"}],
                }
            )
