"""Unit tests for path expansion helpers."""

from pathlib import Path

import pytest
from melody.utils.pathexpand import expand_path, expand_vars, slugify


class TestExpandVars:
    """Tests for expand_vars function."""

    @pytest.fixture(autouse=True)
    def _env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOCALAPPDATA", "C:\\Users\\me\\AppData\\Local")
        monkeypatch.setenv("APPDATA", "C:\\Users\\me\\AppData\\Roaming")
        monkeypatch.delenv("MELODY_UNSET_VAR", raising=False)

    def test_percent_syntax(self) -> None:
        """%VAR% references are expanded."""
        assert expand_vars("%LOCALAPPDATA%\\Packages") == "C:\\Users\\me\\AppData\\Local\\Packages"

    def test_powershell_env_syntax(self) -> None:
        """$env:VAR references are expanded."""
        assert expand_vars("$env:APPDATA\\Code") == "C:\\Users\\me\\AppData\\Roaming\\Code"

    def test_brace_syntax(self) -> None:
        """${VAR} references are expanded."""
        assert expand_vars("${APPDATA}/x") == "C:\\Users\\me\\AppData\\Roaming/x"

    def test_case_insensitive_lookup(self) -> None:
        """Variable names match regardless of case."""
        assert expand_vars("%localappdata%") == "C:\\Users\\me\\AppData\\Local"

    def test_unknown_variable_left_in_place(self) -> None:
        """Unknown variables are not replaced."""
        assert expand_vars("%MELODY_UNSET_VAR%\\x") == "%MELODY_UNSET_VAR%\\x"

    def test_plain_text_unchanged(self) -> None:
        """Text without references is returned unchanged."""
        assert expand_vars("C:\\Windows") == "C:\\Windows"


class TestExpandPath:
    """Tests for expand_path function."""

    def test_expands_home(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """A leading ~ expands to the home directory."""
        monkeypatch.setenv("HOME", str(tmp_path))
        monkeypatch.setenv("USERPROFILE", str(tmp_path))

        assert expand_path("~/.ssh") == tmp_path / ".ssh"

    def test_returns_path(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """expand_path returns a Path with variables substituted."""
        monkeypatch.setenv("MELODY_TEST_DIR", str(tmp_path))

        assert expand_path("%MELODY_TEST_DIR%/config") == tmp_path / "config"


class TestSlugify:
    """Tests for slugify function."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("Mouse Control Panel Settings", "mouse_control_panel_settings"),
            ("Windows Terminal (settings.json)", "windows_terminal_settings_json"),
            ("  --Edge--  ", "edge"),
            ("OpenSSH", "openssh"),
        ],
    )
    def test_slugify(self, name: str, expected: str) -> None:
        """Names are reduced to lowercase words joined by underscores."""
        assert slugify(name) == expected

    def test_empty_falls_back(self) -> None:
        """Names without any usable characters become 'item'."""
        assert slugify("!!!") == "item"
