"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

from pathlib import Path

import pytest
from melody.collectors.base import CollectorContext
from melody.core.config import MelodyConfig


@pytest.fixture
def mock_reg_query_output() -> str:
    """Sample `reg query HKCU\\Control Panel\\Mouse` output."""
    return """
HKEY_CURRENT_USER\\Control Panel\\Mouse
    ActiveWindowTracking    REG_DWORD    0x0
    DoubleClickSpeed    REG_SZ    500
    MouseSensitivity    REG_SZ    10
    SmoothMouseXCurve    REG_BINARY    0000000000000000156E000000000000
    (Default)    REG_SZ

"""


@pytest.fixture
def mock_reg_query_recursive_output() -> str:
    """Sample `reg query ... /s` output spanning two keys."""
    return """
HKEY_CURRENT_USER\\Software\\SimonTatham\\PuTTY
    Default    REG_SZ    yes

HKEY_CURRENT_USER\\Software\\SimonTatham\\PuTTY\\Sessions\\server
    HostName    REG_SZ    example.org
    PortNumber    REG_DWORD    0x16
    Paths    REG_MULTI_SZ    C:\\one\\0C:\\two

End of search: 4 match(es) found.
"""


@pytest.fixture
def mock_winget_list_output() -> str:
    """Sample `winget list` output including a progress spinner line."""
    return (
        "\r   - \r   \\ \r"
        "Name                 Id                          Version      Available  Source\n"
        "------------------------------------------------------------------------------\n"
        "Git                  Git.Git                     2.45.1                  winget\n"
        "Mozilla Firefox      Mozilla.Firefox             128.0        129.0      winget\n"
        "Microsoft Edge       Microsoft.Edge              126.0.2592.8\n"
        "Spotify              9NCBCSZSJRSB                1.2.40       \n"
    )


@pytest.fixture
def mock_choco_output() -> str:
    """Sample `choco list --limit-output` output."""
    return """7zip|23.1.0
git|2.45.1
chocolatey|2.2.2
"""


@pytest.fixture
def mock_acf_text() -> str:
    """Sample Steam appmanifest_440.acf contents."""
    return """"AppState"
{
\t"appid"\t\t"440"
\t"Universe"\t\t"1"
\t"name"\t\t"Team Fortress 2"
\t"installdir"\t\t"Team Fortress 2"
\t"SizeOnDisk"\t\t"27331395390"
\t"UserConfig"
\t{
\t\t"language"\t\t"english"
\t}
}
"""


@pytest.fixture
def mock_library_folders_vdf() -> str:
    """Sample libraryfolders.vdf in the current format."""
    return """"libraryfolders"
{
\t"0"
\t{
\t\t"path"\t\t"C:\\\\Program Files (x86)\\\\Steam"
\t\t"apps"
\t\t{
\t\t\t"440"\t\t"27331395390"
\t\t}
\t}
\t"1"
\t{
\t\t"path"\t\t"D:\\\\SteamLibrary"
\t}
}
"""


@pytest.fixture
def mock_wsl_list_output() -> str:
    """Sample `wsl --list --verbose` output."""
    return """  NAME                   STATE           VERSION
* Ubuntu                 Running         2
  Debian                 Stopped         2
  docker-desktop         Stopped         2
"""


@pytest.fixture
def config(tmp_path: Path) -> MelodyConfig:
    """Configuration rooted in a temporary backup directory."""
    return MelodyConfig(backup_root=tmp_path / "backups", machine_name="TESTPC")


@pytest.fixture(autouse=True)
def isolated_app_dirs(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point config and state directories at a temporary location.

    Also clears MELODY_* overrides so the developer's environment never
    leaks into a test.
    """
    app_home = tmp_path / "app-home"
    monkeypatch.setattr("melody.core.paths._is_windows", lambda: False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(app_home / "config"))
    monkeypatch.setenv("XDG_STATE_HOME", str(app_home / "state"))
    for name in ("MELODY_BACKUP_ROOT", "MELODY_MACHINE_NAME", "MELODY_SHARED_PATH"):
        monkeypatch.delenv(name, raising=False)
    return app_home


@pytest.fixture
def context(config: MelodyConfig, tmp_path: Path) -> CollectorContext:
    """Collector context writing into a temporary feature directory."""
    backup_dir = tmp_path / "feature"
    backup_dir.mkdir()
    return CollectorContext(config=config, backup_dir=backup_dir)
