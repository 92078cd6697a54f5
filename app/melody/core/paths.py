"""Path management for melody.

Application directories follow the platform convention:

- Windows: config in ``%APPDATA%\\melody``, state in ``%LOCALAPPDATA%\\melody``
- Elsewhere: ``$XDG_CONFIG_HOME/melody`` and ``$XDG_STATE_HOME/melody``

Backups are laid out as ``<backup_root>/<machine_name>/<feature>`` with a
shared tree (``<shared_path>/<feature>``) used as the restore fallback.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from melody.core.config import MelodyConfig

# Application identifier for directory naming
APP_NAME = "melody"


def _is_windows() -> bool:
    return os.name == "nt"


def _get_app_dir(windows_var: str, xdg_var: str, default_subdir: str) -> Path:
    """Get an application directory respecting environment overrides.

    Args:
        windows_var: Windows environment variable (e.g., "APPDATA").
        xdg_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").

    Returns:
        Path to the application-specific directory.
    """
    if _is_windows():
        base = os.environ.get(windows_var)
        if base:
            return Path(base) / APP_NAME
    base = os.environ.get(xdg_var)
    if base:
        return Path(base) / APP_NAME
    return Path.home() / default_subdir / APP_NAME


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    return _get_app_dir("APPDATA", "XDG_CONFIG_HOME", ".config")


def get_state_dir() -> Path:
    """Get the state directory path.

    State data includes the run history that should persist between runs
    but is not configuration.
    """
    return _get_app_dir("LOCALAPPDATA", "XDG_STATE_HOME", ".local/state")


def get_config_path() -> Path:
    """Get the default configuration file path (``<config_dir>/config.toml``)."""
    return get_config_dir() / "config.toml"


def get_user_features_dir() -> Path:
    """Get the directory for user-defined feature catalog files."""
    return get_config_dir() / "features"


def get_history_path() -> Path:
    """Get the run history file path (``<state_dir>/history.jsonl``)."""
    return get_state_dir() / "history.jsonl"


def _ensure_dir(path: Path, name: str) -> Path:
    """Create directory if it doesn't exist.

    Args:
        path: Directory path to create.
        name: Human-readable name for error messages.

    Returns:
        The created/existing directory path.

    Raises:
        RuntimeError: If directory cannot be created.
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except PermissionError as e:
        msg = f"Cannot create {name} directory {path}: Permission denied"
        raise RuntimeError(msg) from e
    except OSError as e:
        msg = f"Cannot create {name} directory {path}: {e}"
        raise RuntimeError(msg) from e
    return path


def ensure_state_dir() -> Path:
    """Create the state directory if it doesn't exist.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    return _ensure_dir(get_state_dir(), "state")


# =============================================================================
# Backup tree
# =============================================================================


def get_machine_backup_dir(config: MelodyConfig) -> Path:
    """Get the backup directory of the configured machine."""
    return config.backup_root / config.machine_name


def get_feature_backup_dir(config: MelodyConfig, feature: str, *, shared: bool = False) -> Path:
    """Get the backup directory of a feature without creating it.

    Args:
        config: Active configuration.
        feature: Feature name.
        shared: If True, use the shared tree instead of the machine tree.
    """
    base = config.effective_shared_path if shared else get_machine_backup_dir(config)
    return base / feature


def initialize_backup_directory(
    config: MelodyConfig,
    feature: str,
    *,
    shared: bool = False,
) -> Path:
    """Create the backup directory of a feature.

    Args:
        config: Active configuration.
        feature: Feature name.
        shared: If True, create it in the shared tree.

    Returns:
        Path to the (possibly pre-existing) feature directory.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    return _ensure_dir(get_feature_backup_dir(config, feature, shared=shared), f"{feature} backup")


def resolve_restore_directory(config: MelodyConfig, feature: str) -> Path | None:
    """Find the backup directory to restore a feature from.

    The machine-specific backup wins; the shared backup is the fallback.

    Returns:
        Existing backup directory, or None if neither exists.
    """
    for shared in (False, True):
        candidate = get_feature_backup_dir(config, feature, shared=shared)
        if candidate.is_dir():
            return candidate
    return None
