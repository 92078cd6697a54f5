"""Configuration loading and saving.

The configuration is read once per invocation from ``config.toml`` (see
:func:`melody.core.paths.get_config_path`), overlaid with ``MELODY_*``
environment variables and CLI overrides, and then passed explicitly to the
executors. :class:`MelodyConfig` is frozen; overrides produce a new copy.
"""

import os
import socket
import tomllib
from pathlib import Path
from typing import Annotated, Any

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from melody.core.paths import get_config_path

ENV_BACKUP_ROOT = "MELODY_BACKUP_ROOT"
ENV_MACHINE_NAME = "MELODY_MACHINE_NAME"
ENV_SHARED_PATH = "MELODY_SHARED_PATH"


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigParseError(ConfigError):
    """Raised when the configuration file is not valid TOML."""


class ConfigValidationError(ConfigError):
    """Raised when configuration values are invalid."""


def _default_backup_root() -> Path:
    return Path.home() / "Backups" / "WindowsMelodyRecovery"


def _default_machine_name() -> str:
    return os.environ.get("COMPUTERNAME") or socket.gethostname() or "localhost"


class MelodyConfig(BaseModel):
    """Settings for a backup or restore run.

    Attributes:
        backup_root: Root directory holding per-machine backups.
        machine_name: Name of the machine subdirectory under backup_root.
        shared_path: Directory with backups shared across machines.
            Defaults to ``<backup_root>/shared``.
        features: Features selected when none are given on the command line.
            Empty means all catalog features.
        command_timeout: Timeout in seconds for each external command.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    backup_root: Annotated[
        Path,
        Field(default_factory=_default_backup_root, description="Backup root directory"),
    ]
    machine_name: Annotated[
        str,
        Field(default_factory=_default_machine_name, min_length=1, description="Machine name"),
    ]
    shared_path: Annotated[Path | None, Field(description="Shared backup directory")] = None
    features: Annotated[list[str], Field(default_factory=list, description="Default features")]
    command_timeout: Annotated[float, Field(gt=0, description="Command timeout (s)")] = 120.0

    @property
    def effective_shared_path(self) -> Path:
        """Shared backup directory with the default applied."""
        return self.shared_path if self.shared_path is not None else self.backup_root / "shared"

    def with_overrides(self, **overrides: Any) -> "MelodyConfig":
        """Return a copy with the given non-None values replaced.

        Raises:
            ConfigValidationError: If an override is invalid.
        """
        values = {key: value for key, value in overrides.items() if value is not None}
        if not values:
            return self
        try:
            return MelodyConfig.model_validate({**self.model_dump(), **values})
        except ValidationError as e:
            raise ConfigValidationError(f"Invalid configuration override: {e}") from e


def _env_overrides() -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if value := os.environ.get(ENV_BACKUP_ROOT):
        overrides["backup_root"] = value
    if value := os.environ.get(ENV_MACHINE_NAME):
        overrides["machine_name"] = value
    if value := os.environ.get(ENV_SHARED_PATH):
        overrides["shared_path"] = value
    return overrides


def load_config(path: Path | None = None) -> MelodyConfig:
    """Load configuration from TOML and the environment.

    A missing file is not an error; defaults are used.

    Args:
        path: Configuration file path. If None, uses the default path.

    Returns:
        Validated, frozen MelodyConfig.

    Raises:
        ConfigParseError: If the TOML syntax is invalid.
        ConfigValidationError: If values don't match the schema.
        ConfigError: If the file cannot be read.
    """
    config_path = path or get_config_path()

    data: dict[str, Any] = {}
    if config_path.exists():
        try:
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigParseError(f"Invalid TOML syntax in {config_path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to read config {config_path}: {e}") from e

    data.update(_env_overrides())

    try:
        return MelodyConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigValidationError(f"Invalid configuration: {e}") from e


def save_config(config: MelodyConfig, path: Path | None = None) -> Path:
    """Save configuration to a TOML file atomically.

    Args:
        config: Configuration to save.
        path: Destination path. If None, uses the default path.

    Returns:
        Path where the configuration was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    from tempfile import NamedTemporaryFile

    config_path = path or get_config_path()
    data = config_to_dict(config)

    tmp_path: Path | None = None
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write config: {e}") from e

    return config_path


def config_to_dict(config: MelodyConfig) -> dict[str, Any]:
    """Convert a configuration to a TOML-serializable dictionary."""
    data: dict[str, Any] = {
        "backup_root": str(config.backup_root),
        "machine_name": config.machine_name,
        "command_timeout": config.command_timeout,
        "features": list(config.features),
    }
    if config.shared_path is not None:
        data["shared_path"] = str(config.shared_path)
    return data
