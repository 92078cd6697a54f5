"""Package models for application inventory.

Distinguishes software tracked by a package manager (:class:`ManagedPackage`)
from everything registered in Add/Remove Programs (:class:`InstalledProgram`).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class PackageSource(Enum):
    """Enumeration of supported package managers."""

    WINGET = "winget"
    CHOCOLATEY = "chocolatey"
    SCOOP = "scoop"
    STORE = "store"


@dataclass(frozen=True, slots=True)
class ManagedPackage:
    """A package reported by a package manager.

    Attributes:
        name: Display name (e.g., 'Google Chrome', '7zip').
        source: Package manager that tracks this package.
        version: Installed version string, if reported.
        id: Package identifier used for reinstall (e.g., 'Google.Chrome').
            Defaults to the name for managers without separate ids.
        origin: Repository/bucket the package came from (e.g., 'winget', 'main').
    """

    name: str
    source: PackageSource
    version: str | None = field(default=None)
    id: str | None = field(default=None)
    origin: str | None = field(default=None)

    def __post_init__(self) -> None:
        """Validate package data after initialization."""
        if not self.name:
            msg = "Package name cannot be empty"
            raise ValueError(msg)

    @property
    def identifier(self) -> str:
        """Identifier passed to the package manager on reinstall."""
        return self.id or self.name

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "id": self.identifier,
            "version": self.version,
            "source": self.source.value,
            "origin": self.origin,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ManagedPackage":
        """Deserialize from a dictionary written by :meth:`to_dict`.

        Raises:
            KeyError: If name or source is missing.
            ValueError: If source is unknown.
        """
        return cls(
            name=data["name"],
            source=PackageSource(data["source"]),
            version=data.get("version"),
            id=data.get("id"),
            origin=data.get("origin"),
        )


@dataclass(frozen=True, slots=True)
class InstalledProgram:
    """A program registered under one of the Uninstall registry keys.

    Attributes:
        name: DisplayName value.
        version: DisplayVersion value.
        publisher: Publisher value.
        install_location: InstallLocation value.
        uninstall_key: Full registry key the entry was read from.
    """

    name: str
    version: str | None = None
    publisher: str | None = None
    install_location: str | None = None
    uninstall_key: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "version": self.version,
            "publisher": self.publisher,
            "install_location": self.install_location,
            "uninstall_key": self.uninstall_key,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InstalledProgram":
        """Deserialize from a dictionary written by :meth:`to_dict`."""
        return cls(
            name=data["name"],
            version=data.get("version"),
            publisher=data.get("publisher"),
            install_location=data.get("install_location"),
            uninstall_key=data.get("uninstall_key"),
        )
