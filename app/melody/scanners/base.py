"""Abstract base class for package scanners.

This module defines the Scanner interface that all package manager
scanners must implement.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator

from melody.models.package import ManagedPackage, PackageSource


class Scanner(ABC):
    """Abstract base class for all package scanners.

    Scanners are responsible for querying a package manager
    and yielding information about installed packages.

    Example:
        >>> scanner = WingetScanner()
        >>> if scanner.is_available():
        ...     for pkg in scanner.scan():
        ...         print(f"{pkg.identifier}: {pkg.version}")
    """

    # Package managers that refresh sources on first use can be slow
    _SCAN_TIMEOUT: float = 180.0

    @property
    @abstractmethod
    def source(self) -> PackageSource:
        """Return the package source this scanner handles.

        Returns:
            PackageSource enum value.
        """

    @abstractmethod
    def scan(self) -> Iterator[ManagedPackage]:
        """Scan and yield all installed packages from this source.

        Yields:
            ManagedPackage instances for each installed package.

        Raises:
            RuntimeError: If the package manager is not available or fails.
        """

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this package manager is available on the system.

        Returns:
            True if the package manager can be used, False otherwise.
        """
