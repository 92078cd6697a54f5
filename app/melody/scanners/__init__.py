"""Package scanners for Windows package managers.

This module exports the scanner classes for querying installed packages.
"""

from melody.models.package import PackageSource
from melody.scanners.base import Scanner
from melody.scanners.chocolatey import ChocolateyScanner
from melody.scanners.programs import InstalledProgramsScanner
from melody.scanners.scoop import ScoopScanner
from melody.scanners.store import StoreScanner
from melody.scanners.winget import WingetScanner

_SCANNERS: dict[PackageSource, type[Scanner]] = {
    PackageSource.WINGET: WingetScanner,
    PackageSource.CHOCOLATEY: ChocolateyScanner,
    PackageSource.SCOOP: ScoopScanner,
    PackageSource.STORE: StoreScanner,
}


def get_scanner(source: PackageSource) -> Scanner:
    """Create the scanner for a package source."""
    return _SCANNERS[source]()


def get_scanners() -> list[Scanner]:
    """Create one scanner per supported package source."""
    return [scanner_cls() for scanner_cls in _SCANNERS.values()]


__all__ = [
    "ChocolateyScanner",
    "InstalledProgramsScanner",
    "Scanner",
    "ScoopScanner",
    "StoreScanner",
    "WingetScanner",
    "get_scanner",
    "get_scanners",
]
