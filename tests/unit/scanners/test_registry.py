"""Unit tests for the scanner registry."""

from melody.models.package import PackageSource
from melody.scanners import (
    ChocolateyScanner,
    ScoopScanner,
    StoreScanner,
    WingetScanner,
    get_scanner,
    get_scanners,
)


class TestGetScanner:
    """Tests for scanner lookup."""

    def test_get_scanner(self) -> None:
        """Each source maps to its scanner class."""
        assert isinstance(get_scanner(PackageSource.WINGET), WingetScanner)
        assert isinstance(get_scanner(PackageSource.CHOCOLATEY), ChocolateyScanner)
        assert isinstance(get_scanner(PackageSource.SCOOP), ScoopScanner)
        assert isinstance(get_scanner(PackageSource.STORE), StoreScanner)

    def test_get_scanners(self) -> None:
        """One scanner per source is created."""
        assert {s.source for s in get_scanners()} == set(PackageSource)
