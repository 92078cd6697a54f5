"""Chocolatey package scanner implementation.

Uses ``choco list --limit-output`` which prints ``name|version`` lines.
"""

import logging
from collections.abc import Iterator

from melody.models.package import ManagedPackage, PackageSource
from melody.scanners.base import Scanner
from melody.utils.shell import command_exists, run_command

logger = logging.getLogger(__name__)


class ChocolateyScanner(Scanner):
    """Scanner for Chocolatey packages."""

    @property
    def source(self) -> PackageSource:
        """Return CHOCOLATEY as the package source."""
        return PackageSource.CHOCOLATEY

    def is_available(self) -> bool:
        """Check if choco is available."""
        return command_exists("choco")

    def scan(self) -> Iterator[ManagedPackage]:
        """Scan all locally installed Chocolatey packages.

        Yields:
            ManagedPackage for each installed package.

        Raises:
            RuntimeError: If choco is not available or the command fails.
        """
        if not self.is_available():
            msg = "Chocolatey is not available on this system"
            raise RuntimeError(msg)

        result = run_command(["choco", "list", "--limit-output"], timeout=self._SCAN_TIMEOUT)
        if not result.success:
            msg = f"choco list failed: {result.error}"
            raise RuntimeError(msg)

        for line in result.stdout.splitlines():
            if not line.strip():
                continue
            package = self._parse_line(line)
            if package is not None:
                yield package

    def _parse_line(self, line: str) -> ManagedPackage | None:
        parts = line.strip().split("|")
        if len(parts) < 2 or not parts[0]:
            logger.debug("Skipping malformed choco line: %r", line[:100])
            return None

        return ManagedPackage(
            name=parts[0],
            source=PackageSource.CHOCOLATEY,
            version=parts[1] or None,
        )
