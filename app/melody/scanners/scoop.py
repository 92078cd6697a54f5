"""Scoop package scanner implementation.

``scoop list`` returns PowerShell objects, so the listing is flattened to
``Name|Version|Source`` lines inside PowerShell before parsing.
"""

import logging
from collections.abc import Iterator

from melody.models.package import ManagedPackage, PackageSource
from melody.scanners.base import Scanner
from melody.utils.shell import command_exists, powershell_executable, run_powershell

logger = logging.getLogger(__name__)

_LIST_SCRIPT = 'scoop list | ForEach-Object { "$($_.Name)|$($_.Version)|$($_.Source)" }'


class ScoopScanner(Scanner):
    """Scanner for Scoop apps."""

    @property
    def source(self) -> PackageSource:
        """Return SCOOP as the package source."""
        return PackageSource.SCOOP

    def is_available(self) -> bool:
        """Check if scoop and PowerShell are available."""
        return command_exists("scoop") and powershell_executable() is not None

    def scan(self) -> Iterator[ManagedPackage]:
        """Scan all installed Scoop apps.

        Yields:
            ManagedPackage for each app, with the bucket as origin.

        Raises:
            RuntimeError: If scoop is not available or the command fails.
        """
        if not self.is_available():
            msg = "Scoop is not available on this system"
            raise RuntimeError(msg)

        result = run_powershell(_LIST_SCRIPT, timeout=self._SCAN_TIMEOUT)
        if not result.success:
            msg = f"scoop list failed: {result.error}"
            raise RuntimeError(msg)

        for line in result.stdout.splitlines():
            if "|" not in line:
                continue
            name, _, rest = line.strip().partition("|")
            version, _, bucket = rest.partition("|")
            if not name:
                logger.debug("Skipping scoop line without name: %r", line[:100])
                continue
            yield ManagedPackage(
                name=name,
                source=PackageSource.SCOOP,
                version=version or None,
                origin=bucket or None,
            )
