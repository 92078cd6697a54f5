"""Microsoft Store package scanner implementation."""

import json
import logging
from collections.abc import Iterator
from typing import Any

from melody.models.package import ManagedPackage, PackageSource
from melody.scanners.base import Scanner
from melody.utils.shell import powershell_executable, run_powershell

logger = logging.getLogger(__name__)

_LIST_SCRIPT = (
    "Get-AppxPackage | "
    "Where-Object { $_.SignatureKind -eq 'Store' -and -not $_.IsFramework } | "
    "Select-Object Name, PackageFamilyName, Version | "
    "ConvertTo-Json -Compress"
)


class StoreScanner(Scanner):
    """Scanner for Store-signed AppX packages (frameworks excluded)."""

    @property
    def source(self) -> PackageSource:
        """Return STORE as the package source."""
        return PackageSource.STORE

    def is_available(self) -> bool:
        """Check if PowerShell is available."""
        return powershell_executable() is not None

    def scan(self) -> Iterator[ManagedPackage]:
        """Scan Store apps via Get-AppxPackage.

        Yields:
            ManagedPackage with the package family name as id.

        Raises:
            RuntimeError: If PowerShell is missing, fails, or prints invalid JSON.
        """
        if not self.is_available():
            msg = "PowerShell is not available on this system"
            raise RuntimeError(msg)

        result = run_powershell(_LIST_SCRIPT, timeout=self._SCAN_TIMEOUT)
        if not result.success:
            msg = f"Get-AppxPackage failed: {result.error}"
            raise RuntimeError(msg)

        output = result.stdout.strip()
        if not output:
            return

        try:
            data: Any = json.loads(output)
        except json.JSONDecodeError as e:
            msg = f"Invalid JSON from Get-AppxPackage: {e}"
            raise RuntimeError(msg) from e

        # ConvertTo-Json emits a bare object for a single result
        entries = data if isinstance(data, list) else [data]
        for entry in entries:
            if not isinstance(entry, dict) or not entry.get("Name"):
                logger.debug("Skipping unexpected AppX entry: %r", entry)
                continue
            yield ManagedPackage(
                name=str(entry["Name"]),
                source=PackageSource.STORE,
                version=str(entry["Version"]) if entry.get("Version") else None,
                id=entry.get("PackageFamilyName") or None,
                origin="msstore",
            )
