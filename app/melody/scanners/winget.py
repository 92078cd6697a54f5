"""Winget package scanner implementation.

``winget list`` prints a fixed-width table whose column widths depend on
the content, so rows are sliced at the offsets of the header words.
"""

import logging
import re
from collections.abc import Iterator

from melody.models.package import ManagedPackage, PackageSource
from melody.scanners.base import Scanner
from melody.utils.shell import command_exists, run_command

logger = logging.getLogger(__name__)

_SEPARATOR = re.compile(r"^-{10,}$")
_HEADER_WORD = re.compile(r"\S+")


def _clean_line(line: str) -> str:
    # Progress spinners are redrawn with carriage returns
    return line.rsplit("\r", 1)[-1].rstrip()


def parse_winget_table(output: str) -> list[dict[str, str]]:
    """Parse a ``winget list`` table into rows keyed by lowercased header.

    Args:
        output: Raw stdout of ``winget list``.

    Returns:
        One dictionary per data row, e.g. ``{"name": ..., "id": ..., "source": ...}``.
        Returns an empty list if no table header is found.
    """
    lines = [_clean_line(line) for line in output.splitlines()]

    separator_index = next(
        (i for i, line in enumerate(lines) if _SEPARATOR.match(line.strip())),
        None,
    )
    if separator_index is None or separator_index == 0:
        logger.debug("No table header found in winget output")
        return []

    header = lines[separator_index - 1]
    columns = [(m.group(0).lower(), m.start()) for m in _HEADER_WORD.finditer(header)]
    if not columns:
        return []

    rows: list[dict[str, str]] = []
    for line in lines[separator_index + 1 :]:
        if not line.strip():
            continue
        row: dict[str, str] = {}
        for index, (name, start) in enumerate(columns):
            end = columns[index + 1][1] if index + 1 < len(columns) else None
            row[name] = line[start:end].strip()
        rows.append(row)
    return rows


class WingetScanner(Scanner):
    """Scanner for packages installed through winget.

    Rows without a Source column value are Add/Remove Programs entries
    that winget merely recognizes; they are not managed and are skipped.
    """

    @property
    def source(self) -> PackageSource:
        """Return WINGET as the package source."""
        return PackageSource.WINGET

    def is_available(self) -> bool:
        """Check if winget is available."""
        return command_exists("winget")

    def scan(self) -> Iterator[ManagedPackage]:
        """Scan all packages winget installed or can upgrade.

        Yields:
            ManagedPackage for each row with a source.

        Raises:
            RuntimeError: If winget is not available or the command fails.
        """
        if not self.is_available():
            msg = "winget is not available on this system"
            raise RuntimeError(msg)

        result = run_command(
            ["winget", "list", "--accept-source-agreements"],
            timeout=self._SCAN_TIMEOUT,
        )
        if not result.success:
            msg = f"winget list failed: {result.error}"
            raise RuntimeError(msg)

        for row in parse_winget_table(result.stdout):
            package = self._parse_row(row)
            if package is not None:
                yield package

    def _parse_row(self, row: dict[str, str]) -> ManagedPackage | None:
        name = row.get("name", "")
        package_id = row.get("id", "")
        origin = row.get("source", "")

        if not name or not package_id:
            logger.debug("Skipping winget row without name/id: %r", row)
            return None
        if not origin:
            return None

        return ManagedPackage(
            name=name,
            source=PackageSource.WINGET,
            version=row.get("version") or None,
            id=package_id,
            origin=origin,
        )
