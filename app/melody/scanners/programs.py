"""Add/Remove Programs inventory from the Uninstall registry keys."""

import logging

from melody.models.package import InstalledProgram
from melody.registry import RegistryValue, is_available, query_key

logger = logging.getLogger(__name__)

UNINSTALL_ROOTS: tuple[str, ...] = (
    r"HKLM\SOFTWARE\Microsoft\Windows\CurrentVersion\Uninstall",
    r"HKLM\SOFTWARE\WOW6432Node\Microsoft\Windows\CurrentVersion\Uninstall",
    r"HKCU\SOFTWARE\Microsoft\Windows\CurrentVersion\Uninstall",
)


def _text(values: dict[str, RegistryValue], name: str) -> str | None:
    value = values.get(name)
    if value is None or value.data in ("", None):
        return None
    return str(value.data)


class InstalledProgramsScanner:
    """Scanner for programs registered under the Uninstall keys.

    Entries hidden from Add/Remove Programs (``SystemComponent=1``) and
    updates of another entry (``ParentKeyName``) are skipped. Entries are
    deduplicated by DisplayName, first root wins.
    """

    def __init__(self, roots: tuple[str, ...] = UNINSTALL_ROOTS) -> None:
        self._roots = roots

    def is_available(self) -> bool:
        """Check if reg.exe is available."""
        return is_available()

    def scan(self) -> list[InstalledProgram]:
        """Read all Uninstall roots.

        Returns:
            Programs sorted by name (case-insensitive).

        Raises:
            RuntimeError: If reg.exe is not available.
        """
        if not self.is_available():
            msg = "reg.exe is not available on this system"
            raise RuntimeError(msg)

        programs: dict[str, InstalledProgram] = {}
        for root in self._roots:
            try:
                keys = query_key(root, recursive=True)
            except RuntimeError as e:
                # WOW6432Node does not exist on 32-bit Windows
                logger.debug("Skipping uninstall root %s: %s", root, e)
                continue

            for key, values in keys.items():
                program = self._parse_entry(key, values)
                if program is None:
                    continue
                programs.setdefault(program.name.lower(), program)

        return sorted(programs.values(), key=lambda p: p.name.lower())

    def _parse_entry(self, key: str, values: dict[str, RegistryValue]) -> InstalledProgram | None:
        name = _text(values, "DisplayName")
        if name is None:
            return None

        system_component = values.get("SystemComponent")
        if system_component is not None and system_component.data == 1:
            return None
        if "ParentKeyName" in values:
            return None

        return InstalledProgram(
            name=name.strip(),
            version=_text(values, "DisplayVersion"),
            publisher=_text(values, "Publisher"),
            install_location=_text(values, "InstallLocation"),
            uninstall_key=key,
        )
