"""Parser for ``reg query`` output.

reg.exe prints one block per key: the full key path on its own line,
followed by indented ``name    TYPE    data`` rows separated by four spaces.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

_VALUE_LINE = re.compile(r"^\s+(?P<name>.*?)\s{4}(?P<type>REG_[A-Z_]+)(?:\s{4}(?P<data>.*))?$")

_ROOT_PREFIXES = ("HKEY_", "HKLM\\", "HKCU\\", "HKCR\\", "HKU\\", "HKCC\\")


@dataclass(frozen=True, slots=True)
class RegistryValue:
    """A single registry value read from ``reg query``.

    Attributes:
        name: Value name; the unnamed value is reported as ``(Default)``.
        type: Registry type such as ``REG_SZ`` or ``REG_DWORD``.
        data: Parsed data (int for DWORD/QWORD, list for MULTI_SZ, str otherwise).
    """

    name: str
    type: str
    data: Any

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"type": self.type, "data": self.data}


def _convert(value_type: str, raw: str) -> Any:
    if value_type in ("REG_DWORD", "REG_QWORD"):
        try:
            return int(raw, 16) if raw.lower().startswith("0x") else int(raw)
        except ValueError:
            return raw
    if value_type == "REG_MULTI_SZ":
        return [part for part in raw.split("\\0") if part]
    return raw


def parse_query_output(output: str) -> dict[str, dict[str, RegistryValue]]:
    """Parse ``reg query`` output into a key -> values mapping.

    Args:
        output: Raw stdout of ``reg query <key> [/s]``.

    Returns:
        Dictionary keyed by full key path; each value is a dictionary of
        value name to RegistryValue. Keys without values map to ``{}``.
    """
    keys: dict[str, dict[str, RegistryValue]] = {}
    current: dict[str, RegistryValue] | None = None

    for line in output.splitlines():
        if not line.strip():
            continue

        if line.startswith(_ROOT_PREFIXES):
            current = keys.setdefault(line.strip(), {})
            continue

        match = _VALUE_LINE.match(line)
        if match is None:
            # "End of search: N match(es) found." and similar trailers
            logger.debug("Skipping unrecognized reg query line: %r", line[:100])
            continue
        if current is None:
            logger.debug("Value line before any key header: %r", line[:100])
            continue

        value_type = match.group("type")
        value = RegistryValue(
            name=match.group("name").strip(),
            type=value_type,
            data=_convert(value_type, (match.group("data") or "").strip()),
        )
        current[value.name] = value

    return keys


def values_to_dict(keys: dict[str, dict[str, RegistryValue]]) -> dict[str, Any]:
    """Convert parsed query output to plain JSON-serializable data."""
    return {
        key: {name: value.to_dict() for name, value in values.items()}
        for key, values in keys.items()
    }
