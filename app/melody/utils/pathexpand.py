"""Expansion of environment references in catalog paths.

Catalog entries use the same spellings people paste from Windows
documentation: ``%LOCALAPPDATA%``, PowerShell's ``$env:APPDATA`` and
``${VAR}``. Unknown variables are left in place, so the resulting path
simply does not exist and the item is skipped.
"""

import os
import re
from pathlib import Path

_PATTERN = re.compile(
    r"%(?P<percent>[A-Za-z_][A-Za-z0-9_()]*)%"
    r"|\$env:(?P<ps>[A-Za-z_][A-Za-z0-9_]*)"
    r"|\$\{(?P<brace>[A-Za-z_][A-Za-z0-9_]*)\}",
)


def _lookup(name: str) -> str | None:
    value = os.environ.get(name)
    if value is not None:
        return value
    # os.environ is only case-insensitive on Windows
    upper = name.upper()
    for key, val in os.environ.items():
        if key.upper() == upper:
            return val
    return None


def expand_vars(text: str) -> str:
    """Replace environment references in text.

    Args:
        text: String possibly containing ``%VAR%``, ``$env:VAR`` or ``${VAR}``.

    Returns:
        String with every known variable substituted.
    """

    def _replace(match: re.Match[str]) -> str:
        name = match.group("percent") or match.group("ps") or match.group("brace")
        value = _lookup(name)
        return value if value is not None else match.group(0)

    return _PATTERN.sub(_replace, text)


def expand_path(text: str) -> Path:
    """Expand environment references and a leading ``~`` into a Path."""
    return Path(os.path.expanduser(expand_vars(text)))


def slugify(name: str) -> str:
    """Turn an item name into a filesystem-safe slug.

    >>> slugify("Mouse Control Panel Settings")
    'mouse_control_panel_settings'
    """
    slug = re.sub(r"[^A-Za-z0-9]+", "_", name).strip("_").lower()
    return slug or "item"
