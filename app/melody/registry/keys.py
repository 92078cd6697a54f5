"""Registry key path normalization.

Catalog files spell keys the PowerShell way (``HKCU:\\Control Panel\\Mouse``,
``HKLM:/SOFTWARE/OpenSSH``) or the reg.exe way
(``HKEY_CURRENT_USER\\Control Panel\\Mouse``). reg.exe only accepts the
latter family, so every key is normalized before use.
"""

import re


class RegistryError(ValueError):
    """Raised for invalid registry key paths."""


# Long and short hive names mapped to the short form reg.exe accepts
HIVES: dict[str, str] = {
    "HKEY_LOCAL_MACHINE": "HKLM",
    "HKLM": "HKLM",
    "HKEY_CURRENT_USER": "HKCU",
    "HKCU": "HKCU",
    "HKEY_CLASSES_ROOT": "HKCR",
    "HKCR": "HKCR",
    "HKEY_USERS": "HKU",
    "HKU": "HKU",
    "HKEY_CURRENT_CONFIG": "HKCC",
    "HKCC": "HKCC",
}

_PROVIDER_PREFIX = re.compile(r"^(?:Microsoft\.PowerShell\.Core\\)?Registry::", re.IGNORECASE)


def normalize_key(path: str) -> str:
    """Normalize a registry key path for reg.exe.

    Args:
        path: Key path in PowerShell or reg.exe notation.

    Returns:
        Key path with a short hive name and single backslash separators,
        e.g. ``HKCU\\Control Panel\\Mouse``.

    Raises:
        RegistryError: If the path is empty or the hive is unknown.
    """
    text = _PROVIDER_PREFIX.sub("", path.strip()).replace("/", "\\")
    parts = [part for part in text.split("\\") if part]
    if not parts:
        msg = "Registry key path cannot be empty"
        raise RegistryError(msg)

    hive_token = parts[0].rstrip(":").upper()
    hive = HIVES.get(hive_token)
    if hive is None:
        msg = f"Unknown registry hive in key path: {path!r}"
        raise RegistryError(msg)

    return "\\".join([hive, *parts[1:]])
