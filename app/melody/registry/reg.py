"""Thin wrappers around reg.exe subcommands."""

import logging
from pathlib import Path

from melody.registry.keys import normalize_key
from melody.registry.query import RegistryValue, parse_query_output
from melody.utils.shell import CommandResult, command_exists, run_command

logger = logging.getLogger(__name__)

# reg export of large hives (e.g. Uninstall trees) can take a while
_REG_TIMEOUT: float = 120.0


def is_available() -> bool:
    """Check if reg.exe is available."""
    return command_exists("reg")


def key_exists(key: str) -> bool:
    """Check whether a registry key exists.

    Args:
        key: Key path in any supported notation.

    Returns:
        True if ``reg query`` succeeds for the key.
    """
    result = run_command(["reg", "query", normalize_key(key)], timeout=_REG_TIMEOUT)
    return result.success


def export_key(key: str, dest: Path) -> CommandResult:
    """Export a key subtree to a .reg file, overwriting dest.

    Args:
        key: Key path in any supported notation.
        dest: Destination .reg file path.

    Returns:
        CommandResult of reg export.
    """
    normalized = normalize_key(key)
    logger.debug("Exporting registry key %s to %s", normalized, dest)
    return run_command(["reg", "export", normalized, str(dest), "/y"], timeout=_REG_TIMEOUT)


def import_file(path: Path) -> CommandResult:
    """Import a .reg file into the registry.

    Args:
        path: Path to a .reg file produced by :func:`export_key`.

    Returns:
        CommandResult of reg import.
    """
    logger.debug("Importing registry file %s", path)
    return run_command(["reg", "import", str(path)], timeout=_REG_TIMEOUT)


def query_key(key: str, *, recursive: bool = False) -> dict[str, dict[str, RegistryValue]]:
    """Read values of a key (and optionally its subkeys).

    Args:
        key: Key path in any supported notation.
        recursive: If True, pass ``/s`` to include all subkeys.

    Returns:
        Parsed output as returned by :func:`parse_query_output`.

    Raises:
        RuntimeError: If reg query fails (e.g. the key does not exist).
    """
    args = ["reg", "query", normalize_key(key)]
    if recursive:
        args.append("/s")

    result = run_command(args, timeout=_REG_TIMEOUT)
    if not result.success:
        msg = f"reg query failed for {key}: {result.error}"
        raise RuntimeError(msg)

    return parse_query_output(result.stdout)
