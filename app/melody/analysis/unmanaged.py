"""Detection of applications no package manager can reinstall.

A program listed in Add/Remove Programs counts as *managed* when its name
fuzzily matches a package reported by winget, Chocolatey, Scoop or the
Store. Everything else has to be reinstalled by hand after a restore.
"""

import re
from collections.abc import Iterable, Sequence

from melody.models.package import InstalledProgram, ManagedPackage

# Shorter names produce too many accidental substring hits
MIN_CONTAINMENT_LENGTH = 3

_NOISE_PATTERNS = (
    re.compile(r"\((?:x64|x86|64-bit|32-bit|64 bit|32 bit)\)", re.IGNORECASE),
    re.compile(r"\b(?:64-bit|32-bit|x64|x86)\b", re.IGNORECASE),
    re.compile(r"[®™©]"),
    re.compile(r"\(\s*\)"),
)
_WHITESPACE = re.compile(r"\s+")


def normalize_name(name: str) -> str:
    """Normalize an application name for comparison.

    Lowercases, strips bitness markers and trademark symbols, and collapses
    whitespace.

    >>> normalize_name("Mozilla Firefox (x64)  ®")
    'mozilla firefox'
    """
    text = name
    for pattern in _NOISE_PATTERNS:
        text = pattern.sub(" ", text)
    return _WHITESPACE.sub(" ", text).strip().lower()


def is_match(a: str, b: str) -> bool:
    """Check whether two application names refer to the same product.

    Names match when their normalized forms are equal, or when one contains
    the other and both are longer than :data:`MIN_CONTAINMENT_LENGTH`.
    """
    left = normalize_name(a)
    right = normalize_name(b)
    if not left or not right:
        return False
    if left == right:
        return True
    if len(left) > MIN_CONTAINMENT_LENGTH and len(right) > MIN_CONTAINMENT_LENGTH:
        return left in right or right in left
    return False


def _candidate_names(package: ManagedPackage) -> tuple[str, ...]:
    if package.id and package.id != package.name:
        return (package.name, package.id)
    return (package.name,)


def find_unmanaged(
    installed: Iterable[InstalledProgram],
    managed: Sequence[ManagedPackage],
) -> list[InstalledProgram]:
    """Return installed programs that match no managed package.

    Args:
        installed: Programs from the Uninstall registry keys.
        managed: Packages reported by all available package managers.

    Returns:
        Unmatched programs in their original order.
    """
    names = [name for package in managed for name in _candidate_names(package)]
    return [
        program
        for program in installed
        if not any(is_match(program.name, name) for name in names)
    ]


def compare_after_restore(
    unmanaged: Iterable[InstalledProgram],
    installed: Sequence[InstalledProgram],
) -> tuple[list[InstalledProgram], list[InstalledProgram]]:
    """Check which previously unmanaged programs are present again.

    Args:
        unmanaged: Unmanaged programs recorded at backup time.
        installed: Programs installed on the system now.

    Returns:
        Tuple of (now_installed, still_missing).
    """
    now_installed: list[InstalledProgram] = []
    still_missing: list[InstalledProgram] = []
    for program in unmanaged:
        if any(is_match(program.name, current.name) for current in installed):
            now_installed.append(program)
        else:
            still_missing.append(program)
    return now_installed, still_missing
