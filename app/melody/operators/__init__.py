"""Package operators for reinstalling packages during restore.

This module provides the abstract Operator and one implementation per
package manager that supports unattended installs.
"""

from melody.models.package import PackageSource
from melody.operators.base import Operator
from melody.operators.chocolatey import ChocolateyOperator
from melody.operators.scoop import ScoopOperator
from melody.operators.winget import WingetOperator

_OPERATORS: dict[PackageSource, type[Operator]] = {
    PackageSource.WINGET: WingetOperator,
    PackageSource.CHOCOLATEY: ChocolateyOperator,
    PackageSource.SCOOP: ScoopOperator,
}


def get_operator(source: PackageSource, *, dry_run: bool = False) -> Operator | None:
    """Create the operator for a package source.

    Returns:
        Operator instance, or None if the source cannot be reinstalled
        unattended (e.g. Store apps).
    """
    operator_cls = _OPERATORS.get(source)
    if operator_cls is None:
        return None
    return operator_cls(dry_run=dry_run)


__all__ = [
    "ChocolateyOperator",
    "Operator",
    "ScoopOperator",
    "WingetOperator",
    "get_operator",
]
