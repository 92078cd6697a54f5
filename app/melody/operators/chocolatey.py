"""Chocolatey package operator implementation."""

from melody.models.action import Action
from melody.models.package import PackageSource
from melody.operators.base import Operator
from melody.utils.shell import CommandResult, command_exists, run_command


class ChocolateyOperator(Operator):
    """Operator for Chocolatey packages. Requires an elevated shell."""

    @property
    def source(self) -> PackageSource:
        """Return CHOCOLATEY as the package source."""
        return PackageSource.CHOCOLATEY

    def is_available(self) -> bool:
        """Check if choco is available."""
        return command_exists("choco")

    def _run_install(self, action: Action) -> CommandResult:
        args = ["choco", "install", action.package, "-y", "--no-progress"]
        return run_command(args, timeout=self._INSTALL_TIMEOUT)
