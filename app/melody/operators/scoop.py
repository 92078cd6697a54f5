"""Scoop package operator implementation."""

from melody.models.action import Action
from melody.models.package import PackageSource
from melody.operators.base import Operator
from melody.utils.shell import CommandResult, command_exists, powershell_executable, run_powershell


class ScoopOperator(Operator):
    """Operator for Scoop apps.

    Scoop is a PowerShell module, so installs run through PowerShell.
    """

    @property
    def source(self) -> PackageSource:
        """Return SCOOP as the package source."""
        return PackageSource.SCOOP

    def is_available(self) -> bool:
        """Check if scoop and PowerShell are available."""
        return command_exists("scoop") and powershell_executable() is not None

    def _run_install(self, action: Action) -> CommandResult:
        # Quote for PowerShell; bucket-qualified names like extras/vlc are allowed
        name = action.package.replace("'", "''")
        return run_powershell(f"scoop install '{name}'", timeout=self._INSTALL_TIMEOUT)
