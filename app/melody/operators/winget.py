"""Winget package operator implementation."""

from melody.models.action import Action
from melody.models.package import PackageSource
from melody.operators.base import Operator
from melody.utils.shell import CommandResult, command_exists, run_command

# winget exits with this code when the package is already installed
_ALREADY_INSTALLED = -1978335189


class WingetOperator(Operator):
    """Operator for winget packages, installed by exact id."""

    @property
    def source(self) -> PackageSource:
        """Return WINGET as the package source."""
        return PackageSource.WINGET

    def is_available(self) -> bool:
        """Check if winget is available."""
        return command_exists("winget")

    def _run_install(self, action: Action) -> CommandResult:
        args = [
            "winget",
            "install",
            "--id",
            action.package,
            "--exact",
            "--accept-source-agreements",
            "--accept-package-agreements",
            "--silent",
        ]
        result = run_command(args, timeout=self._INSTALL_TIMEOUT)
        if result.returncode == _ALREADY_INSTALLED:
            return CommandResult(stdout=result.stdout, stderr=result.stderr, returncode=0)
        return result
