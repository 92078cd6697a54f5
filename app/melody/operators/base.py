"""Abstract base class for package operators.

This module defines the Operator interface that all package reinstall
operators must implement.
"""

import logging
import subprocess
from abc import ABC, abstractmethod

from melody.models.action import Action, ActionResult
from melody.models.package import PackageSource
from melody.utils.shell import CommandResult

logger = logging.getLogger(__name__)


class Operator(ABC):
    """Abstract base class for all package operators.

    Operators reinstall packages recorded at backup time. Each package is
    installed in its own command, so one failure does not abort the rest.

    Attributes:
        dry_run: If True, only simulate actions without executing them.

    Example:
        >>> operator = WingetOperator(dry_run=True)
        >>> if operator.is_available():
        ...     results = operator.install([Action("Git.Git", PackageSource.WINGET)])
        ...     for result in results:
        ...         print(f"{result.action.package}: {result.success}")
    """

    # Installers can take a long time (downloads, MSI execution)
    _INSTALL_TIMEOUT: float = 900.0

    def __init__(self, dry_run: bool = False) -> None:
        """Initialize the operator.

        Args:
            dry_run: If True, only simulate actions without executing them.
        """
        self._dry_run = dry_run

    @property
    def dry_run(self) -> bool:
        """Check if operator is in dry-run mode."""
        return self._dry_run

    @property
    @abstractmethod
    def source(self) -> PackageSource:
        """Return the package source this operator handles."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this package manager is available on the system."""

    @abstractmethod
    def _run_install(self, action: Action) -> CommandResult:
        """Run the package manager's install command for one package."""

    def install(self, packages: list[Action]) -> list[ActionResult]:
        """Install one or more packages.

        Args:
            packages: Actions describing the packages to install.

        Returns:
            List of ActionResult, one per package, in input order.

        Raises:
            RuntimeError: If the package manager is not available.
            ValueError: If an action's source doesn't match this operator.
        """
        if not packages:
            return []

        for action in packages:
            if action.source != self.source:
                msg = (
                    f"Action source {action.source.value} doesn't match "
                    f"operator source {self.source.value}"
                )
                raise ValueError(msg)

        if self.dry_run:
            return [self._dry_run_result(action) for action in packages]

        if not self.is_available():
            msg = f"{self.source.value} is not available on this system"
            raise RuntimeError(msg)

        return [self._install_single(action) for action in packages]

    def _dry_run_result(self, action: Action) -> ActionResult:
        logger.info("Dry-run: Would install %s package %s", self.source.value, action.package)
        return ActionResult(action=action, success=True, message="Dry-run: would install")

    def _install_single(self, action: Action) -> ActionResult:
        logger.info("Installing %s package: %s", self.source.value, action.package)
        try:
            result = self._run_install(action)
        except (OSError, subprocess.TimeoutExpired) as e:
            return ActionResult(action=action, success=False, error=str(e))
        return self._create_result(action, result)

    def _create_result(self, action: Action, result: CommandResult) -> ActionResult:
        """Create an ActionResult from a CommandResult."""
        if result.success:
            return ActionResult(action=action, success=True, message="Installed")

        logger.warning("Failed to install %s: %s", action.package, result.error)
        return ActionResult(action=action, success=False, error=result.error)
