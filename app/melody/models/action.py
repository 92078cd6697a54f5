"""Action models for package reinstall operations."""

from dataclasses import dataclass

from melody.models.package import PackageSource


@dataclass(frozen=True, slots=True)
class Action:
    """A package to reinstall during restore.

    Attributes:
        package: Identifier passed to the package manager.
        source: Package manager that handles this package.
        version: Version recorded at backup time (informational).
    """

    package: str
    source: PackageSource
    version: str | None = None

    def __post_init__(self) -> None:
        """Validate action data after initialization."""
        if not self.package:
            msg = "Package name cannot be empty"
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class ActionResult:
    """Result of executing an install action.

    Attributes:
        action: The action that was executed.
        success: Whether the action completed successfully.
        message: Optional success message or additional information.
        error: Optional error message if the action failed.
    """

    action: Action
    success: bool
    message: str | None = None
    error: str | None = None

    @property
    def failed(self) -> bool:
        """Check if the action failed."""
        return not self.success
