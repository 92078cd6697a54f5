"""Shell execution utilities.

Every external tool (reg.exe, winget, choco, wsl, PowerShell, ...) is
invoked through :func:`run_command` so callers always get a structured
:class:`CommandResult` back.
"""

import os
import shutil
import subprocess
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result of a shell command execution.

    Attributes:
        stdout: Standard output from the command.
        stderr: Standard error from the command.
        returncode: Exit code of the command.
    """

    stdout: str
    stderr: str
    returncode: int

    @property
    def success(self) -> bool:
        """Check if command executed successfully."""
        return self.returncode == 0

    @property
    def error(self) -> str:
        """Best available error text for a failed command."""
        return self.stderr.strip() or self.stdout.strip() or f"exit code {self.returncode}"


def run_command(
    args: list[str],
    *,
    check: bool = False,
    timeout: float | None = 60.0,
    cwd: str | None = None,
    env: dict[str, str] | None = None,
) -> CommandResult:
    """Execute a command and return the result.

    Args:
        args: Command and arguments to execute.
        check: If True, raise CalledProcessError on non-zero exit.
        timeout: Maximum time in seconds to wait for command.
        cwd: Working directory for the command. If None, uses current directory.
        env: Additional environment variables (merged with current env).

    Returns:
        CommandResult with stdout, stderr, and returncode.

    Raises:
        subprocess.CalledProcessError: If check=True and command fails.
        subprocess.TimeoutExpired: If command exceeds timeout.
        FileNotFoundError: If command executable is not found.
    """
    full_env = {**os.environ, **env} if env else None
    result = subprocess.run(
        args,
        capture_output=True,
        text=True,
        encoding="utf-8",
        errors="replace",
        check=check,
        timeout=timeout,
        cwd=cwd,
        env=full_env,
    )
    return CommandResult(
        stdout=result.stdout or "",
        stderr=result.stderr or "",
        returncode=result.returncode,
    )


def command_exists(name: str) -> bool:
    """Check if a command exists in the system PATH.

    Args:
        name: Command name to check.

    Returns:
        True if command exists, False otherwise.
    """
    return shutil.which(name) is not None


def powershell_executable() -> str | None:
    """Return the PowerShell executable to use, preferring PowerShell 7."""
    for name in ("pwsh", "powershell"):
        if command_exists(name):
            return name
    return None


def run_powershell(script: str, *, timeout: float | None = 120.0) -> CommandResult:
    """Run an inline PowerShell script.

    Args:
        script: PowerShell source passed to ``-Command``.
        timeout: Maximum time in seconds to wait.

    Returns:
        CommandResult of the PowerShell process.

    Raises:
        FileNotFoundError: If neither pwsh nor powershell is installed.
        subprocess.TimeoutExpired: If the script exceeds timeout.
    """
    executable = powershell_executable()
    if executable is None:
        msg = "PowerShell is not available on this system"
        raise FileNotFoundError(msg)

    return run_command(
        [
            executable,
            "-NoProfile",
            "-NonInteractive",
            "-ExecutionPolicy",
            "Bypass",
            "-Command",
            script,
        ],
        timeout=timeout,
    )
