"""WSL distribution and package collectors.

``wsl.exe`` writes UTF-16 unless ``WSL_UTF8=1`` is set; stray NUL
characters are stripped either way before parsing.
"""

import logging
import re
import subprocess
from dataclasses import dataclass
from typing import Any

from melody.collectors.base import CollectionResult, Collector, CollectorContext
from melody.models.feature import CollectorItem
from melody.models.outcome import Outcome, OutcomeKind
from melody.utils.shell import CommandResult, command_exists, run_command

logger = logging.getLogger(__name__)

_WSL_ENV = {"WSL_UTF8": "1"}

_DISTRO_LINE = re.compile(
    r"^\s*(\*?)\s*(.+?)\s+(Running|Stopped|Installing|Converting|Uninstalling)\s+(\d+)\s*$"
)

# Distributions managed by Docker Desktop have no user packages
_IGNORED_PREFIXES = ("docker-desktop",)

# Ordered by preference; the first manager found in a distribution is used
PACKAGE_MANAGERS: dict[str, str] = {
    "dpkg-query": "dpkg-query -W -f='${Package}\\t${Version}\\n'",
    "pacman": "pacman -Q",
    "apk": "apk list --installed",
    "rpm": "rpm -qa --qf '%{NAME}\\t%{VERSION}-%{RELEASE}\\n'",
}

_DETECT_SCRIPT = (
    "for m in " + " ".join(PACKAGE_MANAGERS) + "; do "
    "command -v $m >/dev/null 2>&1 && echo $m && break; done"
)

_APK_LINE = re.compile(r"^(?P<name>.+?)-(?P<version>\d[^\s]*-r\d+)\s")


@dataclass(frozen=True, slots=True)
class Distribution:
    """A WSL distribution as listed by ``wsl --list --verbose``."""

    name: str
    state: str
    version: int
    default: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "state": self.state,
            "version": self.version,
            "default": self.default,
        }


def _run_wsl(args: list[str], timeout: float) -> CommandResult:
    result = run_command(["wsl", *args], timeout=timeout, env=_WSL_ENV)
    return CommandResult(
        stdout=result.stdout.replace("\x00", ""),
        stderr=result.stderr.replace("\x00", ""),
        returncode=result.returncode,
    )


def parse_distributions(output: str) -> list[Distribution]:
    """Parse ``wsl --list --verbose`` output.

    Args:
        output: Command output with NUL characters already removed.

    Returns:
        Distributions in listed order; the header line is ignored.
    """
    distributions: list[Distribution] = []
    for line in output.replace("\x00", "").splitlines():
        match = _DISTRO_LINE.match(line)
        if match is None:
            continue
        marker, name, state, version = match.groups()
        distributions.append(
            Distribution(name=name, state=state, version=int(version), default=marker == "*")
        )
    return distributions


def list_distributions(timeout: float = 60.0) -> list[Distribution]:
    """List installed WSL distributions.

    Raises:
        RuntimeError: If wsl.exe fails.
    """
    result = _run_wsl(["--list", "--verbose"], timeout)
    if not result.success:
        # wsl.exe exits non-zero when no distribution is installed
        if "no installed distributions" in result.error.lower():
            return []
        msg = f"wsl --list failed: {result.error}"
        raise RuntimeError(msg)
    return parse_distributions(result.stdout)


def parse_package_lines(manager: str, output: str) -> list[dict[str, str]]:
    """Parse the package listing of one package manager.

    Returns:
        ``{"name": ..., "version": ...}`` entries; unparseable lines are dropped.
    """
    packages: list[dict[str, str]] = []
    for line in output.splitlines():
        line = line.strip()
        if not line:
            continue
        if manager == "apk":
            match = _APK_LINE.match(line)
            if match is None:
                logger.debug("Skipping apk line: %r", line[:100])
                continue
            packages.append({"name": match.group("name"), "version": match.group("version")})
            continue
        name, _, version = line.replace("\t", " ").partition(" ")
        packages.append({"name": name, "version": version.strip()})
    return packages


class WslDistributionsCollector(Collector):
    """Record installed distributions and report missing ones on restore."""

    kind = "wsl_distributions"

    def is_available(self, item: CollectorItem) -> bool:
        return command_exists("wsl")

    def collect(self, item: CollectorItem, context: CollectorContext) -> CollectionResult:
        distributions = list_distributions(context.timeout)
        return CollectionResult(data=[d.to_dict() for d in distributions])

    def restore(self, item: CollectorItem, data: Any, context: CollectorContext) -> list[Outcome]:
        if not command_exists("wsl"):
            return []
        try:
            present = {d.name.lower() for d in list_distributions(context.timeout)}
        except (RuntimeError, subprocess.TimeoutExpired) as e:
            logger.warning("Could not list WSL distributions: %s", e)
            return []

        outcomes: list[Outcome] = []
        for entry in data or []:
            name = entry.get("name") if isinstance(entry, dict) else None
            if not name or name.lower() in present:
                continue
            outcomes.append(
                Outcome.skip(f"wsl:{name}", OutcomeKind.COLLECTOR, f"run: wsl --install -d {name}")
            )
        return outcomes


class WslPackagesCollector(Collector):
    """Record the packages installed in each distribution.

    Options:
        distributions: Names to include (default: all except Docker Desktop's).
    """

    kind = "wsl_packages"

    def is_available(self, item: CollectorItem) -> bool:
        return command_exists("wsl")

    def collect(self, item: CollectorItem, context: CollectorContext) -> CollectionResult:
        wanted = {str(name).lower() for name in item.options.get("distributions", [])}
        data: dict[str, Any] = {}
        errors: list[str] = []

        for distribution in list_distributions(context.timeout):
            if distribution.name.lower().startswith(_IGNORED_PREFIXES):
                continue
            if wanted and distribution.name.lower() not in wanted:
                continue
            try:
                data[distribution.name] = self._collect_distribution(distribution.name, context)
            except (RuntimeError, subprocess.TimeoutExpired) as e:
                errors.append(f"{distribution.name}: {e}")

        if not data and not errors:
            return CollectionResult.skipped("No WSL distributions installed")
        return CollectionResult(data=data, errors=errors)

    def _collect_distribution(self, name: str, context: CollectorContext) -> dict[str, Any]:
        detect = _run_wsl(["-d", name, "--", "sh", "-c", _DETECT_SCRIPT], context.timeout)
        manager = detect.stdout.strip().splitlines()[-1] if detect.stdout.strip() else ""
        if manager not in PACKAGE_MANAGERS:
            logger.debug("No known package manager in %s", name)
            return {"manager": None, "packages": []}

        listing = PACKAGE_MANAGERS[manager]
        result = _run_wsl(["-d", name, "--", "sh", "-c", listing], context.timeout)
        if not result.success:
            msg = f"{manager} listing failed: {result.error}"
            raise RuntimeError(msg)
        return {"manager": manager, "packages": parse_package_lines(manager, result.stdout)}
