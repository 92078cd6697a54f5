"""Collectors that record the output of system commands.

``command`` runs an executable (netsh, powercfg, dism, ...) and stores its
output lines. ``powershell`` runs a script and stores its JSON output,
which is how CIM queries, ``Get-Printer`` or ``Get-VpnConnection`` are
captured.
"""

import json
import logging
import subprocess
from typing import Any

from melody.collectors.base import CollectionResult, Collector, CollectorContext
from melody.models.feature import CollectorItem
from melody.utils.shell import command_exists, powershell_executable, run_command, run_powershell

logger = logging.getLogger(__name__)


class CommandCollector(Collector):
    """Run ``options.args`` and store stdout lines.

    Options:
        args: Command and arguments (required).
        env: Extra environment variables.
    """

    kind = "command"

    def is_available(self, item: CollectorItem) -> bool:
        args = item.options.get("args") or []
        return bool(args) and command_exists(str(args[0]))

    def collect(self, item: CollectorItem, context: CollectorContext) -> CollectionResult:
        args = [str(arg) for arg in item.options.get("args") or []]
        if not args:
            return CollectionResult(errors=["No command configured"])

        env = {str(k): str(v) for k, v in item.options.get("env", {}).items()}
        try:
            result = run_command(args, timeout=context.timeout, env=env or None)
        except subprocess.TimeoutExpired:
            return CollectionResult(errors=[f"{args[0]} timed out after {context.timeout:g}s"])

        # Some Windows tools write UTF-16 when redirected
        stdout = result.stdout.replace("\x00", "")
        data = {
            "command": args,
            "returncode": result.returncode,
            "lines": [line.rstrip() for line in stdout.splitlines() if line.strip()],
        }
        if not result.success:
            return CollectionResult(data=data, errors=[f"{args[0]} failed: {result.error}"])
        return CollectionResult(data=data)


class PowerShellCollector(Collector):
    """Run ``options.script`` and store its output.

    Options:
        script: PowerShell source (required).
        format: ``json`` (default) parses stdout, ``text`` stores lines.
    """

    kind = "powershell"

    def is_available(self, item: CollectorItem) -> bool:
        return powershell_executable() is not None

    def collect(self, item: CollectorItem, context: CollectorContext) -> CollectionResult:
        script = item.options.get("script")
        if not script:
            return CollectionResult(errors=["No script configured"])

        try:
            result = run_powershell(str(script), timeout=context.timeout)
        except subprocess.TimeoutExpired:
            return CollectionResult(errors=[f"PowerShell timed out after {context.timeout:g}s"])

        if not result.success:
            return CollectionResult(errors=[f"PowerShell failed: {result.error}"])

        output = result.stdout.strip()
        if item.options.get("format", "json") == "text":
            return CollectionResult(data=output.splitlines())

        if not output:
            return CollectionResult(data=[])
        try:
            data: Any = json.loads(output)
        except json.JSONDecodeError as e:
            logger.debug("PowerShell output for %s is not JSON: %r", item.name, output[:200])
            return CollectionResult(data=output.splitlines(), errors=[f"Invalid JSON output: {e}"])
        return CollectionResult(data=data)
