"""Collectors for package manager inventories and Add/Remove Programs."""

import logging
from typing import Any

from melody.collectors.base import CollectionResult, Collector, CollectorContext
from melody.models.action import Action
from melody.models.feature import CollectorItem
from melody.models.outcome import Outcome, OutcomeKind
from melody.models.package import ManagedPackage, PackageSource
from melody.operators import get_operator
from melody.scanners import InstalledProgramsScanner, get_scanner

logger = logging.getLogger(__name__)


def _source(item: CollectorItem) -> PackageSource:
    try:
        return PackageSource(item.options.get("source", ""))
    except ValueError:
        valid = ", ".join(s.value for s in PackageSource)
        msg = f"Unknown package source {item.options.get('source')!r} (valid: {valid})"
        raise ValueError(msg) from None


class PackagesCollector(Collector):
    """Record packages of one package manager and reinstall them on restore.

    Options:
        source: winget, chocolatey, scoop or store (required).
        reinstall: Reinstall on restore (default True).
    """

    kind = "packages"
    restorable = True

    def is_available(self, item: CollectorItem) -> bool:
        return get_scanner(_source(item)).is_available()

    def collect(self, item: CollectorItem, context: CollectorContext) -> CollectionResult:
        source = _source(item)
        packages = sorted(get_scanner(source).scan(), key=lambda p: p.identifier.lower())
        return CollectionResult(
            data={"source": source.value, "packages": [p.to_dict() for p in packages]},
        )

    def restore(self, item: CollectorItem, data: Any, context: CollectorContext) -> list[Outcome]:
        source = _source(item)
        if not item.options.get("reinstall", True):
            return []
        if not isinstance(data, dict):
            return [Outcome.fail(item.name, OutcomeKind.PACKAGE, "Unexpected snapshot format")]

        operator = get_operator(source, dry_run=context.dry_run)
        if operator is None:
            reason = f"{source.value} reinstall not supported"
            return [Outcome.skip(item.name, OutcomeKind.PACKAGE, reason)]
        if not context.dry_run and not operator.is_available():
            return [Outcome.skip(item.name, OutcomeKind.PACKAGE, f"{source.value} not available")]

        actions: list[Action] = []
        for entry in data.get("packages", []):
            try:
                package = ManagedPackage.from_dict(entry)
            except (KeyError, TypeError, ValueError) as e:
                logger.debug("Skipping malformed package entry %r: %s", entry, e)
                continue
            actions.append(
                Action(package=package.identifier, source=source, version=package.version)
            )

        outcomes: list[Outcome] = []
        for result in operator.install(actions):
            name = f"{source.value}:{result.action.package}"
            if result.success:
                outcomes.append(Outcome.ok(name, OutcomeKind.PACKAGE, result.message))
            else:
                error = result.error or "install failed"
                outcomes.append(Outcome.fail(name, OutcomeKind.PACKAGE, error))
        return outcomes


class InstalledProgramsCollector(Collector):
    """Record everything listed in Add/Remove Programs."""

    kind = "installed_programs"

    def is_available(self, item: CollectorItem) -> bool:
        return InstalledProgramsScanner().is_available()

    def collect(self, item: CollectorItem, context: CollectorContext) -> CollectionResult:
        programs = InstalledProgramsScanner().scan()
        return CollectionResult(data=[p.to_dict() for p in programs])
