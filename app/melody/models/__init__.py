"""Data models for melody.

This module exports the core data structures used throughout the application.
"""

from melody.models.action import Action, ActionResult
from melody.models.feature import (
    CollectorItem,
    FeatureDefinition,
    FileItem,
    RegistryItem,
)
from melody.models.history import FeatureSummary, RunAction, RunRecord, create_run_record
from melody.models.outcome import FeatureResult, Outcome, OutcomeKind
from melody.models.package import InstalledProgram, ManagedPackage, PackageSource

__all__ = [
    "Action",
    "ActionResult",
    "CollectorItem",
    "FeatureDefinition",
    "FeatureResult",
    "FeatureSummary",
    "FileItem",
    "InstalledProgram",
    "ManagedPackage",
    "Outcome",
    "OutcomeKind",
    "PackageSource",
    "RegistryItem",
    "RunAction",
    "RunRecord",
    "create_run_record",
]
