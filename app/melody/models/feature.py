"""Feature definition models for the declarative backup catalog.

Each ``data/features/*.toml`` file describes one feature: the registry
keys to export, the files to copy and the collectors to run. The models
below validate that structure.
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from melody.registry.keys import normalize_key
from melody.utils.pathexpand import slugify

CollectorKind = Literal[
    "registry_values",
    "command",
    "powershell",
    "packages",
    "installed_programs",
    "wsl_distributions",
    "wsl_packages",
    "steam_games",
    "epic_games",
    "gog_games",
    "unmanaged_apps",
]

FileType = Literal["file", "directory"]


def _check_key(key: str) -> str:
    normalize_key(key)
    return key


def _check_file_name(name: str | None) -> str | None:
    """Reject names that would leave the backup directory."""
    if name is None:
        return None
    if name in {".", ".."} or any(sep in name for sep in ("/", "\\", ":")):
        msg = f"Must be a plain file name: {name!r}"
        raise ValueError(msg)
    return name


class RegistryItem(BaseModel):
    """A registry key exported to a .reg file.

    Attributes:
        name: Human-readable item name.
        key: Key path (``HKCU:\\...`` or ``HKEY_CURRENT_USER\\...``).
        dest: File name under ``registry/``; defaults to the slugged name.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: Annotated[str, Field(min_length=1, description="Item name")]
    key: Annotated[str, Field(min_length=1, description="Registry key path")]
    dest: Annotated[str | None, Field(description="Export file name")] = None

    @field_validator("key")
    @classmethod
    def validate_key(cls, v: str) -> str:
        """Validate the hive of the key path."""
        return _check_key(v)

    @field_validator("dest")
    @classmethod
    def validate_dest(cls, v: str | None) -> str | None:
        return _check_file_name(v)

    @property
    def export_name(self) -> str:
        """File name of the .reg export."""
        name = self.dest or slugify(self.name)
        return name if name.lower().endswith(".reg") else f"{name}.reg"


class FileItem(BaseModel):
    """A file or directory copied into the backup.

    Attributes:
        name: Human-readable item name.
        path: Source path; may contain environment references.
        type: Whether the path is a single file or a directory tree.
        dest: Name under ``files/``; defaults to the slugged name.
        include: Glob patterns a directory copy is limited to (file names).
        exclude: Glob patterns left out of a directory copy.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: Annotated[str, Field(min_length=1, description="Item name")]
    path: Annotated[str, Field(min_length=1, description="Source path")]
    type: Annotated[FileType, Field(description="file or directory")] = "file"
    dest: Annotated[str | None, Field(description="Backup name")] = None
    include: Annotated[list[str], Field(default_factory=list, description="Copied globs")]
    exclude: Annotated[list[str], Field(default_factory=list, description="Skipped globs")]

    @field_validator("dest")
    @classmethod
    def validate_dest(cls, v: str | None) -> str | None:
        return _check_file_name(v)

    @model_validator(mode="after")
    def validate_patterns(self) -> "FileItem":
        """Validate that only directories carry include/exclude patterns."""
        if self.type == "file" and (self.include or self.exclude):
            msg = f"include/exclude only apply to directories: {self.name!r}"
            raise ValueError(msg)
        return self

    @property
    def backup_name(self) -> str:
        """Name of the copy under ``files/``."""
        return self.dest or slugify(self.name)


class CollectorItem(BaseModel):
    """A collector plugin run for a feature.

    Attributes:
        name: Human-readable item name.
        kind: Collector type, see :data:`CollectorKind`.
        output: JSON file name the collected data is written to.
        options: Collector-specific options (command args, script, source, ...).
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: Annotated[str, Field(min_length=1, description="Item name")]
    kind: Annotated[CollectorKind, Field(description="Collector type")]
    output: Annotated[str | None, Field(description="Output JSON file name")] = None
    options: Annotated[
        dict[str, Any],
        Field(default_factory=dict, description="Collector options"),
    ]

    @field_validator("output")
    @classmethod
    def validate_output(cls, v: str | None) -> str | None:
        """Validate that output is a plain file name."""
        return _check_file_name(v)

    @model_validator(mode="after")
    def validate_registry_options(self) -> "CollectorItem":
        """Validate the key paths of a registry_values collector."""
        if self.kind == "registry_values":
            keys = self.options.get("keys", [self.options.get("key")])
            if not isinstance(keys, list):
                msg = "registry_values option 'keys' must be a list"
                raise ValueError(msg)
            for key in keys:
                if key is not None:
                    normalize_key(str(key))
        return self

    @property
    def output_name(self) -> str:
        """JSON file name of the snapshot."""
        name = self.output or slugify(self.name)
        return name if name.lower().endswith(".json") else f"{name}.json"


class FeatureDefinition(BaseModel):
    """One backup/restore feature.

    Attributes:
        name: Catalog key (e.g., 'mouse', 'gamemanagers').
        title: Display title.
        description: What the feature covers.
        registry: Registry keys to export.
        files: Files and directories to copy.
        collectors: Collector plugins to run.
        requires: Executables that must be on PATH, e.g. 'winget'.
        requires_cmdlets: PowerShell commands that must resolve, e.g.
            'Get-MpPreference'.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: Annotated[str, Field(pattern=r"^[a-z0-9][a-z0-9_-]*$", description="Feature key")]
    title: Annotated[str, Field(min_length=1, description="Display title")]
    description: Annotated[str, Field(description="Feature description")] = ""
    registry: Annotated[list[RegistryItem], Field(default_factory=list)]
    files: Annotated[list[FileItem], Field(default_factory=list)]
    collectors: Annotated[list[CollectorItem], Field(default_factory=list)]
    requires: Annotated[
        list[Annotated[str, Field(pattern=r"^[A-Za-z0-9_.-]+$")]],
        Field(default_factory=list, description="Required executables"),
    ]
    requires_cmdlets: Annotated[
        list[Annotated[str, Field(pattern=r"^[A-Za-z][A-Za-z0-9-]*$")]],
        Field(default_factory=list, description="Required PowerShell commands"),
    ]

    @model_validator(mode="after")
    def validate_unique_names(self) -> "FeatureDefinition":
        """Validate that item names are unique within the feature."""
        seen: set[str] = set()
        for item in [*self.registry, *self.files, *self.collectors]:
            if item.name in seen:
                msg = f"Duplicate item name in feature {self.name!r}: {item.name!r}"
                raise ValueError(msg)
            seen.add(item.name)
        return self

    @property
    def item_count(self) -> int:
        """Total number of items in the feature."""
        return len(self.registry) + len(self.files) + len(self.collectors)
