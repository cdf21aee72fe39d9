"""
Feature model — the attribute bundle of one installable feature.

A feature is declared in the feature table (features.yml) as a flat
mapping of attribute names to values. The names are the historical
attribute suffixes (``packagenames``, ``bashfunctions``, ...); tuple
attributes use ``;`` as field separator:

    vlc:
      installationtype: systempackage
      packagenames: [vlc]
      launchernames: [vlc]
      associatedfiletypes: ["video/mp4", "audio/mpeg;vlc"]
      keybindings: ["vlc;<Primary><Alt>v;VLC"]

An absent (or empty) attribute means "do not run the installer that
consumes it". The only attributes ever required are those that the
chosen installation type cannot work without.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class InstallationType(str, Enum):
    """How a feature's payload is provisioned."""

    SYSTEM_PACKAGE = "systempackage"
    ARCHIVE_INHERIT = "archiveinherit"
    ISOLATED_ENVIRONMENT = "isolatedenvironment"
    REPOSITORY_CLONE = "repositoryclone"


def split_fields(raw: str, required: int, label: str) -> list[str]:
    """Split a ``;``-delimited tuple, demanding at least ``required`` fields.

    Extra trailing fields are ignored.
    """
    parts = raw.split(";")
    if len(parts) < required:
        raise ValueError(
            f"{label} entry {raw!r} needs {required} ';'-separated fields"
        )
    return parts


class Keybinding(BaseModel):
    """A custom keyboard shortcut: ``command;binding;name``.

    Also used as the value of one custom-keybinding slot of the
    desktop settings service, where an empty name means "unoccupied".
    """

    command: str = ""
    binding: str = ""
    name: str = ""

    @classmethod
    def parse(cls, raw: str) -> Keybinding:
        command, binding, name = split_fields(raw, 3, "keybindings")[:3]
        return cls(command=command, binding=binding, name=name)

    @property
    def line(self) -> str:
        """Registry line for this keybinding."""
        return f"{self.command};{self.binding};{self.name}"


class DownloadSpec(BaseModel):
    """``url;filename`` — fetch ``url`` into the feature directory."""

    url: str
    filename: str

    @classmethod
    def parse(cls, raw: str) -> DownloadSpec:
        url, filename = split_fields(raw, 2, "downloads")[:2]
        return cls(url=url, filename=filename)


class BinaryLink(BaseModel):
    """``path;name`` — expose ``path`` as the command ``name``."""

    path: str
    name: str

    @classmethod
    def parse(cls, raw: str) -> BinaryLink:
        path, name = split_fields(raw, 2, "binariesinstalledpaths")[:2]
        return cls(path=path, name=name)


class MoveSpec(BaseModel):
    """``pattern;destination`` — relocate files out of the feature directory."""

    pattern: str
    destination: str

    @classmethod
    def parse(cls, raw: str) -> MoveSpec:
        pattern, destination = split_fields(raw, 2, "movefiles")[:2]
        return cls(pattern=pattern, destination=destination)

    @property
    def is_wildcard(self) -> bool:
        return "*" in self.pattern

    @property
    def suffix(self) -> str:
        """The pattern with every ``*`` removed."""
        return self.pattern.replace("*", "")


class FileAssociation(BaseModel):
    """``mime[;launcher]`` — a MIME type, optionally with its launcher name."""

    mime_type: str
    launcher: str | None = None

    @classmethod
    def parse(cls, raw: str) -> FileAssociation:
        mime_type, _, launcher = raw.partition(";")
        return cls(mime_type=mime_type, launcher=launcher or None)


class FileSpec(BaseModel):
    """An arbitrary file declared through ``filekeys``."""

    key: str
    content: str = ""
    path: str


_TUPLE_PARSERS: dict[str, Any] = {
    "keybindings": Keybinding.parse,
    "downloads": DownloadSpec.parse,
    "binariesinstalledpaths": BinaryLink.parse,
    "movefiles": MoveSpec.parse,
    "associatedfiletypes": FileAssociation.parse,
}

_LIST_ATTRIBUTES = (
    "packagedependencies",
    "packagenames",
    "packageurls",
    "pipinstallations",
    "pythoncommands",
    "bashfunctions",
    "bashinitializations",
    "launchercontents",
    "launchernames",
    "autostartlaunchers",
    "filekeys",
    *_TUPLE_PARSERS,
)


class FeatureDescriptor(BaseModel):
    """The parsed attribute bundle of one feature.

    Fields are addressed by their Python names in code and by the
    attribute names (aliases) in the feature table.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    key: str
    name: str = ""
    description: str = ""
    installation_type: InstallationType | None = Field(None, alias="installationtype")

    # ── System packages ──────────────────────────────────────────
    package_dependencies: list[str] = Field(default_factory=list, alias="packagedependencies")
    package_names: list[str] = Field(default_factory=list, alias="packagenames")
    package_urls: list[str] = Field(default_factory=list, alias="packageurls")

    # ── Archives ─────────────────────────────────────────────────
    compressed_file_url: str | None = Field(None, alias="compressedfileurl")
    compressed_file_type: str | None = Field(None, alias="compressedfiletype")
    compressed_file_path_override: str | None = Field(None, alias="compressedfilepathoverride")
    do_not_inherit: bool = Field(False, alias="donotinherit")

    # ── Repository / isolated environment ────────────────────────
    repository_url: str | None = Field(None, alias="repositoryurl")
    pip_installations: list[str] = Field(default_factory=list, alias="pipinstallations")
    python_commands: list[str] = Field(default_factory=list, alias="pythoncommands")

    # ── Optional properties ──────────────────────────────────────
    bash_functions: list[str] = Field(default_factory=list, alias="bashfunctions")
    bash_initializations: list[str] = Field(default_factory=list, alias="bashinitializations")
    launcher_contents: list[str] = Field(default_factory=list, alias="launchercontents")
    launcher_names: list[str] = Field(default_factory=list, alias="launchernames")
    autostart_launchers: list[str] = Field(default_factory=list, alias="autostartlaunchers")
    keybindings: list[Keybinding] = Field(default_factory=list)
    downloads: list[DownloadSpec] = Field(default_factory=list)
    binaries_installed_paths: list[BinaryLink] = Field(
        default_factory=list, alias="binariesinstalledpaths"
    )
    files: list[FileSpec] = Field(default_factory=list)
    associated_file_types: list[FileAssociation] = Field(
        default_factory=list, alias="associatedfiletypes"
    )
    move_files: list[MoveSpec] = Field(default_factory=list, alias="movefiles")

    @model_validator(mode="before")
    @classmethod
    def _normalize_table_entry(cls, data: Any) -> Any:
        """Turn a raw feature-table entry into model input.

        Scalars given for list attributes become one-element lists,
        tuple strings are parsed, and ``filekeys`` plus its
        ``<key>_content`` / ``<key>_path`` companions fold into ``files``.
        """
        if not isinstance(data, dict):
            return data
        data = dict(data)

        for attr in _LIST_ATTRIBUTES:
            value = data.get(attr)
            if isinstance(value, str):
                data[attr] = [value]
            elif value is None and attr in data:
                data[attr] = []

        for attr, parse in _TUPLE_PARSERS.items():
            if attr in data:
                data[attr] = [
                    parse(item) if isinstance(item, str) else item
                    for item in data[attr]
                ]

        filekeys = data.pop("filekeys", None) or []
        if filekeys:
            files = list(data.get("files") or [])
            for filekey in filekeys:
                path = data.pop(f"{filekey}_path", None)
                content = data.pop(f"{filekey}_content", "")
                if not path:
                    raise ValueError(f"filekey {filekey!r} has no {filekey}_path attribute")
                files.append({"key": filekey, "path": path, "content": content or ""})
            data["files"] = files

        return data

    @field_validator("compressed_file_type")
    @classmethod
    def _strip_type(cls, value: str | None) -> str | None:
        return value.strip() if value is not None else None

    @model_validator(mode="after")
    def _check_mandatory(self) -> FeatureDescriptor:
        """Enforce the attributes the installation type cannot do without."""
        itype = self.installation_type
        if itype is InstallationType.SYSTEM_PACKAGE:
            if not (self.package_names or self.package_urls or self.compressed_file_url):
                raise ValueError(
                    f"feature {self.key!r}: systempackage needs packagenames, "
                    "packageurls or compressedfileurl"
                )
        elif itype is InstallationType.ARCHIVE_INHERIT:
            if not self.compressed_file_url:
                raise ValueError(f"feature {self.key!r}: archiveinherit needs compressedfileurl")
        elif itype is InstallationType.REPOSITORY_CLONE:
            if not self.repository_url:
                raise ValueError(f"feature {self.key!r}: repositoryclone needs repositoryurl")

        if self.compressed_file_url and not self.compressed_file_type:
            raise ValueError(
                f"feature {self.key!r}: compressedfileurl needs a compressedfiletype"
            )
        return self

    def has(self, field_name: str) -> bool:
        """Whether an attribute is present (set and non-empty)."""
        return bool(getattr(self, field_name))

    @property
    def label(self) -> str:
        return self.name or self.key
