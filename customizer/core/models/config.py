"""
Configuration models — paths, flags and package-manager commands.

Everything the engine needs from its surroundings lives here. Every
field has a default, so an empty customizer.yml is a valid config.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field


class PathsConfig(BaseModel):
    """Filesystem roots used by the engine."""

    # ── Customizer inner folders ─────────────────────────────────
    customizer_dir: Path
    artifacts_dir: Path
    cache_dir: Path
    temp_dir: Path
    data_dir: Path
    functions_dir: Path
    initializations_dir: Path

    # ── Registries ───────────────────────────────────────────────
    functions_registry: Path        # sourced by every interactive shell
    initializations_registry: Path  # sourced once per login
    favorites_registry: Path
    keybindings_registry: Path

    # ── Shell startup chain ──────────────────────────────────────
    bashrc: Path
    profile: Path

    # ── Desktop ──────────────────────────────────────────────────
    personal_launchers_dir: Path
    all_users_launchers_dir: Path = Path("/usr/share/applications")
    desktop_dir: Path
    autostart_dir: Path
    mime_associations: Path
    fonts_dir: Path
    pictures_dir: Path
    templates_dir: Path

    # ── Directories on PATH ──────────────────────────────────────
    path_dir: Path
    all_users_path_dir: Path = Path("/usr/bin")

    @classmethod
    def for_home(cls, home: Path, **overrides: Path) -> PathsConfig:
        """Build the default layout rooted at ``home``, then apply overrides."""
        root = home / ".customizer"
        data = root / "data"
        values: dict[str, Path] = {
            "customizer_dir": root,
            "artifacts_dir": root / "bin",
            "cache_dir": root / "cache",
            "temp_dir": root / "temp",
            "data_dir": data,
            "functions_dir": data / "functions",
            "initializations_dir": data / "initializations",
            "functions_registry": data / "functions.sh",
            "initializations_registry": data / "initializations.sh",
            "favorites_registry": data / "favorites.txt",
            "keybindings_registry": data / "keybindings.txt",
            "bashrc": home / ".bashrc",
            "profile": home / ".profile",
            "personal_launchers_dir": home / ".local" / "share" / "applications",
            "desktop_dir": home / "Desktop",
            "autostart_dir": home / ".config" / "autostart",
            "mime_associations": home / ".config" / "mimeapps.list",
            "fonts_dir": home / ".fonts",
            "pictures_dir": home / "Pictures",
            "templates_dir": home / "Templates",
            "path_dir": home / ".local" / "bin",
        }
        values.update(overrides)
        return cls(**values)


class Flags(BaseModel):
    """Feature switches normally set from the command line."""

    favorites: bool = False
    autostart: bool = False
    upgrade: int = Field(0, ge=0, le=2)     # 1 = update, 2 = update + upgrade
    cache: bool = True
    quietness: int = Field(1, ge=0, le=2)   # 0 verbose, 1 normal, 2 silent


class PackageManagerCommands(BaseModel):
    """Command prefixes for the system package manager (apt/dpkg by default)."""

    install: str = "apt-get install -y"
    install_package: str = "dpkg -i"
    install_packages: str = "dpkg -Ri"
    fix_broken: str = "apt-get install -y --fix-broken"
    update: str = "apt-get -y update"
    upgrade: str = "apt-get -y upgrade"


class CustomizerConfig(BaseModel):
    """Root configuration object."""

    paths: PathsConfig
    flags: Flags = Field(default_factory=Flags)
    package_manager: PackageManagerCommands = Field(default_factory=PackageManagerCommands)
