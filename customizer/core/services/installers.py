"""
Optional-property installers — one pipeline step per feature attribute.

Each step runs only when its attribute is present (``applies_to``)
and reports one receipt for all of its entries (``apply``). Steps are
independent and idempotent with respect to their own registry; a
failing step never keeps the next one from running.

``INSTALLER_PIPELINE`` fixes the order: download-producing steps come
before the steps that consume downloaded files.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator
from pathlib import Path

from customizer.core.engine.context import InstallContext
from customizer.core.models.action import Receipt
from customizer.core.models.feature import FeatureDescriptor
from customizer.core.services import registries
from customizer.core.services.associations import register_file_association
from customizer.core.services.download import download
from customizer.core.services.filesystem import (
    copy_file,
    create_file,
    create_folder,
    create_symlink,
    move,
    remove_tree,
)

logger = logging.getLogger(__name__)

ADAPTER = "installer"


def anticollision_names(key: str, count: int) -> Iterator[str]:
    """``key``, ``key_``, ``key__``, ... for ``count`` entries."""
    for i in range(count):
        yield key + "_" * i


def _done(action_id: str, output: str = "", **metadata) -> Receipt:
    return Receipt.success(adapter=ADAPTER, action_id=action_id, output=output, metadata=metadata)


def _skipped(action_id: str, reason: str) -> Receipt:
    return Receipt.skip(adapter=ADAPTER, action_id=action_id, reason=reason)


class InstallerStep(ABC):
    """One optional-property installer."""

    name: str = ""

    @abstractmethod
    def applies_to(self, feature: FeatureDescriptor, ctx: InstallContext) -> bool:
        """Whether this step has anything to do for ``feature``."""

    @abstractmethod
    def entries(self, feature: FeatureDescriptor, ctx: InstallContext) -> list[Receipt]:
        """Install every entry of the attribute, one receipt each."""

    def apply(self, feature: FeatureDescriptor, ctx: InstallContext) -> Receipt:
        """Run the step and fold its entries into one receipt."""
        logger.debug("%s: %s", feature.key, self.name)
        return Receipt.combine(ADAPTER, f"{feature.key}:{self.name}", self.entries(feature, ctx))

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"


class DownloadsStep(InstallerStep):
    """Fetch each ``url;filename`` into ``<artifacts>/<key>/``."""

    name = "downloads"

    def applies_to(self, feature, ctx):
        return feature.has("downloads")

    def entries(self, feature, ctx):
        feature_dir = create_folder(ctx.feature_dir(feature.key), ctx.identity)
        return [
            download(ctx, spec.url, feature_dir / spec.filename, feature=feature.key)
            for spec in feature.downloads
        ]


class MoveFilesStep(InstallerStep):
    """Relocate files out of the feature directory.

    A pattern with ``*`` matches every entry whose name ends with the
    pattern stripped of its ``*``; any other pattern names one entry.
    """

    name = "movefiles"

    def applies_to(self, feature, ctx):
        return feature.has("move_files")

    def entries(self, feature, ctx):
        feature_dir = ctx.feature_dir(feature.key)
        receipts = []
        for spec in feature.move_files:
            destination = create_folder(ctx.expand_user_path(spec.destination), ctx.identity)
            action_id = f"{feature.key}:movefiles:{spec.pattern}"
            if spec.is_wildcard:
                listing = sorted(feature_dir.iterdir()) if feature_dir.is_dir() else []
                sources = [p for p in listing if p.name.endswith(spec.suffix)]
            else:
                sources = [feature_dir / spec.pattern]

            moved = []
            for source in sources:
                if not (source.exists() or source.is_symlink()):
                    logger.warning("Cannot move %s: it does not exist", source)
                    continue
                remove_tree(destination / source.name)
                moved.append(str(move(source, destination)))

            if moved:
                receipts.append(_done(action_id, f"Moved {len(moved)} to {destination}", moved=moved))
            else:
                receipts.append(_skipped(action_id, f"Nothing matches {spec.pattern}"))
        return receipts


class FilesStep(InstallerStep):
    """Write arbitrary files declared through ``filekeys``."""

    name = "files"

    def applies_to(self, feature, ctx):
        return feature.has("files")

    def entries(self, feature, ctx):
        receipts = []
        for spec in feature.files:
            path = ctx.expand_user_path(spec.path)
            if not path.is_absolute():
                path = ctx.feature_dir(feature.key) / spec.path
            action_id = f"{feature.key}:files:{spec.key}"
            created = create_file(path, ctx.identity, spec.content)
            if created is None:
                receipts.append(_skipped(action_id, f"Invalid filename {spec.path!r}"))
            else:
                receipts.append(_done(action_id, f"Created {created}"))
        return receipts


class BinariesStep(InstallerStep):
    """Expose binaries as commands through links in the path directory."""

    name = "binaries"

    def applies_to(self, feature, ctx):
        return feature.has("binaries_installed_paths")

    def entries(self, feature, ctx):
        receipts = []
        for link in feature.binaries_installed_paths:
            target = ctx.expand_user_path(link.path)
            if not target.is_absolute():
                target = ctx.feature_dir(feature.key) / link.path
            created = create_symlink(target, ctx.path_dir / link.name, ctx.identity)
            receipts.append(_done(f"{feature.key}:binaries:{link.name}", f"{created} -> {target}"))
        return receipts


class ManualLaunchersStep(InstallerStep):
    """Write ``launchercontents`` as launchers and copy them onto the desktop."""

    name = "launchers"

    def applies_to(self, feature, ctx):
        return feature.has("launcher_contents")

    def entries(self, feature, ctx):
        receipts = []
        names = anticollision_names(feature.key, len(feature.launcher_contents))
        create_folder(ctx.paths.desktop_dir, ctx.identity)
        for name, content in zip(names, feature.launcher_contents):
            launcher = create_file(ctx.launchers_dir / f"{name}.desktop", ctx.identity, content)
            copy_file(launcher, ctx.paths.desktop_dir, ctx.identity, preserve=True)
            receipts.append(_done(f"{feature.key}:launchers:{name}", f"Created {launcher}"))
        return receipts


class CopyLauncherStep(InstallerStep):
    """Copy existing ``<name>.desktop`` launchers onto the desktop."""

    name = "copy_launcher"

    def applies_to(self, feature, ctx):
        return feature.has("launcher_names")

    def entries(self, feature, ctx):
        receipts = []
        create_folder(ctx.paths.desktop_dir, ctx.identity)
        for name in feature.launcher_names:
            action_id = f"{feature.key}:copy_launcher:{name}"
            launcher = ctx.find_launcher(name)
            if launcher is None:
                logger.warning(
                    "Can't find %s.desktop launcher in %s or %s",
                    name,
                    ctx.paths.all_users_launchers_dir,
                    ctx.paths.personal_launchers_dir,
                )
                receipts.append(_skipped(action_id, f"No launcher {name}.desktop"))
                continue
            copied = copy_file(launcher, ctx.paths.desktop_dir / launcher.name, ctx.identity)
            receipts.append(_done(action_id, f"Copied {copied}"))
        return receipts


class FunctionsStep(InstallerStep):
    """Register ``bashfunctions`` scripts with every interactive shell."""

    name = "functions"

    def applies_to(self, feature, ctx):
        return feature.has("bash_functions")

    def entries(self, feature, ctx):
        names = anticollision_names(feature.key, len(feature.bash_functions))
        return [
            registries.add_bash_function(ctx, content, f"{name}.sh")
            for name, content in zip(names, feature.bash_functions)
        ]


class InitializationsStep(InstallerStep):
    """Register ``bashinitializations`` scripts with the login session."""

    name = "initializations"

    def applies_to(self, feature, ctx):
        return feature.has("bash_initializations")

    def entries(self, feature, ctx):
        names = anticollision_names(feature.key, len(feature.bash_initializations))
        return [
            registries.add_bash_initialization(ctx, content, f"{name}.sh")
            for name, content in zip(names, feature.bash_initializations)
        ]


class FavoritesStep(InstallerStep):
    """Queue the feature's launchers for the dock (favorites flag only)."""

    name = "favorites"

    def applies_to(self, feature, ctx):
        return ctx.flags.favorites

    def entries(self, feature, ctx):
        names = feature.launcher_names or [feature.key]
        return [registries.add_to_favorites(ctx, name) for name in names]


class FileAssociationsStep(InstallerStep):
    """Make the feature's launcher a default application for MIME types."""

    name = "associations"

    def applies_to(self, feature, ctx):
        return feature.has("associated_file_types")

    def entries(self, feature, ctx):
        mime_file = ctx.paths.mime_associations
        receipts = []
        for association in feature.associated_file_types:
            launcher_file = f"{association.launcher or feature.key}.desktop"
            action_id = f"{feature.key}:associations:{association.mime_type}"
            present = mime_file.is_file()
            changed = register_file_association(mime_file, association.mime_type, launcher_file)
            if not present:
                receipts.append(_skipped(action_id, f"{mime_file} is not present"))
                continue
            receipts.append(_done(action_id, launcher_file, changed=changed))
        return receipts


class KeybindingsStep(InstallerStep):
    """Queue custom keybindings for the next session start."""

    name = "keybindings"

    def applies_to(self, feature, ctx):
        return feature.has("keybindings")

    def entries(self, feature, ctx):
        return [
            _done(
                f"{feature.key}:keybindings:{kb.name}",
                kb.line,
                registered=registries.add_keybinding(ctx, kb),
            )
            for kb in feature.keybindings
        ]


class AutostartStep(InstallerStep):
    """Start the feature with the session (autostart flag only).

    Explicit ``autostartlaunchers`` contents are written as launchers;
    otherwise existing launchers (``launchernames``, else the key) are
    copied into the autostart folder.
    """

    name = "autostart"

    def applies_to(self, feature, ctx):
        return ctx.flags.autostart

    def entries(self, feature, ctx):
        autostart_dir = ctx.paths.autostart_dir
        create_folder(autostart_dir, ctx.identity)

        if feature.autostart_launchers:
            names = anticollision_names(feature.key, len(feature.autostart_launchers))
            receipts = []
            for name, content in zip(names, feature.autostart_launchers):
                created = create_file(autostart_dir / f"{name}.desktop", ctx.identity, content)
                receipts.append(_done(f"{feature.key}:autostart:{name}", f"Created {created}"))
            return receipts

        names = feature.launcher_names or [feature.key]
        return [self._autostart_program(ctx, feature.key, name) for name in names]

    def _autostart_program(self, ctx: InstallContext, key: str, name: str) -> Receipt:
        action_id = f"{key}:autostart:{name}"
        autostart_dir = ctx.paths.autostart_dir

        if name.startswith("/"):
            source = Path(name)
            if not source.is_file():
                logger.warning("The file %s does not exist, skipping...", source)
                return _skipped(action_id, f"{source} does not exist")
            copied = copy_file(source, autostart_dir, ctx.identity)
            return _done(action_id, f"Copied {copied}")

        launcher = ctx.find_launcher(name)
        if launcher is None:
            logger.warning(
                "The file %s.desktop does not exist, in either %s or %s, skipping...",
                name,
                ctx.paths.all_users_launchers_dir,
                ctx.paths.personal_launchers_dir,
            )
            return _skipped(action_id, f"No launcher {name}.desktop")

        copied = copy_file(launcher, autostart_dir / f"{name}.desktop", ctx.identity)
        return _done(action_id, f"Copied {copied}")


INSTALLER_PIPELINE: tuple[InstallerStep, ...] = (
    DownloadsStep(),
    MoveFilesStep(),
    FilesStep(),
    BinariesStep(),
    ManualLaunchersStep(),
    CopyLauncherStep(),
    FunctionsStep(),
    InitializationsStep(),
    FavoritesStep(),
    FileAssociationsStep(),
    KeybindingsStep(),
    AutostartStep(),
)
