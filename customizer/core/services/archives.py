"""
Archive inspection and decompression.

One inspector per archive kind answers two questions: what is the
archive's top-level directory, and how is it extracted. The two kinds
detect the top-level directory differently:

- zip: only a first entry that is itself a directory (``name/``) counts;
- tar: the first path segment of the first member, whatever it is.

``decompress`` uses the answer to normalize the extracted tree so it
ends up under a directory named after the feature.
"""

from __future__ import annotations

import logging
import tarfile
import zipfile
from abc import ABC, abstractmethod
from pathlib import Path

from customizer.core.engine.context import FatalInstallError, InstallContext
from customizer.core.services.download import resolve_location
from customizer.core.services.filesystem import (
    apply_permissions_tree,
    create_folder,
    move,
    remove_tree,
)

logger = logging.getLogger(__name__)

# compressedfiletype value → tarfile open mode
TAR_MODES = {
    "z": "r:gz",
    "j": "r:bz2",
    "J": "r:xz",
    "": "r:",
}


class ArchiveInspector(ABC):
    """Kind-specific access to an archive."""

    @abstractmethod
    def root_name(self, archive: Path) -> str | None:
        """Name of the archive's top-level directory, or None."""

    @abstractmethod
    def extract(self, archive: Path, destination: Path) -> None:
        """Extract every member into ``destination``, overwriting."""

    @abstractmethod
    def member_names(self, archive: Path) -> list[str]:
        """Every member path, in archive order."""

    def top_level_names(self, archive: Path) -> set[str]:
        """First path segments of every member."""
        names = (name.split("/")[0] for name in self.member_names(archive))
        return {name for name in names if name not in ("", ".")}


class ZipInspector(ArchiveInspector):
    """Zip archives."""

    def root_name(self, archive: Path) -> str | None:
        with zipfile.ZipFile(archive) as zf:
            names = zf.namelist()
        if not names or not names[0].endswith("/"):
            return None
        return names[0].split("/")[0] or None

    def member_names(self, archive: Path) -> list[str]:
        with zipfile.ZipFile(archive) as zf:
            return zf.namelist()

    def extract(self, archive: Path, destination: Path) -> None:
        with zipfile.ZipFile(archive) as zf:
            for info in zf.infolist():
                extracted = Path(zf.extract(info, destination))
                # zipfile drops unix permissions; restore them (executables)
                mode = (info.external_attr >> 16) & 0o7777
                if mode and not info.is_dir():
                    extracted.chmod(mode)


class TarInspector(ArchiveInspector):
    """Tar archives: ``z`` gzip, ``j`` bzip2, ``J`` xz, empty for plain tar."""

    def __init__(self, kind: str = ""):
        self.kind = kind
        self.mode = TAR_MODES.get(kind, "r:*")

    def root_name(self, archive: Path) -> str | None:
        with tarfile.open(archive, self.mode) as tf:
            first = tf.next()
        if first is None:
            return None
        segment = first.name.split("/")[0]
        if segment in ("", "."):
            return None
        return segment

    def member_names(self, archive: Path) -> list[str]:
        with tarfile.open(archive, self.mode) as tf:
            return [name.removeprefix("./") for name in tf.getnames()]

    def extract(self, archive: Path, destination: Path) -> None:
        with tarfile.open(archive, self.mode) as tf:
            tf.extractall(destination, filter="tar")


def inspector_for(kind: str) -> ArchiveInspector:
    """Inspector for a ``compressedfiletype`` value."""
    if kind == "zip":
        return ZipInspector()
    return TarInspector(kind)


def decompress(
    ctx: InstallContext,
    kind: str,
    archive_path: Path | str | None,
    rename: str | None = None,
) -> Path:
    """Extract an archive in place and delete it.

    With ``rename``, the extracted tree ends up in ``<dir>/<rename>``:
    a top-level directory found in the archive is renamed, and an
    archive without one is extracted inside a fresh ``<dir>/<rename>``.
    Without ``rename`` the archive's own layout is kept.

    Returns:
        The directory the archive was extracted into.

    Raises:
        FatalInstallError: If the archive does not exist.
    """
    location = resolve_location(archive_path, ctx.paths.artifacts_dir, for_download=False)
    directory = location.directory
    archive = location.path
    inspector = inspector_for(kind)

    if not archive.is_file():
        raise FatalInstallError(
            f"decompress did not receive a valid path to the compressed file. "
            f"The path {archive} does not exist."
        )

    root: str | None = None
    if rename:
        root = inspector.root_name(archive)
        if root is None:
            # No top-level directory: extract inside a fresh <rename>/
            target = directory / rename
            remove_tree(target)
            create_folder(target, ctx.identity)
            move(archive, target)
            directory = target
            archive = target / location.filename
        else:
            # Clear leftovers of a previous or aborted installation
            remove_tree(directory / root)

    logger.info("Decompressing %s", archive.name)
    extracted = inspector.top_level_names(archive)
    inspector.extract(archive, directory)
    archive.unlink()

    if root and rename and root != rename:
        remove_tree(directory / rename)
        (directory / root).rename(directory / rename)
        extracted = {rename if name == root else name for name in extracted}

    for name in sorted(extracted):
        entry = directory / name
        if entry.exists() or entry.is_symlink():
            apply_permissions_tree(entry, ctx.identity)

    return directory
