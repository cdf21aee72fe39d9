"""
Download and cache — fetch-or-reuse of feature artifacts.

Artifacts are cached by filename only: a file already present in the
cache folder is copied out instead of fetched, and the cache is never
invalidated. Fetches go through the ``http`` adapter into the temp
folder and are then moved into place.

A failed fetch is logged and otherwise ignored; whoever consumes the
missing file next is the one that fails.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from customizer.core.engine.context import FatalInstallError, InstallContext
from customizer.core.models.action import Receipt
from customizer.core.services.filesystem import apply_permissions, create_folder, move

logger = logging.getLogger(__name__)

# Filename used when the destination does not name one
PLACEHOLDER_FILENAME = "downloading_program"


@dataclass(frozen=True)
class ArtifactLocation:
    """Directory and filename an artifact path resolves to."""

    directory: Path
    filename: str

    @property
    def path(self) -> Path:
        return self.directory / self.filename


def resolve_location(
    destination: Path | str | None,
    artifacts_dir: Path,
    for_download: bool = True,
) -> ArtifactLocation:
    """Resolve a destination argument into ``(directory, filename)``.

    - nothing: artifacts dir and the placeholder filename
    - absolute path: itself if it is an existing directory (placeholder
      filename), otherwise parent directory and filename
    - relative path with ``/``: same rules, anchored at the artifacts dir
    - bare name: artifacts dir and that name

    The directory checks only apply when resolving a download target:
    there, a parent directory that does not exist is fatal.

    Raises:
        FatalInstallError: If a download target's parent is missing.
    """
    if destination is None or str(destination) == "":
        return ArtifactLocation(artifacts_dir, PLACEHOLDER_FILENAME)

    text = str(destination)
    if text.startswith("/"):
        base = Path(text)
    elif "/" in text:
        base = artifacts_dir / text
    else:
        return ArtifactLocation(artifacts_dir, text)

    if not for_download:
        return ArtifactLocation(base.parent, base.name)

    if base.is_dir():
        return ArtifactLocation(base, PLACEHOLDER_FILENAME)
    if not base.parent.is_dir():
        raise FatalInstallError(
            f"Download destination {text} is not a directory and its parent "
            f"{base.parent} does not exist"
        )
    return ArtifactLocation(base.parent, base.name)


def download(
    ctx: InstallContext,
    url: str,
    destination: Path | str | None = None,
    feature: str | None = None,
) -> Receipt:
    """Fetch ``url`` (or reuse the cached copy) into ``destination``.

    Returns:
        A receipt whose ``metadata["path"]`` is the materialized file.
        A failed fetch yields a failed receipt and no file.
    """
    paths = ctx.paths
    location = resolve_location(destination, paths.artifacts_dir)
    target = location.path
    cached = paths.cache_dir / location.filename
    action_id = f"{feature or 'download'}:fetch:{location.filename}"

    if ctx.flags.cache and cached.is_file():
        logger.info("Using cached %s", location.filename)
        shutil.copyfile(cached, target)
        if ctx.privileged:
            apply_permissions(target, ctx.identity)
        return Receipt.success(
            adapter="cache",
            action_id=action_id,
            output=f"Copied {cached} to {target}",
            metadata={"path": str(target), "cached": True, "url": url},
        )

    create_folder(paths.temp_dir, ctx.identity)
    temp = paths.temp_dir / location.filename
    receipt = ctx.run("http", action_id, {"url": url, "dest": str(temp)}, feature=feature)
    if receipt.ok and not temp.is_file():
        receipt = Receipt.failure(
            adapter=receipt.adapter,
            action_id=action_id,
            error=f"Fetching {url} produced no file",
        )
    if not receipt.ok:
        logger.error("Could not download %s", url)
        return receipt

    if ctx.flags.cache:
        create_folder(paths.cache_dir, ctx.identity)
        move(temp, cached)
        if ctx.privileged:
            apply_permissions(cached, ctx.identity)
        shutil.copyfile(cached, target)
    else:
        move(temp, target)

    if ctx.privileged:
        apply_permissions(target, ctx.identity)

    receipt.metadata.update({"path": str(target), "cached": False})
    return receipt
