"""
Filesystem primitives — create, copy, link and remove with ownership.

Every path the installer materializes goes through here so that
permissions are normalized in one place: when the run is privileged,
created files and directories are re-owned to the invoking user;
in every case they are made ``755``.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path

from customizer.core.models.identity import Identity

logger = logging.getLogger(__name__)

STANDARD_MODE = 0o755


def apply_permissions(path: Path, identity: Identity) -> bool:
    """Normalize owner and mode of ``path``.

    Returns:
        False (after a warning) if the path does not exist.
    """
    path = Path(path)
    if not (path.is_file() or path.is_dir()):
        logger.warning(
            "The file or directory %s does not exist and its permissions "
            "could not be changed. Skipping...",
            path,
        )
        return False

    if identity.privileged:
        os.chown(path, identity.uid, identity.gid)
    path.chmod(STANDARD_MODE)
    return True


def create_folder(path: Path, identity: Identity) -> Path:
    """``mkdir -p`` plus permission normalization.

    The leaf is always normalized; ancestors only when this call
    created them.
    """
    path = Path(path)
    make_parents(path, identity)
    path.mkdir(exist_ok=True)
    apply_permissions(path, identity)
    return path


def make_parents(path: Path, identity: Identity) -> None:
    """Create the missing ancestors of ``path``, normalizing each new one."""
    missing = [parent for parent in reversed(Path(path).parents) if not parent.exists()]
    for folder in missing:
        folder.mkdir(exist_ok=True)
        apply_permissions(folder, identity)


def apply_permissions_tree(root: Path, identity: Identity) -> None:
    """Re-own a whole extracted tree to the invoking user.

    Modes are left as extracted; only privileged runs change anything.
    """
    if not identity.privileged:
        return
    root = Path(root)
    os.lchown(root, identity.uid, identity.gid)
    if root.is_symlink() or not root.is_dir():
        return
    for dirpath, dirnames, filenames in os.walk(root):
        for name in dirnames + filenames:
            os.lchown(os.path.join(dirpath, name), identity.uid, identity.gid)


def create_file(path: Path | str, identity: Identity, content: str = "") -> Path | None:
    """Write ``content`` (newline-terminated) to ``path``, creating parents.

    Returns:
        The created path, or None if ``path`` does not name a file.
    """
    text = str(path)
    if not text or text.endswith("/") or not Path(text).name:
        logger.warning(
            "The name %r is not a valid filename. The file will not be created.", text
        )
        return None

    target = Path(text)
    make_parents(target, identity)
    target.write_text(content + "\n", encoding="utf-8")
    apply_permissions(target, identity)
    return target


def ensure_file(path: Path, identity: Identity) -> Path:
    """Create an empty file if it does not exist yet; never truncate."""
    path = Path(path)
    if not path.is_file():
        make_parents(path, identity)
        path.touch()
        apply_permissions(path, identity)
    return path


def create_symlink(target: Path, link: Path, identity: Identity) -> Path:
    """``ln -sf target link``: an existing file or link at ``link`` is replaced."""
    link = Path(link)
    make_parents(link, identity)
    if link.is_symlink() or link.is_file():
        link.unlink()
    link.symlink_to(target)
    if identity.privileged:
        os.lchown(link, identity.uid, identity.gid)
    logger.debug("Linked %s -> %s", link, target)
    return link


def copy_file(source: Path, destination: Path, identity: Identity, preserve: bool = False) -> Path:
    """Copy a file; ``destination`` may be a directory.

    Args:
        preserve: Keep mode and timestamps of the source (``cp -p``).
    """
    copier = shutil.copy2 if preserve else shutil.copy
    copied = Path(copier(source, destination))
    apply_permissions(copied, identity)
    return copied


def move(source: Path, destination: Path) -> Path:
    """Move a file or directory (into ``destination`` if it is a directory)."""
    return Path(shutil.move(str(source), str(destination)))


def remove_tree(path: Path) -> None:
    """``rm -Rf``: remove a file, link or directory tree; absent is fine."""
    path = Path(path)
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.is_dir():
        shutil.rmtree(path)


def atomic_write_text(path: Path, content: str) -> None:
    """Replace the contents of ``path`` atomically (temp file, then rename).

    The original file mode (and, when running as root, owner) is kept.
    """
    path = Path(path)
    st = path.stat() if path.exists() else None

    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}_", suffix=".tmp")
    os.close(fd)
    tmp = Path(tmp_path)
    try:
        tmp.write_text(content, encoding="utf-8")
        if st is not None:
            tmp.chmod(st.st_mode & 0o7777)
            if os.geteuid() == 0:
                os.chown(tmp, st.st_uid, st.st_gid)
        tmp.replace(path)
    except Exception:
        tmp.unlink(missing_ok=True)
        raise
