"""
MIME associations — default applications in mimeapps.list.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from customizer.core.services.filesystem import atomic_write_text

logger = logging.getLogger(__name__)

ADDED_ASSOCIATIONS_HEADER = "[Added Associations]"


def add_association(text: str, mime_type: str, launcher_file: str) -> str | None:
    """Return ``text`` with ``launcher_file`` associated to ``mime_type``.

    Returns:
        None if the association is already present.
    """
    lines = text.splitlines()
    prefix = f"{mime_type}="

    already = re.compile(rf"{re.escape(mime_type)}=.*{re.escape(launcher_file)}")
    if any(already.search(line) for line in lines):
        return None

    if not any(line.startswith(prefix) for line in lines):
        if ADDED_ASSOCIATIONS_HEADER not in lines:
            lines.append(ADDED_ASSOCIATIONS_HEADER)
        index = lines.index(ADDED_ASSOCIATIONS_HEADER)
        lines.insert(index + 1, f"{prefix}{launcher_file};")
    else:
        for i, line in enumerate(lines):
            if not line.startswith(prefix):
                continue
            if line.endswith(";"):
                lines[i] = f"{line}{launcher_file};"
            else:
                lines[i] = f"{line};{launcher_file};"

    return "\n".join(lines) + "\n"


def register_file_association(mime_file: Path, mime_type: str, launcher_file: str) -> bool:
    """Associate ``launcher_file`` (``<name>.desktop``) with ``mime_type``.

    Returns:
        True if the file was changed; False if it is absent (warning)
        or already holds the association.
    """
    mime_file = Path(mime_file)
    if not mime_file.is_file():
        logger.warning(
            "%s is not present, so %s cannot be associated to %s. Skipping...",
            mime_file,
            launcher_file,
            mime_type,
        )
        return False

    updated = add_association(mime_file.read_text(encoding="utf-8"), mime_type, launcher_file)
    if updated is None:
        logger.debug("%s already associated to %s", mime_type, launcher_file)
        return False

    atomic_write_text(mime_file, updated)
    logger.info("Associated %s to %s", mime_type, launcher_file)
    return True
