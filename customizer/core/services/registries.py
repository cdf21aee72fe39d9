"""
Subsystem registries — append-only, deduplicated line files.

Four registries persist cross-feature state for the shell and the
desktop session:

- functions registry: ``source "<script>"`` lines, sourced by every
  interactive shell through ~/.bashrc;
- initializations registry: the same, sourced once per login through
  ~/.profile;
- favorites registry: ``<launcher>.desktop`` lines;
- keybindings registry: ``<command>;<binding>;<name>`` lines.

Registries are not locked. Two concurrent runs can interleave their
appends; the last writer wins.
"""

from __future__ import annotations

import logging
from pathlib import Path

from customizer.core.engine.context import InstallContext
from customizer.core.models.action import Receipt
from customizer.core.models.feature import Keybinding
from customizer.core.models.identity import Identity
from customizer.core.services.filesystem import apply_permissions, create_file, make_parents

logger = logging.getLogger(__name__)


def import_line(script: Path) -> str:
    """Line that makes a registry source ``script``."""
    return f'source "{script}"'


class RegistryFile:
    """A text file holding one entry per line, never the same line twice."""

    def __init__(self, path: Path, identity: Identity | None = None):
        self.path = Path(path)
        self.identity = identity

    def lines(self) -> list[str]:
        """Registered entries, in order (blank lines skipped)."""
        if not self.path.is_file():
            return []
        return [
            line for line in self.path.read_text(encoding="utf-8").splitlines() if line.strip()
        ]

    def __contains__(self, line: str) -> bool:
        return line in self.lines()

    def add(self, line: str) -> bool:
        """Append ``line`` unless already present.

        Returns:
            True if the line was appended.
        """
        if line in self:
            return False
        created = not self.path.is_file()
        if created and self.identity is not None:
            make_parents(self.path, self.identity)
        else:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        prefix = ""
        if not created:
            existing = self.path.read_text(encoding="utf-8")
            if existing and not existing.endswith("\n"):
                prefix = "\n"
        with self.path.open("a", encoding="utf-8") as fh:
            fh.write(f"{prefix}{line}\n")
        if created and self.identity is not None:
            apply_permissions(self.path, self.identity)
        return True


def _add_script(
    ctx: InstallContext,
    content: str,
    filename: str,
    folder: Path,
    registry_path: Path,
    kind: str,
) -> Receipt:
    script = create_file(f"{folder}/{filename}", ctx.identity, content)
    if script is None:
        return Receipt.skip(
            adapter="registry",
            action_id=f"{kind}:{filename}",
            reason=f"Invalid script filename {filename!r}",
        )
    added = RegistryFile(registry_path, ctx.identity).add(import_line(script))
    return Receipt.success(
        adapter="registry",
        action_id=f"{kind}:{filename}",
        output=f"{'Registered' if added else 'Updated'} {script}",
        metadata={"script": str(script), "registered": added},
    )


def add_bash_function(ctx: InstallContext, content: str, filename: str) -> Receipt:
    """Write a script sourced by every interactive shell."""
    return _add_script(
        ctx,
        content,
        filename,
        ctx.paths.functions_dir,
        ctx.paths.functions_registry,
        "function",
    )


def add_bash_initialization(ctx: InstallContext, content: str, filename: str) -> Receipt:
    """Write a script sourced once per login session."""
    return _add_script(
        ctx,
        content,
        filename,
        ctx.paths.initializations_dir,
        ctx.paths.initializations_registry,
        "initialization",
    )


def add_keybinding(ctx: InstallContext, keybinding: Keybinding) -> bool:
    """Queue a keybinding for the next session-start reconciliation."""
    return RegistryFile(ctx.paths.keybindings_registry, ctx.identity).add(keybinding.line)


def add_to_favorites(ctx: InstallContext, name: str) -> Receipt:
    """Queue ``<name>.desktop`` for pinning to the dock.

    The launcher must already exist in the all-users or personal
    launcher directory; otherwise the call is skipped with a warning.
    """
    entry = f"{name}.desktop"
    registry = RegistryFile(ctx.paths.favorites_registry, ctx.identity)
    action_id = f"favorites:{name}"

    if entry in registry:
        return Receipt.success(adapter="registry", action_id=action_id, output="Already registered")

    if ctx.find_launcher(name) is None:
        logger.warning(
            "The program %s cannot be found in the usual place for desktop launchers "
            "favorites. Skipping",
            name,
        )
        return Receipt.skip(adapter="registry", action_id=action_id, reason=f"No launcher {entry}")

    registry.add(entry)
    return Receipt.success(adapter="registry", action_id=action_id, output=f"Registered {entry}")
