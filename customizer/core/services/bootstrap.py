"""
Bootstrap — standing structures and whole-run hooks.

``initialize_structures`` runs once before any feature is installed:
it creates the customizer folders and registry files, installs the
built-in scripts (``init.sh``, ``favorites.sh``, ``keybinding.sh``)
and wires both import registries into the shell startup files. It is
safe to run any number of times.
"""

from __future__ import annotations

import logging
import shlex
import sys
from pathlib import Path

from customizer.core.engine.context import InstallContext
from customizer.core.models.action import Receipt
from customizer.core.services.filesystem import create_folder, ensure_file
from customizer.core.services.registries import (
    RegistryFile,
    add_bash_function,
    add_bash_initialization,
    import_line,
)

logger = logging.getLogger(__name__)

INIT_SCRIPT = "init.sh"
FAVORITES_SCRIPT = "favorites.sh"
KEYBINDINGS_SCRIPT = "keybinding.sh"


def init_script(path_dir: Path) -> str:
    """Built-in function script: interactive shells only, path dir on PATH."""
    quoted = shlex.quote(str(path_dir))
    return (
        "# Only interactive shells load customizer functions\n"
        'case "$-" in\n'
        "  *i*) ;;\n"
        "  *) return ;;\n"
        "esac\n"
        f'case ":${{PATH}}:" in\n'
        f"  *:{quoted}:*) ;;\n"
        f'  *) export PATH="${{PATH}}:"{quoted} ;;\n'
        "esac"
    )


def reconcile_script(target: str, config_path: Path | None = None) -> str:
    """Built-in initialization script running one reconciliation at login."""
    command = [sys.executable, "-m", "customizer", "-q", "-q"]
    if config_path is not None:
        command += ["--config", str(config_path)]
    command += ["reconcile", target]
    return f"{shlex.join(command)} || true"


def initialize_structures(ctx: InstallContext, config_path: Path | None = None) -> list[Receipt]:
    """Create the folders, registries and built-in scripts every feature relies on."""
    logger.info("Initializing data and file structures.")
    paths = ctx.paths
    identity = ctx.identity

    for folder in (
        paths.customizer_dir,
        paths.cache_dir,
        paths.temp_dir,
        paths.data_dir,
        paths.artifacts_dir,
        paths.functions_dir,
        paths.initializations_dir,
        paths.path_dir,
        paths.personal_launchers_dir,
        paths.fonts_dir,
        paths.desktop_dir,
        paths.pictures_dir,
        paths.templates_dir,
    ):
        create_folder(folder, identity)

    for registry in (
        paths.functions_registry,
        paths.initializations_registry,
        paths.favorites_registry,
        paths.keybindings_registry,
    ):
        ensure_file(registry, identity)

    receipts = [
        add_bash_function(ctx, init_script(paths.path_dir), INIT_SCRIPT),
        add_bash_initialization(ctx, reconcile_script("favorites", config_path), FAVORITES_SCRIPT),
        add_bash_initialization(ctx, reconcile_script("keybindings", config_path), KEYBINDINGS_SCRIPT),
    ]

    # Shell startup files source the registries
    RegistryFile(paths.bashrc, ctx.identity).add(import_line(paths.functions_registry))
    RegistryFile(paths.profile, ctx.identity).add(import_line(paths.initializations_registry))

    return receipts


def pre_install_update(ctx: InstallContext) -> list[Receipt]:
    """Refresh (upgrade level 1) or also upgrade (level 2) the system.

    Only privileged runs touch the package manager.
    """
    level = ctx.flags.upgrade
    if not ctx.privileged or level == 0:
        return []

    logger.info("Attempting to update system.")
    receipts = [ctx.shell(ctx.package_manager.update, "system:update")]
    if level == 2:
        logger.info("Attempting to upgrade system.")
        receipts.append(ctx.shell(ctx.package_manager.upgrade, "system:upgrade"))
    return receipts


def update_environment(ctx: InstallContext) -> Receipt:
    """Post-install refresh: rebuild the font cache."""
    logger.info("Rebuilding font cache")
    return ctx.shell("fc-cache -f", "environment:fc-cache")
