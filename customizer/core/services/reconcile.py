"""
Session-start reconciliation — apply the favorites and keybindings
registries to the desktop-settings service.

Installation only queues entries into the registry files (it may run
as root, outside the user's desktop session). These functions run at
login through the ``favorites.sh`` / ``keybinding.sh`` initialization
scripts, as the user.
"""

from __future__ import annotations

import logging
from pathlib import Path

from customizer.adapters.desktop.gsettings import SettingsClient, keybinding_slot_path
from customizer.core.models.feature import Keybinding
from customizer.core.services.registries import RegistryFile

logger = logging.getLogger(__name__)


def reconcile_favorites(registry_path: Path, client: SettingsClient) -> list[str]:
    """Pin every registered launcher that is not pinned yet.

    Presence is checked textually against the rendering of the current
    favorites list, so an entry contained in another one counts as
    pinned.

    Returns:
        The entries that were added.
    """
    added = []
    for line in RegistryFile(registry_path).lines():
        current = client.get_favorites()
        if line in str(current):
            continue
        client.set_favorites([*current, line] if current else [line])
        added.append(line)
        logger.info("Added %s to favorites", line)
    return added


def apply_keybinding(
    keybinding: Keybinding,
    client: SettingsClient,
    active: list[str],
) -> str:
    """Place one keybinding into a custom slot and mark the slot active.

    Slots ``custom0, custom1, ...`` are scanned while occupied (non-empty
    name). A slot with the same name is updated in place; otherwise the
    first unoccupied slot receives the keybinding.

    Returns:
        The slot path used.
    """
    index = 0
    while True:
        slot = keybinding_slot_path(index)
        current = client.get_keybinding(slot)
        if not current.name or current.name == keybinding.name:
            break
        index += 1

    client.set_keybinding(slot, keybinding)
    if slot not in active:
        active.append(slot)
    logger.debug("Keybinding %r -> %s", keybinding.name, slot)
    return slot


def reconcile_keybindings(registry_path: Path, client: SettingsClient) -> list[str]:
    """Apply every registered keybinding and write back the active list.

    Returns:
        The active slot paths after reconciliation.
    """
    active = list(dict.fromkeys(client.get_active_keybindings()))
    for line in RegistryFile(registry_path).lines():
        try:
            keybinding = Keybinding.parse(line)
        except ValueError as e:
            logger.warning("Ignoring keybinding line %r: %s", line, e)
            continue
        apply_keybinding(keybinding, client, active)

    client.set_active_keybindings(active)
    return active
