"""
Reconcile use case — apply queued favorites and keybindings at login.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from customizer.adapters.desktop.gsettings import GSettingsClient, SettingsClient, SettingsError
from customizer.core.models.config import PathsConfig
from customizer.core.services.reconcile import reconcile_favorites, reconcile_keybindings

logger = logging.getLogger(__name__)

TARGETS = ("favorites", "keybindings", "all")


@dataclass
class ReconcileResult:
    """What reconciliation changed."""

    favorites_added: list[str] = field(default_factory=list)
    active_keybindings: list[str] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {
            "favorites_added": self.favorites_added,
            "active_keybindings": self.active_keybindings,
        }


def run_reconcile(
    paths: PathsConfig,
    target: str = "all",
    client: SettingsClient | None = None,
) -> ReconcileResult:
    """Reconcile the favorites and/or keybindings registries."""
    result = ReconcileResult()
    client = client or GSettingsClient()

    try:
        if target in ("favorites", "all"):
            result.favorites_added = reconcile_favorites(paths.favorites_registry, client)
        if target in ("keybindings", "all"):
            result.active_keybindings = reconcile_keybindings(paths.keybindings_registry, client)
    except SettingsError as e:
        logger.error("Desktop settings unavailable: %s", e)
        result.error = str(e)

    return result
