"""
Desktop settings client — favorites and custom keybindings.

Reconciliation talks to the desktop through ``SettingsClient``.
``GSettingsClient`` is the production binding over the ``gsettings``
CLI of GNOME; tests use ``MockSettingsClient``.
"""

from __future__ import annotations

import ast
import logging
import shutil
import subprocess
from abc import ABC, abstractmethod

from customizer.core.models.feature import Keybinding

logger = logging.getLogger(__name__)

FAVORITES_SCHEMA = "org.gnome.shell"
FAVORITES_KEY = "favorite-apps"

MEDIA_KEYS_SCHEMA = "org.gnome.settings-daemon.plugins.media-keys"
CUSTOM_KEYBINDINGS_KEY = "custom-keybindings"
CUSTOM_KEYBINDING_SCHEMA = f"{MEDIA_KEYS_SCHEMA}.custom-keybinding"
CUSTOM_KEYBINDINGS_PATH = "/org/gnome/settings-daemon/plugins/media-keys/custom-keybindings"


def keybinding_slot_path(index: int) -> str:
    """Settings path of the custom keybinding slot ``index``."""
    return f"{CUSTOM_KEYBINDINGS_PATH}/custom{index}/"


def parse_value(raw: str):
    """Parse a GVariant text value as printed by ``gsettings get``.

    Handles strings and string arrays, including the typed empty
    array ``@as []``.
    """
    text = raw.strip()
    if text.startswith("@as "):
        text = text[len("@as "):]
    if not text:
        return ""
    return ast.literal_eval(text)


def format_string(value: str) -> str:
    """Render a string as a GVariant string literal."""
    return repr(value)


def format_list(values: list[str]) -> str:
    """Render a list of strings as a GVariant array literal."""
    return "[" + ", ".join(format_string(v) for v in values) + "]"


class SettingsError(Exception):
    """Raised when the settings service cannot be read or written."""


class SettingsClient(ABC):
    """Typed access to the desktop-settings keys the installer manages."""

    @abstractmethod
    def get_favorites(self) -> list[str]:
        """Launcher file names pinned to the dock."""

    @abstractmethod
    def set_favorites(self, favorites: list[str]) -> None:
        ...

    @abstractmethod
    def get_active_keybindings(self) -> list[str]:
        """Slot paths of the custom keybindings the desktop honours."""

    @abstractmethod
    def set_active_keybindings(self, paths: list[str]) -> None:
        ...

    @abstractmethod
    def get_keybinding(self, slot_path: str) -> Keybinding:
        """Contents of one slot; an unoccupied slot has an empty name."""

    @abstractmethod
    def set_keybinding(self, slot_path: str, keybinding: Keybinding) -> None:
        ...


class GSettingsClient(SettingsClient):
    """``SettingsClient`` over the ``gsettings`` command."""

    def __init__(self, executable: str = "gsettings"):
        self._executable = executable

    def is_available(self) -> bool:
        return shutil.which(self._executable) is not None

    def get_favorites(self) -> list[str]:
        return list(parse_value(self._get(FAVORITES_SCHEMA, FAVORITES_KEY)) or [])

    def set_favorites(self, favorites: list[str]) -> None:
        self._set(FAVORITES_SCHEMA, FAVORITES_KEY, format_list(favorites))

    def get_active_keybindings(self) -> list[str]:
        return list(parse_value(self._get(MEDIA_KEYS_SCHEMA, CUSTOM_KEYBINDINGS_KEY)) or [])

    def set_active_keybindings(self, paths: list[str]) -> None:
        self._set(MEDIA_KEYS_SCHEMA, CUSTOM_KEYBINDINGS_KEY, format_list(paths))

    def get_keybinding(self, slot_path: str) -> Keybinding:
        schema = f"{CUSTOM_KEYBINDING_SCHEMA}:{slot_path}"
        return Keybinding(
            command=parse_value(self._get(schema, "command")),
            binding=parse_value(self._get(schema, "binding")),
            name=parse_value(self._get(schema, "name")),
        )

    def set_keybinding(self, slot_path: str, keybinding: Keybinding) -> None:
        schema = f"{CUSTOM_KEYBINDING_SCHEMA}:{slot_path}"
        self._set(schema, "name", format_string(keybinding.name))
        self._set(schema, "command", format_string(keybinding.command))
        self._set(schema, "binding", format_string(keybinding.binding))

    # ── Subprocess plumbing ─────────────────────────────────────

    def _run(self, *args: str) -> str:
        cmd = [self._executable, *args]
        logger.debug("Executing: %s", " ".join(cmd))
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except OSError as e:
            raise SettingsError(f"Cannot run {self._executable}: {e}") from e
        if result.returncode != 0:
            raise SettingsError(
                result.stderr.strip() or f"{' '.join(cmd)} exited with {result.returncode}"
            )
        return result.stdout

    def _get(self, schema: str, key: str) -> str:
        return self._run("get", schema, key)

    def _set(self, schema: str, key: str, value: str) -> None:
        self._run("set", schema, key, value)
