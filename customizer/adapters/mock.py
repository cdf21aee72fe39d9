"""
Mock adapter — universal test double for all adapter operations.

Used in mock mode to simulate adapter behavior without touching
external tools. Configurable to return success, failure, or custom
responses per action. ``MockSettingsClient`` plays the same role for
the desktop-settings service.
"""

from __future__ import annotations

from customizer.adapters.base import Adapter, ExecutionContext
from customizer.adapters.desktop.gsettings import SettingsClient
from customizer.core.models.action import Receipt
from customizer.core.models.feature import Keybinding


class MockAdapter(Adapter):
    """Universal mock adapter for testing.

    By default, returns success for everything. Can be configured
    with custom responses per action ID, and with a side effect that
    runs on every call (e.g. writing the file a fetch would produce).
    """

    def __init__(
        self,
        adapter_name: str = "mock",
        available: bool = True,
        default_output: str = "[mock] executed",
        side_effect=None,
    ):
        self._name = adapter_name
        self._available = available
        self._default_output = default_output
        self._side_effect = side_effect
        self._responses: dict[str, Receipt] = {}
        self._call_log: list[ExecutionContext] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[ExecutionContext]:
        """All execution contexts this mock has received."""
        return self._call_log

    @property
    def call_count(self) -> int:
        """Number of times execute has been called."""
        return len(self._call_log)

    def calls_for(self, adapter: str) -> list[ExecutionContext]:
        """Calls whose action targeted ``adapter``."""
        return [c for c in self._call_log if c.action.adapter == adapter]

    def is_available(self) -> bool:
        return self._available

    def set_response(self, action_id: str, receipt: Receipt) -> None:
        """Set a custom response for a specific action ID."""
        self._responses[action_id] = receipt

    def set_failure(self, action_id: str, error: str = "Mock failure") -> None:
        """Configure a specific action to fail."""
        self._responses[action_id] = Receipt.failure(
            adapter=self._name,
            action_id=action_id,
            error=error,
        )

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        self._call_log.append(context)

        if self._side_effect is not None:
            self._side_effect(context)

        if context.action.id in self._responses:
            return self._responses[context.action.id]

        return Receipt.success(
            adapter=self._name,
            action_id=context.action.id,
            output=self._default_output,
            metadata={"mock": True},
        )

    def reset(self) -> None:
        """Clear call log and custom responses."""
        self._call_log.clear()
        self._responses.clear()


class MockSettingsClient(SettingsClient):
    """In-memory desktop-settings service."""

    def __init__(
        self,
        favorites: list[str] | None = None,
        active: list[str] | None = None,
        slots: dict[str, Keybinding] | None = None,
    ):
        self.favorites = list(favorites or [])
        self.active = list(active or [])
        self.slots: dict[str, Keybinding] = dict(slots or {})
        self.writes: list[str] = []

    def get_favorites(self) -> list[str]:
        return list(self.favorites)

    def set_favorites(self, favorites: list[str]) -> None:
        self.writes.append("favorites")
        self.favorites = list(favorites)

    def get_active_keybindings(self) -> list[str]:
        return list(self.active)

    def set_active_keybindings(self, paths: list[str]) -> None:
        self.writes.append("active")
        self.active = list(paths)

    def get_keybinding(self, slot_path: str) -> Keybinding:
        return self.slots.get(slot_path, Keybinding())

    def set_keybinding(self, slot_path: str, keybinding: Keybinding) -> None:
        self.writes.append(slot_path)
        self.slots[slot_path] = keybinding
