"""
Install context — everything an installer step needs for one run.

The context bundles the configuration, the identity that owns created
files, the adapter registry and the feature table. It is built once
per run and passed explicitly to every strategy and step.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from customizer.adapters.registry import AdapterRegistry
from customizer.core.models.action import Action, Receipt
from customizer.core.models.config import CustomizerConfig
from customizer.core.models.feature import FeatureDescriptor
from customizer.core.models.identity import Identity

logger = logging.getLogger(__name__)


class FatalInstallError(Exception):
    """An error that aborts the whole run (exit status 1, no rollback)."""


@dataclass
class InstallContext:
    """Per-run state shared by strategies and installer steps."""

    config: CustomizerConfig
    identity: Identity
    adapters: AdapterRegistry
    features: dict[str, FeatureDescriptor] = field(default_factory=dict)

    @property
    def paths(self):
        return self.config.paths

    @property
    def flags(self):
        return self.config.flags

    @property
    def package_manager(self):
        return self.config.package_manager

    @property
    def privileged(self) -> bool:
        return self.identity.privileged

    # ── Location helpers ────────────────────────────────────────

    def feature_dir(self, key: str) -> Path:
        """``<artifacts>/<key>``."""
        return self.paths.artifacts_dir / key

    @property
    def launchers_dir(self) -> Path:
        """Where manual launchers are written (depends on privilege)."""
        if self.privileged:
            return self.paths.all_users_launchers_dir
        return self.paths.personal_launchers_dir

    @property
    def path_dir(self) -> Path:
        """Where path-exposed binaries are linked (depends on privilege)."""
        if self.privileged:
            return self.paths.all_users_path_dir
        return self.paths.path_dir

    def expand_user_path(self, value: str) -> Path:
        """Expand a leading ``~`` against the invoking user's home."""
        if value == "~" or value.startswith("~/"):
            return self.identity.home / value[2:]
        return Path(value)

    def find_launcher(self, name: str) -> Path | None:
        """Locate ``<name>.desktop``, all-users directory first."""
        filename = f"{name}.desktop"
        for directory in (self.paths.all_users_launchers_dir, self.paths.personal_launchers_dir):
            candidate = directory / filename
            if candidate.is_file():
                return candidate
        return None

    # ── External actions ────────────────────────────────────────

    def run(
        self,
        adapter: str,
        action_id: str,
        params: dict[str, Any],
        feature: str | None = None,
        name: str = "",
    ) -> Receipt:
        """Build an Action and execute it through the adapter registry."""
        action = Action(
            id=action_id,
            name=name,
            adapter=adapter,
            params=params,
            for_feature=feature,
        )
        receipt = self.adapters.execute_action(action)
        if receipt.failed:
            logger.warning("%s failed: %s", action_id, receipt.error)
        else:
            logger.debug("%s: %s", action_id, receipt.status)
        return receipt

    def shell(self, command: str, action_id: str, feature: str | None = None) -> Receipt:
        """Run a shell command (package-manager calls and the like)."""
        logger.info("Running: %s", command)
        return self.run("shell", action_id, {"command": command}, feature=feature)
