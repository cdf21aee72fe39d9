"""
Install use case — from command-line intent to installed features.

Loads the configuration and the feature table, builds the install
context, then runs the whole sequence: pre-install update,
initialization, every requested feature, environment refresh.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from customizer.adapters.registry import AdapterRegistry, default_registry
from customizer.core.config.features_loader import load_features
from customizer.core.config.loader import load_config
from customizer.core.engine.context import InstallContext
from customizer.core.engine.executor import InstallReport, install_features
from customizer.core.models.action import Receipt
from customizer.core.models.identity import Identity
from customizer.core.services.bootstrap import (
    initialize_structures,
    pre_install_update,
    update_environment,
)

logger = logging.getLogger(__name__)


def build_context(
    config_path: Path | None = None,
    features_path: Path | None = None,
    flag_overrides: dict[str, Any] | None = None,
    identity: Identity | None = None,
    registry: AdapterRegistry | None = None,
    mock_mode: bool = False,
) -> InstallContext:
    """Load everything a run needs.

    Raises:
        ConfigError: If the config or the feature table is invalid.
    """
    identity = identity or Identity.detect()
    config = load_config(config_path, identity=identity, flag_overrides=flag_overrides)
    features = load_features(features_path)

    if registry is None:
        registry = default_registry()
        registry.set_mock_mode(mock_mode)

    return InstallContext(
        config=config,
        identity=identity,
        adapters=registry,
        features=features,
    )


@dataclass
class InitResult:
    """Result of initializing the standing structures."""

    receipts: list[Receipt] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {"receipts": [r.model_dump(mode="json") for r in self.receipts]}


@dataclass
class InstallResult:
    """Result of an install run."""

    report: InstallReport = field(default_factory=InstallReport)
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {"report": self.report.to_dict()}


def run_init(ctx: InstallContext, config_path: Path | None = None) -> InitResult:
    """Create the standing directories, registries and built-in scripts."""
    return InitResult(receipts=initialize_structures(ctx, config_path))


def run_install(
    ctx: InstallContext,
    keys: list[str],
    skip_init: bool = False,
    config_path: Path | None = None,
) -> InstallResult:
    """Install ``keys`` in order.

    Raises:
        FatalInstallError: A fatal condition mid-run. Everything done
            up to that point stays in place. Unknown keys are reported
            in ``error`` before anything is touched.
    """
    result = InstallResult()
    report = result.report

    unknown = [k for k in keys if k not in ctx.features]
    if unknown:
        result.error = f"Unknown feature(s): {', '.join(unknown)}"
        return result

    report.receipts.extend(pre_install_update(ctx))
    if not skip_init:
        report.receipts.extend(initialize_structures(ctx, config_path))

    report.features.extend(install_features(keys, ctx).features)

    report.receipts.append(update_environment(ctx))
    logger.info("Finished execution")
    return result
