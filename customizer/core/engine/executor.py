"""
Engine executor — the per-feature installation loop.

Flow per feature:
    resolve descriptor → provisioning strategy → applicable installer steps

Features run one after another, each fully processed before the next.
A step that raises an ordinary exception is recorded as a failed
receipt and the remaining steps still run. ``FatalInstallError``
aborts the whole run; nothing already done is rolled back.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from customizer.core.engine.context import FatalInstallError, InstallContext
from customizer.core.models.action import Receipt
from customizer.core.services.installers import INSTALLER_PIPELINE, InstallerStep
from customizer.core.services.strategies import STRATEGIES

logger = logging.getLogger(__name__)


@dataclass
class FeatureReport:
    """Receipts of one feature's installation."""

    key: str
    receipts: list[Receipt] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.receipts if r.failed)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.receipts if r.skipped)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.receipts if r.ok)

    @property
    def status(self) -> str:
        if self.failed == 0:
            return "ok"
        if self.succeeded > 0:
            return "partial"
        return "failed"

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "status": self.status,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "receipts": [r.model_dump(mode="json") for r in self.receipts],
        }


@dataclass
class InstallReport:
    """Result of installing a list of features."""

    features: list[FeatureReport] = field(default_factory=list)
    receipts: list[Receipt] = field(default_factory=list)   # run-level hooks

    @property
    def failed(self) -> int:
        return sum(f.failed for f in self.features) + sum(1 for r in self.receipts if r.failed)

    @property
    def all_ok(self) -> bool:
        return self.failed == 0

    @property
    def status(self) -> str:
        if self.all_ok:
            return "ok"
        if any(f.status != "failed" for f in self.features):
            return "partial"
        return "failed"

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "failed": self.failed,
            "features": [f.to_dict() for f in self.features],
            "receipts": [r.model_dump(mode="json") for r in self.receipts],
        }


def _run_step(step: InstallerStep, feature, ctx: InstallContext) -> Receipt:
    """Apply a step, turning ordinary exceptions into a failed receipt."""
    try:
        return step.apply(feature, ctx)
    except FatalInstallError:
        raise
    except Exception as e:
        logger.error("%s: %s failed: %s", feature.key, step.name, e)
        return Receipt.failure(
            adapter="installer",
            action_id=f"{feature.key}:{step.name}",
            error=f"{type(e).__name__}: {e}",
        )


def install_feature(
    key: str,
    ctx: InstallContext,
    pipeline: Sequence[InstallerStep] = INSTALLER_PIPELINE,
) -> FeatureReport:
    """Install one feature: its strategy, then every applicable step.

    Raises:
        FatalInstallError: Unknown key, or a fatal condition in a step.
    """
    feature = ctx.features.get(key)
    if feature is None:
        raise FatalInstallError(f"Unknown feature: {key}")

    logger.info("Installing %s", feature.label)
    report = FeatureReport(key=key)

    if feature.installation_type is not None:
        strategy = STRATEGIES[feature.installation_type]
        try:
            report.receipts.append(strategy.provision(feature, ctx))
        except FatalInstallError:
            raise
        except Exception as e:
            logger.error("%s: provisioning failed: %s", key, e)
            report.receipts.append(
                Receipt.failure(
                    adapter="strategy",
                    action_id=f"{key}:provision",
                    error=f"{type(e).__name__}: {e}",
                )
            )

    for step in pipeline:
        if step.applies_to(feature, ctx):
            report.receipts.append(_run_step(step, feature, ctx))

    if report.failed:
        logger.warning("%s installed with %d failed step(s)", feature.label, report.failed)
    else:
        logger.info("%s installed", feature.label)
    return report


def install_features(keys: Iterable[str], ctx: InstallContext) -> InstallReport:
    """Install features in order.

    Every key is checked before anything is installed.

    Raises:
        FatalInstallError: Unknown key, or a fatal condition in a feature.
    """
    keys = list(keys)
    unknown = [k for k in keys if k not in ctx.features]
    if unknown:
        raise FatalInstallError(f"Unknown feature(s): {', '.join(unknown)}")

    report = InstallReport()
    for key in keys:
        report.features.append(install_feature(key, ctx))
    return report
