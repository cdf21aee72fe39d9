"""
Installation-type strategies — how a feature's payload is provisioned.

Each strategy turns a resolved feature into a provisioned one in a
single pass, without retries. Package-manager calls, clones and venv
operations go through the adapter registry; a failed call is recorded
in the strategy's receipt and provisioning carries on (best effort).
A missing archive is fatal (``FatalInstallError`` from decompress).
"""

from __future__ import annotations

import logging
import shlex
from abc import ABC, abstractmethod
from pathlib import Path

from customizer.core.engine.context import InstallContext
from customizer.core.models.action import Receipt
from customizer.core.models.feature import FeatureDescriptor, InstallationType
from customizer.core.services.archives import decompress
from customizer.core.services.download import download
from customizer.core.services.filesystem import create_folder, remove_tree
from customizer.core.services.installers import anticollision_names

logger = logging.getLogger(__name__)

ADAPTER = "strategy"


class InstallationStrategy(ABC):
    """Provisioning for one installation type."""

    installation_type: InstallationType

    @abstractmethod
    def steps(self, feature: FeatureDescriptor, ctx: InstallContext) -> list[Receipt]:
        """Provision ``feature``, one receipt per external operation."""

    def provision(self, feature: FeatureDescriptor, ctx: InstallContext) -> Receipt:
        """Provision ``feature`` and fold the receipts into one."""
        logger.info("Provisioning %s (%s)", feature.label, self.installation_type.value)
        return Receipt.combine(
            ADAPTER,
            f"{feature.key}:provision:{self.installation_type.value}",
            self.steps(feature, ctx),
        )


class SystemPackageStrategy(InstallationStrategy):
    """Install through the system package manager.

    Dependencies first, then the first source present of: a compressed
    file full of packages, package-file URLs, or package names.
    """

    installation_type = InstallationType.SYSTEM_PACKAGE

    def steps(self, feature, ctx):
        pm = ctx.package_manager
        key = feature.key
        receipts = []

        for dependency in feature.package_dependencies:
            receipts.append(
                ctx.shell(f"{pm.install} {shlex.quote(dependency)}", f"{key}:dependency:{dependency}", key)
            )

        if feature.compressed_file_url:
            archive = ctx.paths.artifacts_dir / f"{key}_package_compressed_file"
            receipts.append(download(ctx, feature.compressed_file_url, archive, feature=key))
            decompress(ctx, feature.compressed_file_type or "", archive, rename=key)
            packages_dir = ctx.feature_dir(key)
            receipts.append(
                ctx.shell(f"{pm.install_packages} {shlex.quote(str(packages_dir))}", f"{key}:install_packages", key)
            )
            remove_tree(packages_dir)
            receipts.append(ctx.shell(pm.fix_broken, f"{key}:fix_broken", key))

        elif feature.package_urls:
            names = anticollision_names(f"{key}_package_file", len(feature.package_urls))
            for name, url in zip(names, feature.package_urls):
                package_file = ctx.paths.artifacts_dir / name
                receipts.append(download(ctx, url, package_file, feature=key))
                receipts.append(
                    ctx.shell(f"{pm.install_package} {shlex.quote(str(package_file))}", f"{key}:install_package:{name}", key)
                )
                remove_tree(package_file)
                receipts.append(ctx.shell(pm.fix_broken, f"{key}:fix_broken", key))

        else:
            for package in feature.package_names:
                receipts.append(ctx.shell(f"{pm.install} {shlex.quote(package)}", f"{key}:install:{package}", key))
                receipts.append(ctx.shell(pm.fix_broken, f"{key}:fix_broken", key))

        return receipts


class ArchiveInheritStrategy(InstallationStrategy):
    """Download an archive and make its contents the feature directory."""

    installation_type = InstallationType.ARCHIVE_INHERIT

    def steps(self, feature, ctx):
        key = feature.key
        if feature.compressed_file_path_override:
            target_dir = ctx.expand_user_path(feature.compressed_file_path_override)
        else:
            target_dir = ctx.paths.artifacts_dir
        create_folder(target_dir, ctx.identity)

        archive = target_dir / f"{key}_compressed_file"
        fetched = download(ctx, feature.compressed_file_url, archive, feature=key)
        rename = None if feature.do_not_inherit else key
        extracted = decompress(ctx, feature.compressed_file_type or "", archive, rename=rename)

        return [
            fetched,
            Receipt.success(
                adapter=ADAPTER,
                action_id=f"{key}:decompress",
                output=f"Decompressed into {extracted}",
                metadata={"directory": str(extracted), "inherit": rename is not None},
            ),
        ]


class IsolatedEnvironmentStrategy(InstallationStrategy):
    """Build a private virtual environment at ``<artifacts>/<key>``."""

    installation_type = InstallationType.ISOLATED_ENVIRONMENT

    def steps(self, feature, ctx):
        key = feature.key
        venv = str(ctx.feature_dir(key))
        remove_tree(ctx.feature_dir(key))

        def python(operation: str, action_id: str, **params) -> Receipt:
            return ctx.run(
                "python",
                f"{key}:{action_id}",
                {"operation": operation, "venv": venv, **params},
                feature=key,
            )

        receipts = [
            python("venv", "venv"),
            python("pip_install", "upgrade_pip", packages=["pip"], upgrade=True),
            python("pip_install", "wheel", packages=["wheel"]),
        ]
        for package in feature.pip_installations:
            receipts.append(python("pip_install", f"pip:{package}", packages=[package]))
        for command in feature.python_commands:
            receipts.append(python("module", f"module:{command}", module=command))
        return receipts


class RepositoryCloneStrategy(InstallationStrategy):
    """Clone the feature's repository into ``<artifacts>/<key>``."""

    installation_type = InstallationType.REPOSITORY_CLONE

    def steps(self, feature, ctx):
        key = feature.key
        dest = ctx.feature_dir(key)
        remove_tree(dest)
        create_folder(dest, ctx.identity)
        return [
            ctx.run(
                "git",
                f"{key}:clone",
                {"operation": "clone", "url": feature.repository_url, "dest": str(dest)},
                feature=key,
            )
        ]


STRATEGIES: dict[InstallationType, InstallationStrategy] = {
    strategy.installation_type: strategy
    for strategy in (
        SystemPackageStrategy(),
        ArchiveInheritStrategy(),
        IsolatedEnvironmentStrategy(),
        RepositoryCloneStrategy(),
    )
}
