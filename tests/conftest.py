"""
Shared fixtures for the customizer test suite.

Every test runs against a throwaway home under ``tmp_path`` with an
unprivileged identity, so nothing touches the real system even when
the suite runs as root.
"""

import logging
import os
import pwd
from pathlib import Path

import pytest

from customizer.adapters.mock import MockAdapter
from customizer.adapters.registry import AdapterRegistry
from customizer.core.engine.context import InstallContext
from customizer.core.models.config import CustomizerConfig, PathsConfig
from customizer.core.models.feature import FeatureDescriptor
from customizer.core.models.identity import Identity


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """CLI runs reconfigure the root logger; put it back after each test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def make_feature():
    """Build descriptors the way the feature table loader does."""

    def build(key: str, **attributes) -> FeatureDescriptor:
        return FeatureDescriptor.model_validate({**attributes, "key": key})

    return build


@pytest.fixture
def home(tmp_path: Path) -> Path:
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def identity(home: Path) -> Identity:
    return Identity(
        user=pwd.getpwuid(os.getuid()).pw_name,
        uid=os.getuid(),
        gid=os.getgid(),
        home=home,
        privileged=False,
    )


@pytest.fixture
def paths(home: Path, tmp_path: Path) -> PathsConfig:
    return PathsConfig.for_home(
        home,
        all_users_launchers_dir=tmp_path / "usr" / "share" / "applications",
        all_users_path_dir=tmp_path / "usr" / "bin",
    )


@pytest.fixture
def config(paths: PathsConfig) -> CustomizerConfig:
    return CustomizerConfig(paths=paths)


@pytest.fixture
def remote() -> dict[str, bytes]:
    """URL → payload served by the mock ``http`` adapter."""
    return {}


@pytest.fixture
def mock_adapter(remote: dict[str, bytes]) -> MockAdapter:
    """Mock that also materializes fetches of URLs found in ``remote``."""

    def fetch(context):
        if context.action.adapter != "http":
            return
        url = context.action.params["url"]
        if url in remote:
            Path(context.action.params["dest"]).write_bytes(remote[url])

    return MockAdapter(side_effect=fetch)


@pytest.fixture
def registry(mock_adapter: MockAdapter) -> AdapterRegistry:
    registry = AdapterRegistry()
    registry.set_mock_mode(True, mock_adapter=mock_adapter)
    return registry


@pytest.fixture
def ctx(config: CustomizerConfig, identity: Identity, registry: AdapterRegistry) -> InstallContext:
    return InstallContext(config=config, identity=identity, adapters=registry)


@pytest.fixture
def system_launcher(paths: PathsConfig):
    """Factory writing ``<name>.desktop`` into the all-users launcher dir."""

    def write(name: str, content: str = "[Desktop Entry]\nType=Application") -> Path:
        paths.all_users_launchers_dir.mkdir(parents=True, exist_ok=True)
        launcher = paths.all_users_launchers_dir / f"{name}.desktop"
        launcher.write_text(content + "\n")
        return launcher

    return write


@pytest.fixture
def owners(monkeypatch) -> dict[Path, int]:
    """Record ``chown``/``lchown`` calls instead of performing them: path → uid."""
    recorded: dict[Path, int] = {}

    def chown(path, uid, gid):
        recorded[Path(path)] = uid

    monkeypatch.setattr(os, "chown", chown)
    monkeypatch.setattr(os, "lchown", chown)
    return recorded


@pytest.fixture
def privileged_ctx(ctx: InstallContext, owners: dict[Path, int]) -> InstallContext:
    """``ctx`` as a sudo run on behalf of uid 4242."""
    ctx.identity = ctx.identity.model_copy(update={"privileged": True, "uid": 4242, "gid": 4242})
    return ctx
