"""
Tests for CLI commands — init, install, list, reconcile, and global options.
"""

import json
import textwrap
from pathlib import Path
from types import SimpleNamespace

import pytest
from click.testing import CliRunner

from customizer.adapters.desktop.gsettings import SettingsError
from customizer.adapters.mock import MockSettingsClient
from customizer.main import cli

FEATURES = textwrap.dedent("""\
    features:
      l:
        name: l
        description: Detailed listing
        bashfunctions:
          - alias l="ls -lAh"
      vlc:
        name: VLC
        installationtype: systempackage
        packagenames: [vlc]
        keybindings:
          - "vlc;<Super>v;VLC"
      broken-archive:
        installationtype: archiveinherit
        compressedfileurl: https://example.com/never.tar.gz
        compressedfiletype: z
""")


@pytest.fixture
def env(tmp_path: Path, home: Path, monkeypatch):
    """A throwaway home, config and feature table for CLI runs."""
    monkeypatch.setenv("HOME", str(home))
    for var in (
        "SUDO_USER",
        "CUSTOMIZER_CONFIG",
        "CUSTOMIZER_LOG_LEVEL",
        "CUSTOMIZER_LOG_FILE",
        "CUSTOMIZER_LOG_FILE_LEVEL",
    ):
        monkeypatch.delenv(var, raising=False)

    config = tmp_path / "customizer.yml"
    config.write_text(
        "paths:\n"
        f"  all_users_launchers_dir: {tmp_path / 'usr' / 'share' / 'applications'}\n"
        f"  all_users_path_dir: {tmp_path / 'usr' / 'bin'}\n"
    )
    features = tmp_path / "features.yml"
    features.write_text(FEATURES)
    return SimpleNamespace(home=home, config=config, features=features)


def invoke(env, *args):
    runner = CliRunner()
    return runner.invoke(
        cli, ["--config", str(env.config), "--features", str(env.features), *args]
    )


class TestCLIGlobal:
    """Tests for global CLI behavior."""

    def test_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Linux Auto-Customizer" in result.output

    def test_version(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_install_help_lists_flags(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["install", "--help"])
        assert result.exit_code == 0
        for flag in ("--favorites", "--autostart", "--no-cache", "--upgrade", "--skip-init"):
            assert flag in result.output


class TestListCommand:
    def test_bundled_table(self, env):
        runner = CliRunner()
        result = runner.invoke(cli, ["list"])
        assert result.exit_code == 0
        assert "vlc [systempackage]" in result.output
        assert "l [environmental]" in result.output

    def test_json(self, env):
        result = invoke(env, "list", "--json")
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert [f["key"] for f in data] == ["l", "vlc", "broken-archive"]
        assert data[0]["installation_type"] is None
        assert data[1]["installation_type"] == "systempackage"

    def test_invalid_table(self, env):
        env.features.write_text("bad:\n  installationtype: archiveinherit\n")
        result = invoke(env, "list")
        assert result.exit_code == 1
        assert "bad" in result.output


class TestInitCommand:
    def test_creates_structures(self, env):
        result = invoke(env, "init")
        assert result.exit_code == 0
        data_dir = env.home / ".customizer" / "data"
        assert (data_dir / "functions.sh").is_file()
        assert (data_dir / "initializations" / "favorites.sh").is_file()
        assert 'source "' in (env.home / ".bashrc").read_text()

    def test_reconcile_scripts_use_config(self, env):
        invoke(env, "init")
        script = env.home / ".customizer" / "data" / "initializations" / "keybinding.sh"
        assert f"--config {env.config}" in script.read_text()

    def test_invalid_config(self, env):
        env.config.write_text("flags:\n  upgrade: 9\n")
        result = invoke(env, "init")
        assert result.exit_code == 1
        assert "Invalid configuration" in result.output


class TestInstallCommand:
    def test_environmental_feature(self, env):
        result = invoke(env, "install", "l", "--mock")
        assert result.exit_code == 0, result.output
        assert "Result: ok" in result.output
        script = env.home / ".customizer" / "data" / "functions" / "l.sh"
        assert script.read_text() == 'alias l="ls -lAh"\n'

    def test_system_package_in_mock_mode(self, env):
        result = invoke(env, "-q", "-q", "install", "vlc", "--mock", "--json")
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        feature = data["report"]["features"][0]
        assert feature["key"] == "vlc"
        assert feature["status"] == "ok"
        registry = env.home / ".customizer" / "data" / "keybindings.txt"
        assert registry.read_text() == "vlc;<Super>v;VLC\n"

    def test_unknown_feature(self, env):
        result = invoke(env, "install", "l", "ghost", "--mock")
        assert result.exit_code == 1
        assert "Unknown feature(s): ghost" in result.output
        assert not (env.home / ".customizer").exists()

    def test_fatal_error(self, env):
        result = invoke(env, "install", "broken-archive", "--mock")
        assert result.exit_code == 1
        assert "does not exist" in result.output

    def test_requires_a_key(self, env):
        result = invoke(env, "install")
        assert result.exit_code == 2

    def test_upgrade_range(self, env):
        result = invoke(env, "install", "l", "--upgrade", "3")
        assert result.exit_code == 2

    def test_quiet_and_verbose(self, env):
        assert invoke(env, "-q", "-q", "install", "l", "--mock").exit_code == 0
        assert invoke(env, "-v", "install", "l", "--mock", "--skip-init").exit_code == 0

    def test_configured_quietness_silences_progress(self, env):
        env.config.write_text(env.config.read_text() + "flags:\n  quietness: 2\n")

        result = invoke(env, "install", "l", "--mock")

        assert result.exit_code == 0, result.output
        assert "Initializing data" not in result.output
        assert "Finished execution" not in result.output

    def test_default_quietness_shows_progress(self, env):
        result = invoke(env, "install", "l", "--mock")
        assert "Finished execution" in result.output

    def test_verbose_option_beats_configured_quietness(self, env):
        env.config.write_text(env.config.read_text() + "flags:\n  quietness: 2\n")
        result = invoke(env, "-v", "install", "l", "--mock")
        assert "Finished execution" in result.output

    def test_log_level_env_beats_configured_quietness(self, env, monkeypatch):
        env.config.write_text(env.config.read_text() + "flags:\n  quietness: 2\n")
        monkeypatch.setenv("CUSTOMIZER_LOG_LEVEL", "INFO")
        result = invoke(env, "install", "l", "--mock")
        assert "Finished execution" in result.output


class TestReconcileCommand:
    def _queue(self, env):
        data_dir = env.home / ".customizer" / "data"
        data_dir.mkdir(parents=True)
        (data_dir / "favorites.txt").write_text("vlc.desktop\n")
        (data_dir / "keybindings.txt").write_text("vlc;<Super>v;VLC\n")

    def test_applies_registries(self, env, monkeypatch):
        self._queue(env)
        client = MockSettingsClient()
        monkeypatch.setattr("customizer.core.use_cases.reconcile.GSettingsClient", lambda: client)

        result = invoke(env, "reconcile")

        assert result.exit_code == 0, result.output
        assert "favorite vlc.desktop" in result.output
        assert client.favorites == ["vlc.desktop"]
        assert client.slots

    def test_json(self, env, monkeypatch):
        self._queue(env)
        client = MockSettingsClient()
        monkeypatch.setattr("customizer.core.use_cases.reconcile.GSettingsClient", lambda: client)

        result = invoke(env, "-q", "-q", "reconcile", "favorites", "--json")

        assert result.exit_code == 0
        assert json.loads(result.stdout)["favorites_added"] == ["vlc.desktop"]
        assert client.slots == {}

    def test_settings_unavailable(self, env, monkeypatch):
        self._queue(env)

        class Unavailable(MockSettingsClient):
            def get_favorites(self):
                raise SettingsError("gsettings not found")

        monkeypatch.setattr("customizer.core.use_cases.reconcile.GSettingsClient", Unavailable)

        result = invoke(env, "reconcile", "favorites")

        assert result.exit_code == 1
        assert "gsettings not found" in result.output

    def test_unknown_target(self, env):
        assert invoke(env, "reconcile", "wallpaper").exit_code == 2
