"""
Tests for artifact download — destination resolution and the cache.
"""

from pathlib import Path

import pytest

from customizer.core.engine.context import FatalInstallError
from customizer.core.services.download import PLACEHOLDER_FILENAME, download, resolve_location

URL = "https://example.com/releases/tool-1.0.tar.gz"


# ── Destination Resolution Tests ────────────────────────────────────


class TestResolveLocation:
    def test_nothing(self, tmp_path: Path):
        location = resolve_location(None, tmp_path)
        assert location.directory == tmp_path
        assert location.filename == PLACEHOLDER_FILENAME

    def test_bare_name(self, tmp_path: Path):
        location = resolve_location("pkg.deb", tmp_path)
        assert location.path == tmp_path / "pkg.deb"

    def test_absolute_existing_directory(self, tmp_path: Path):
        target = tmp_path / "fonts"
        target.mkdir()
        location = resolve_location(str(target), tmp_path / "artifacts")
        assert location.directory == target
        assert location.filename == PLACEHOLDER_FILENAME

    def test_absolute_file_path(self, tmp_path: Path):
        location = resolve_location(tmp_path / "archive.zip", tmp_path / "artifacts")
        assert location.directory == tmp_path
        assert location.filename == "archive.zip"

    def test_relative_path_with_slash(self, tmp_path: Path):
        (tmp_path / "vlc").mkdir()
        location = resolve_location("vlc/icon.svg", tmp_path)
        assert location.path == tmp_path / "vlc" / "icon.svg"

    def test_missing_parent_is_fatal(self, tmp_path: Path):
        with pytest.raises(FatalInstallError, match="does not exist"):
            resolve_location(tmp_path / "missing" / "file", tmp_path)

    def test_missing_parent_ok_when_not_downloading(self, tmp_path: Path):
        location = resolve_location(tmp_path / "missing" / "file", tmp_path, for_download=False)
        assert location.directory == tmp_path / "missing"


# ── Download and Cache Tests ────────────────────────────────────────


@pytest.fixture
def served(remote):
    remote[URL] = b"archive-bytes"
    return remote


class TestDownload:
    def test_fetch_into_artifacts(self, ctx, served, mock_adapter):
        ctx.paths.artifacts_dir.mkdir(parents=True)
        receipt = download(ctx, URL, "tool.tar.gz", feature="tool")

        assert receipt.ok
        target = ctx.paths.artifacts_dir / "tool.tar.gz"
        assert target.read_bytes() == b"archive-bytes"
        assert receipt.metadata["path"] == str(target)
        fetch = mock_adapter.calls_for("http")[0].action
        assert fetch.params["url"] == URL
        assert fetch.for_feature == "tool"

    def test_second_download_served_from_cache(self, ctx, served, mock_adapter):
        ctx.paths.artifacts_dir.mkdir(parents=True)
        download(ctx, URL, "tool.tar.gz")
        (ctx.paths.artifacts_dir / "tool.tar.gz").unlink()

        receipt = download(ctx, URL, "tool.tar.gz")

        assert receipt.ok
        assert receipt.metadata["cached"] is True
        assert len(mock_adapter.calls_for("http")) == 1
        target = ctx.paths.artifacts_dir / "tool.tar.gz"
        assert target.read_bytes() == (ctx.paths.cache_dir / "tool.tar.gz").read_bytes()

    def test_cache_keyed_by_filename_only(self, ctx, served, remote, mock_adapter):
        ctx.paths.artifacts_dir.mkdir(parents=True)
        remote["https://mirror.example.com/other"] = b"different"
        download(ctx, URL, "tool.tar.gz")

        download(ctx, "https://mirror.example.com/other", "tool.tar.gz")

        assert len(mock_adapter.calls_for("http")) == 1
        assert (ctx.paths.artifacts_dir / "tool.tar.gz").read_bytes() == b"archive-bytes"

    def test_cache_disabled(self, ctx, served, mock_adapter):
        ctx.paths.artifacts_dir.mkdir(parents=True)
        ctx.config.flags.cache = False

        download(ctx, URL, "tool.tar.gz")
        download(ctx, URL, "tool.tar.gz")

        assert len(mock_adapter.calls_for("http")) == 2
        assert not (ctx.paths.cache_dir / "tool.tar.gz").exists()
        assert not (ctx.paths.temp_dir / "tool.tar.gz").exists()
        assert (ctx.paths.artifacts_dir / "tool.tar.gz").is_file()

    def test_failed_fetch_leaves_no_file(self, ctx, mock_adapter):
        ctx.paths.artifacts_dir.mkdir(parents=True)
        mock_adapter.set_failure("download:fetch:tool.tar.gz", "404 Not Found")

        receipt = download(ctx, URL, "tool.tar.gz")

        assert receipt.failed
        assert not (ctx.paths.artifacts_dir / "tool.tar.gz").exists()
        assert not (ctx.paths.cache_dir / "tool.tar.gz").exists()

    def test_fetch_without_file_is_failure(self, ctx):
        ctx.paths.artifacts_dir.mkdir(parents=True)
        receipt = download(ctx, "https://example.com/unserved", "x.bin")
        assert receipt.failed
        assert "produced no file" in receipt.error

    def test_missing_destination_parent_is_fatal(self, ctx, served):
        with pytest.raises(FatalInstallError):
            download(ctx, URL, ctx.paths.artifacts_dir / "nope" / "tool.tar.gz")

    def test_privileged_folders_and_copies_owned(self, privileged_ctx, served, owners):
        paths = privileged_ctx.paths
        paths.artifacts_dir.mkdir(parents=True)

        download(privileged_ctx, URL, "tool.tar.gz")

        for path in (
            paths.temp_dir,
            paths.cache_dir,
            paths.cache_dir / "tool.tar.gz",
            paths.artifacts_dir / "tool.tar.gz",
        ):
            assert owners[path] == 4242
