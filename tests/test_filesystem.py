"""
Tests for the filesystem primitives — ownership, modes, links, atomic writes.
"""

import os
import stat
from pathlib import Path

from customizer.core.services import filesystem
from customizer.core.services.filesystem import (
    apply_permissions,
    apply_permissions_tree,
    atomic_write_text,
    copy_file,
    create_file,
    create_folder,
    create_symlink,
    ensure_file,
    move,
    remove_tree,
)


def _mode(path: Path) -> int:
    return stat.S_IMODE(path.stat().st_mode)


class TestPermissions:
    def test_mode_normalized(self, identity, tmp_path: Path):
        path = tmp_path / "f"
        path.write_text("x")
        path.chmod(0o600)
        assert apply_permissions(path, identity)
        assert _mode(path) == 0o755

    def test_missing_path_warns(self, identity, tmp_path: Path, caplog):
        assert not apply_permissions(tmp_path / "missing", identity)
        assert "does not exist" in caplog.text

    def test_privileged_chowns_to_invoking_user(self, identity, tmp_path: Path, monkeypatch):
        chowned = []
        monkeypatch.setattr(filesystem.os, "chown", lambda p, uid, gid: chowned.append((Path(p), uid, gid)))
        privileged = identity.model_copy(update={"privileged": True, "uid": 4242, "gid": 4343})

        path = tmp_path / "f"
        path.write_text("x")
        apply_permissions(path, privileged)
        assert chowned == [(path, 4242, 4343)]

    def test_unprivileged_never_chowns(self, identity, tmp_path: Path, monkeypatch):
        def forbidden(*args):
            raise AssertionError("chown called")

        monkeypatch.setattr(filesystem.os, "chown", forbidden)
        path = tmp_path / "f"
        path.write_text("x")
        assert apply_permissions(path, identity)


class TestCreate:
    def test_create_folder_nested(self, identity, tmp_path: Path):
        path = create_folder(tmp_path / "a" / "b", identity)
        assert path.is_dir()
        assert _mode(path) == 0o755

    def test_create_file_content_and_newline(self, identity, tmp_path: Path):
        path = create_file(tmp_path / "sub" / "script.sh", identity, "echo hi")
        assert path == tmp_path / "sub" / "script.sh"
        assert path.read_text() == "echo hi\n"
        assert _mode(path) == 0o755

    def test_create_file_empty_content(self, identity, tmp_path: Path):
        path = create_file(tmp_path / "empty", identity)
        assert path.read_text() == "\n"

    def test_create_file_overwrites(self, identity, tmp_path: Path):
        create_file(tmp_path / "f", identity, "one")
        create_file(tmp_path / "f", identity, "two")
        assert (tmp_path / "f").read_text() == "two\n"

    def test_create_file_rejects_directory_name(self, identity, tmp_path: Path, caplog):
        assert create_file(f"{tmp_path}/dir/", identity, "x") is None
        assert not (tmp_path / "dir").exists()
        assert "not a valid filename" in caplog.text

    def test_create_file_rejects_empty_name(self, identity):
        assert create_file("", identity, "x") is None

    def test_ensure_file_never_truncates(self, identity, tmp_path: Path):
        path = tmp_path / "registry"
        ensure_file(path, identity)
        assert path.read_text() == ""
        path.write_text("keep me\n")
        ensure_file(path, identity)
        assert path.read_text() == "keep me\n"


class TestLinksAndCopies:
    def test_symlink_created(self, identity, tmp_path: Path):
        target = tmp_path / "real"
        target.write_text("x")
        link = create_symlink(target, tmp_path / "bin" / "cmd", identity)
        assert link.is_symlink()
        assert link.resolve() == target

    def test_symlink_replaces_existing(self, identity, tmp_path: Path):
        first = tmp_path / "first"
        second = tmp_path / "second"
        first.write_text("1")
        second.write_text("2")
        link = tmp_path / "cmd"
        create_symlink(first, link, identity)
        create_symlink(second, link, identity)
        assert link.read_text() == "2"

    def test_copy_into_directory(self, identity, tmp_path: Path):
        source = tmp_path / "a.desktop"
        source.write_text("[Desktop Entry]")
        dest_dir = tmp_path / "Desktop"
        dest_dir.mkdir()
        copied = copy_file(source, dest_dir, identity)
        assert copied == dest_dir / "a.desktop"
        assert _mode(copied) == 0o755

    def test_copy_preserve_keeps_mtime(self, identity, tmp_path: Path):
        source = tmp_path / "a"
        source.write_text("x")
        os.utime(source, (1_000_000, 1_000_000))
        copied = copy_file(source, tmp_path / "b", identity, preserve=True)
        assert copied.stat().st_mtime == 1_000_000

    def test_move_into_directory(self, tmp_path: Path):
        source = tmp_path / "font.ttf"
        source.write_text("x")
        dest = tmp_path / "fonts"
        dest.mkdir()
        assert move(source, dest) == dest / "font.ttf"
        assert not source.exists()

    def test_remove_tree(self, tmp_path: Path):
        tree = tmp_path / "tree"
        (tree / "deep").mkdir(parents=True)
        (tree / "deep" / "f").write_text("x")
        remove_tree(tree)
        assert not tree.exists()
        remove_tree(tree)

    def test_remove_dangling_link(self, tmp_path: Path):
        link = tmp_path / "link"
        link.symlink_to(tmp_path / "nowhere")
        remove_tree(link)
        assert not link.is_symlink()


class TestAtomicWrite:
    def test_replaces_content_and_keeps_mode(self, tmp_path: Path):
        path = tmp_path / "mimeapps.list"
        path.write_text("old\n")
        path.chmod(0o640)
        atomic_write_text(path, "new\n")
        assert path.read_text() == "new\n"
        assert _mode(path) == 0o640
        assert list(tmp_path.iterdir()) == [path]

    def test_creates_missing_file(self, tmp_path: Path):
        path = tmp_path / "fresh"
        atomic_write_text(path, "content")
        assert path.read_text() == "content"


# ── Ownership Tests ─────────────────────────────────────────────────


class TestPrivilegedOwnership:
    """Everything a privileged run creates belongs to the invoking user."""

    def _privileged(self, identity):
        return identity.model_copy(update={"privileged": True, "uid": 4242, "gid": 4242})

    def test_new_ancestors_owned(self, identity, tmp_path: Path, owners):
        leaf = tmp_path / "a" / "b" / "c"

        create_folder(leaf, self._privileged(identity))

        assert set(owners) == {tmp_path / "a", tmp_path / "a" / "b", leaf}
        assert set(owners.values()) == {4242}

    def test_existing_ancestors_untouched(self, identity, tmp_path: Path, owners):
        (tmp_path / "a").mkdir()
        create_folder(tmp_path / "a" / "b", self._privileged(identity))
        assert tmp_path / "a" not in owners

    def test_create_file_parents_owned(self, identity, tmp_path: Path, owners):
        path = create_file(tmp_path / "etc" / "app.ini", self._privileged(identity), "[app]")
        assert owners == {tmp_path / "etc": 4242, path: 4242}

    def test_ensure_file_parents_owned(self, identity, tmp_path: Path, owners):
        path = ensure_file(tmp_path / "data" / "favorites.txt", self._privileged(identity))
        assert owners == {tmp_path / "data": 4242, path: 4242}

    def test_symlink_and_parent_owned(self, identity, tmp_path: Path, owners):
        target = tmp_path / "real"
        target.write_text("x")

        link = create_symlink(target, tmp_path / "bin" / "cmd", self._privileged(identity))

        assert owners == {tmp_path / "bin": 4242, link: 4242}

    def test_tree_reowned(self, identity, tmp_path: Path, owners):
        root = tmp_path / "tool"
        (root / "bin").mkdir(parents=True)
        (root / "bin" / "run").write_text("#!/bin/sh")
        (root / "run").symlink_to(root / "bin" / "run")

        apply_permissions_tree(root, self._privileged(identity))

        assert set(owners) == {root, root / "bin", root / "bin" / "run", root / "run"}

    def test_tree_untouched_when_unprivileged(self, identity, tmp_path: Path, owners):
        (tmp_path / "tool").mkdir()
        apply_permissions_tree(tmp_path / "tool", identity)
        assert owners == {}
