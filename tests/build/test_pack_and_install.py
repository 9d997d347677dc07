"""Tests for packing and installing libraries."""

from __future__ import annotations

import io
import tarfile
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from pathlib import Path

from relative_deps.build.install import (
    ArchiveError,
    InstallError,
    archive_file_name,
    extract_archive,
    pack_and_install,
    replace_installed,
    temporary_archive,
)
from relative_deps.build.runner import CommandError
from tests.fixtures.fake_yarn import FakeYarnRunner, make_library


def make_tarball(path: Path, members: dict[str, bytes]) -> Path:
    with tarfile.open(path, "w:gz") as tf:
        for name, data in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tf.addfile(info, io.BytesIO(data))
    return path


class TestArchiveFileName:
    """Tests for archive_file_name."""

    def test_plain_name(self) -> None:
        assert archive_file_name("foo", 123) == "foo123.tgz"

    def test_scoped_name(self) -> None:
        assert archive_file_name("@scope/foo", 123) == "at-scope-foo123.tgz"

    def test_whitespace_and_backslash(self) -> None:
        assert archive_file_name("my lib\\x", 1) == "my-lib-x1.tgz"

    def test_default_stamp_is_timestamp(self) -> None:
        name = archive_file_name("foo")
        assert name.startswith("foo")
        assert name.endswith(".tgz")
        assert name[len("foo") : -len(".tgz")].isdigit()


class TestTemporaryArchive:
    """Tests for temporary_archive cleanup."""

    def test_deleted_on_success(self, tmp_path: Path) -> None:
        with temporary_archive(tmp_path, "foo") as archive:
            archive.write_bytes(b"data")
        assert not archive.exists()

    def test_deleted_on_error(self, tmp_path: Path) -> None:
        with pytest.raises(RuntimeError), temporary_archive(tmp_path, "foo") as archive:
            archive.write_bytes(b"data")
            raise RuntimeError("boom")
        assert not archive.exists()

    def test_never_created(self, tmp_path: Path) -> None:
        with temporary_archive(tmp_path, "foo") as archive:
            pass
        assert not archive.exists()


class TestExtractArchive:
    """Tests for extract_archive."""

    def test_interpreter_supports_extraction_filters(self) -> None:
        """Extraction relies on tarfile filters (3.11.4+)."""
        assert hasattr(tarfile, "data_filter")

    def test_strips_top_level_directory(self, tmp_path: Path) -> None:
        archive = make_tarball(
            tmp_path / "a.tgz",
            {"package/package.json": b"{}", "package/dist/index.js": b"x"},
        )
        dest = tmp_path / "out"
        dest.mkdir()

        extract_archive(archive, dest)

        assert (dest / "package.json").read_bytes() == b"{}"
        assert (dest / "dist" / "index.js").read_bytes() == b"x"
        assert not (dest / "package").exists()

    def test_rejects_path_traversal(self, tmp_path: Path) -> None:
        archive = make_tarball(tmp_path / "a.tgz", {"package/../../evil.js": b"x"})
        dest = tmp_path / "out"
        dest.mkdir()

        with pytest.raises(ArchiveError):
            extract_archive(archive, dest)
        assert not (tmp_path / "evil.js").exists()

    def test_corrupt_archive(self, tmp_path: Path) -> None:
        archive = tmp_path / "a.tgz"
        archive.write_bytes(b"not a tarball")

        with pytest.raises(ArchiveError):
            extract_archive(archive, tmp_path)


class TestReplaceInstalled:
    """Tests for replace_installed."""

    def test_fresh_install(self, tmp_path: Path) -> None:
        archive = make_tarball(tmp_path / "a.tgz", {"package/index.js": b"new"})
        installed = tmp_path / "node_modules" / "foo"

        replace_installed(archive, installed)

        assert (installed / "index.js").read_bytes() == b"new"

    def test_replaces_old_copy_completely(self, tmp_path: Path) -> None:
        archive = make_tarball(tmp_path / "a.tgz", {"package/index.js": b"new"})
        installed = tmp_path / "node_modules" / "foo"
        installed.mkdir(parents=True)
        (installed / "index.js").write_bytes(b"old")
        (installed / "stale.js").write_bytes(b"old")

        replace_installed(archive, installed)

        assert (installed / "index.js").read_bytes() == b"new"
        assert not (installed / "stale.js").exists()
        assert [p.name for p in installed.parent.iterdir()] == ["foo"]

    def test_failed_extraction_keeps_old_copy(self, tmp_path: Path) -> None:
        archive = tmp_path / "a.tgz"
        archive.write_bytes(b"garbage")
        installed = tmp_path / "node_modules" / "foo"
        installed.mkdir(parents=True)
        (installed / "index.js").write_bytes(b"old")

        with pytest.raises(ArchiveError):
            replace_installed(archive, installed)

        assert (installed / "index.js").read_bytes() == b"old"
        assert [p.name for p in installed.parent.iterdir()] == ["foo"]

    def test_replaces_symlinked_install(self, tmp_path: Path) -> None:
        target = tmp_path / "linked"
        target.mkdir()
        (target / "keep.js").write_bytes(b"keep")
        installed = tmp_path / "node_modules" / "foo"
        installed.parent.mkdir()
        try:
            installed.symlink_to(target, target_is_directory=True)
        except OSError:
            pytest.skip("symlinks not supported")
        archive = make_tarball(tmp_path / "a.tgz", {"package/index.js": b"new"})

        replace_installed(archive, installed)

        assert not installed.is_symlink()
        assert (installed / "index.js").read_bytes() == b"new"
        assert (target / "keep.js").exists()

    def test_scoped_package(self, tmp_path: Path) -> None:
        archive = make_tarball(tmp_path / "a.tgz", {"package/index.js": b"new"})
        installed = tmp_path / "node_modules" / "@scope" / "foo"

        replace_installed(archive, installed)

        assert (installed / "index.js").exists()

    def test_removes_leftovers_of_interrupted_swap(self, tmp_path: Path) -> None:
        archive = make_tarball(tmp_path / "a.tgz", {"package/index.js": b"new"})
        node_modules = tmp_path / "node_modules"
        installed = node_modules / "foo"
        (node_modules / ".foo.staging-123" / "partial").mkdir(parents=True)
        (node_modules / ".foo.previous-456").mkdir()
        (node_modules / ".foo.previous-456" / "index.js").write_bytes(b"old")
        (node_modules / ".foobar.staging-789").mkdir()
        (node_modules / "bar").mkdir()

        replace_installed(archive, installed)

        assert sorted(p.name for p in node_modules.iterdir()) == [".foobar.staging-789", "bar", "foo"]
        assert (installed / "index.js").read_bytes() == b"new"


class TestPackAndInstall:
    """Tests for pack_and_install."""

    def test_installs_packed_files(self, tmp_path: Path) -> None:
        lib = make_library(tmp_path / "foo", "foo", files={"dist/index.js": "built"})
        installed = tmp_path / "app" / "node_modules" / "foo"
        runner = FakeYarnRunner()

        pack_and_install("foo", lib, installed, runner, "yarn")

        assert (installed / "dist" / "index.js").read_text() == "built"
        assert (installed / "package.json").exists()
        args, cwd = runner.calls[0]
        assert args[:2] == ("pack", "--filename")
        assert args[2].startswith("foo") and args[2].endswith(".tgz")
        assert cwd == lib

    def test_archive_removed_after_success(self, tmp_path: Path) -> None:
        lib = make_library(tmp_path / "foo", "foo")
        runner = FakeYarnRunner()

        pack_and_install("foo", lib, tmp_path / "nm" / "foo", runner, "yarn")

        assert runner.packed
        assert not any(p.exists() for p in runner.packed)
        assert not list(lib.glob("*.tgz"))

    def test_corrupt_archive_removed_and_old_copy_kept(self, tmp_path: Path) -> None:
        lib = make_library(tmp_path / "foo", "foo")
        installed = tmp_path / "nm" / "foo"
        installed.mkdir(parents=True)
        (installed / ".relative-deps-hash").write_text("old-hash")
        runner = FakeYarnRunner(corrupt_pack=True)

        with pytest.raises(ArchiveError):
            pack_and_install("foo", lib, installed, runner, "yarn")

        assert not list(lib.glob("*.tgz"))
        assert (installed / ".relative-deps-hash").read_text() == "old-hash"

    def test_pack_failure(self, tmp_path: Path) -> None:
        lib = make_library(tmp_path / "foo", "foo")
        installed = tmp_path / "nm" / "foo"

        with pytest.raises(CommandError):
            pack_and_install("foo", lib, installed, FakeYarnRunner(fail=["pack"]), "yarn")

        assert not installed.exists()

    def test_pack_without_archive(self, tmp_path: Path) -> None:
        lib = make_library(tmp_path / "foo", "foo")

        with pytest.raises(InstallError, match="did not produce"):
            pack_and_install("foo", lib, tmp_path / "nm" / "foo", FakeYarnRunner(skip_pack_output=True), "yarn")
