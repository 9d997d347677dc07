"""Pack a library and install the archive into the consumer's node_modules.

The installed copy is replaced only after the new archive has been fully
extracted next to it, so a failed pack or extraction leaves the previous
copy untouched. The temporary archive is removed on every exit path.
"""

from __future__ import annotations

import re
import shutil
import tarfile
import time
import zlib
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path, PurePosixPath

from relative_deps.build.runner import CommandRunner
from relative_deps.logging_config import get_logger

logger = get_logger(__name__)

ARCHIVE_SUFFIX = ".tgz"

# Leading directory wrapped around archive contents by ``yarn pack`` (``package/``)
STRIP_COMPONENTS = 1

_UNSAFE_CHARS = re.compile(r"[\s/\\]")


class InstallError(Exception):
    """Raised when a library can't be packed or installed."""


class ArchiveError(InstallError):
    """Raised when an archive can't be extracted."""


def archive_file_name(name: str, stamp: int | None = None) -> str:
    """Collision-resistant archive file name for a package.

    Whitespace and path separators become ``-`` and ``@`` becomes ``at-``,
    e.g. ``@scope/foo`` -> ``at-scope-foo1700000000000000000.tgz``.
    """
    if stamp is None:
        stamp = time.time_ns()
    raw = f"{name}{stamp}{ARCHIVE_SUFFIX}"
    return _UNSAFE_CHARS.sub("-", raw).replace("@", "at-")


@contextmanager
def temporary_archive(directory: Path, name: str) -> Iterator[Path]:
    """Reserve an archive path in ``directory`` and delete it on exit."""
    path = directory / archive_file_name(name)
    try:
        yield path
    finally:
        path.unlink(missing_ok=True)


def _strip_member(member: tarfile.TarInfo, components: int) -> tarfile.TarInfo | None:
    parts = PurePosixPath(member.name).parts
    if len(parts) <= components:
        return None
    member.name = PurePosixPath(*parts[components:]).as_posix()
    if member.islnk():
        link_parts = PurePosixPath(member.linkname).parts
        if len(link_parts) <= components:
            return None
        member.linkname = PurePosixPath(*link_parts[components:]).as_posix()
    return member


def extract_archive(archive: Path, destination: Path, *, strip_components: int = STRIP_COMPONENTS) -> None:
    """Extract a gzipped tarball, dropping leading path components.

    Uses the ``data`` extraction filter: absolute paths, links leaving
    ``destination`` and special files are rejected.

    Raises:
        ArchiveError: If the archive is unreadable or contains unsafe members.
    """
    try:
        with tarfile.open(archive, "r:*") as tf:
            members = []
            for member in tf.getmembers():
                stripped = _strip_member(member, strip_components)
                if stripped is not None:
                    members.append(stripped)
            tf.extractall(destination, members=members, filter="data")
    except (tarfile.TarError, EOFError, zlib.error, OSError) as e:
        raise ArchiveError(f"Failed to extract '{archive}': {e}") from e


def _remove_installed(path: Path) -> None:
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.exists():
        shutil.rmtree(path)


def _sweep_stale_swaps(installed_dir: Path) -> None:
    """Remove staging and previous copies left behind by an interrupted swap."""
    parent = installed_dir.parent
    if not parent.is_dir():
        return
    prefixes = (f".{installed_dir.name}.staging-", f".{installed_dir.name}.previous-")
    for entry in list(parent.iterdir()):
        if any(entry.name.startswith(p) and entry.name[len(p) :].isdigit() for p in prefixes):
            logger.info("Removing leftover '%s'", entry)
            _remove_installed(entry)


def replace_installed(archive: Path, installed_dir: Path) -> None:
    """Swap the installed copy for the content of ``archive``.

    The archive is extracted into a staging directory next to
    ``installed_dir``. Only then is the old copy moved aside, the staging
    directory renamed into place and the old copy deleted. If the swap
    fails the old copy is moved back.

    Raises:
        ArchiveError: If extraction fails. The old copy is left intact.
        OSError: If the swap fails.
    """
    _sweep_stale_swaps(installed_dir)
    installed_dir.parent.mkdir(parents=True, exist_ok=True)
    stamp = time.time_ns()
    staging = installed_dir.with_name(f".{installed_dir.name}.staging-{stamp}")
    previous = installed_dir.with_name(f".{installed_dir.name}.previous-{stamp}")

    staging.mkdir()
    try:
        logger.info("Extracting '%s' to %s", archive, installed_dir)
        extract_archive(archive, staging)

        has_previous = installed_dir.exists() or installed_dir.is_symlink()
        if has_previous:
            installed_dir.rename(previous)
        try:
            staging.rename(installed_dir)
        except OSError:
            if has_previous:
                previous.rename(installed_dir)
            raise
    finally:
        if staging.exists():
            shutil.rmtree(staging, ignore_errors=True)

    if previous.exists() or previous.is_symlink():
        _remove_installed(previous)


def pack_and_install(
    name: str,
    source_dir: Path,
    installed_dir: Path,
    runner: CommandRunner,
    yarn: str,
) -> None:
    """Pack ``source_dir`` with yarn and install the result at ``installed_dir``.

    Raises:
        CommandError: If ``yarn pack`` fails.
        InstallError: If pack produced no archive or extraction fails.
    """
    with temporary_archive(source_dir, name) as archive:
        logger.info("Copying %s to local node_modules", name)
        runner.run([yarn, "pack", "--filename", archive.name], cwd=source_dir)
        if not archive.is_file():
            raise InstallError(f"'{yarn} pack' did not produce '{archive}'")
        replace_installed(archive, installed_dir)
