"""File enumeration and content hashing for local dependencies.

The file set mirrors what packaging would pick up: VCS and dependency-manager
metadata is never included and every ``.gitignore`` inside the library is
honored for the paths below it.

Fingerprint format (one line per file, sorted by path):
    <sha256> <posix path>
"""

from __future__ import annotations

import hashlib
import os
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

import pathspec

from relative_deps.logging_config import get_logger

logger = get_logger(__name__)

GITIGNORE_FILE_NAME = ".gitignore"

# Directories pruned at any depth
EXCLUDED_DIRS: frozenset[str] = frozenset(
    {
        ".git",
        ".hg",
        ".svn",
        "CVS",
        "node_modules",
    }
)

_CHUNK_SIZE = 64 * 1024


class FingerprintError(Exception):
    """Raised when a dependency's files cannot be enumerated or hashed."""


@dataclass(frozen=True)
class FileEntry:
    """Single hashed file.

    Attributes:
        path: Path relative to the library root, posix separators.
        sha256: Hex-encoded SHA256 of the file content.
    """

    path: str
    sha256: str

    def to_line(self) -> str:
        return f"{self.sha256} {self.path}"


@dataclass(frozen=True)
class FileManifest:
    """Ordered file hashes for one library source tree."""

    entries: tuple[FileEntry, ...]

    @property
    def paths(self) -> list[str]:
        return [e.path for e in self.entries]

    def serialize(self) -> str:
        """Serialize to the fingerprint string (also its persisted form)."""
        return "\n".join(e.to_line() for e in self.entries)


def compute_file_sha256(filepath: Path) -> str:
    """Compute SHA256 hash of a file.

    Raises:
        OSError: If the file can't be read.
    """
    hasher = hashlib.sha256()
    with filepath.open("rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            hasher.update(chunk)
    return hasher.hexdigest()


class _IgnoreRules:
    """Stack of ``.gitignore`` specs keyed by the directory they live in."""

    def __init__(self) -> None:
        self._specs: list[tuple[str, pathspec.GitIgnoreSpec]] = []

    def load(self, directory: Path, rel_dir: str) -> None:
        gitignore = directory / GITIGNORE_FILE_NAME
        if not gitignore.is_file():
            return
        lines = gitignore.read_text(encoding="utf-8", errors="replace").splitlines()
        spec = pathspec.GitIgnoreSpec.from_lines(lines)
        self._specs.append((rel_dir, spec))

    def is_ignored(self, rel_path: str, *, is_dir: bool = False) -> bool:
        # Deepest .gitignore with a matching pattern decides, negations included
        for base, spec in reversed(self._specs):
            if base:
                if not rel_path.startswith(base + "/"):
                    continue
                candidate = rel_path[len(base) + 1 :]
            else:
                candidate = rel_path
            if is_dir:
                candidate += "/"
            result = spec.check_file(candidate)
            if result.include is not None:
                return result.include
        return False


def _nested_root_segment(source_dir: Path, root_dir: Path) -> str | None:
    """First path segment of ``root_dir`` below ``source_dir``, if nested."""
    if root_dir == source_dir or not root_dir.is_relative_to(source_dir):
        return None
    return root_dir.relative_to(source_dir).parts[0]


def _raise(error: OSError) -> None:
    raise error


def iter_source_files(source_dir: Path, root_dir: Path | None = None) -> Iterator[str]:
    """Yield relative posix paths of all files that belong to a library.

    Args:
        source_dir: Library source directory.
        root_dir: Consumer project root. When nested inside ``source_dir`` its
            top-level segment is skipped.

    Yields:
        Paths relative to ``source_dir`` in walk order (not sorted).
    """
    source_dir = source_dir.resolve()
    skipped_top = _nested_root_segment(source_dir, root_dir.resolve()) if root_dir else None
    rules = _IgnoreRules()

    for dirpath, dirnames, filenames in os.walk(source_dir, onerror=_raise):
        current = Path(dirpath)
        rel_dir = current.relative_to(source_dir).as_posix()
        if rel_dir == ".":
            rel_dir = ""
        rules.load(current, rel_dir)

        kept: list[str] = []
        for d in dirnames:
            if d in EXCLUDED_DIRS:
                continue
            if not rel_dir and d == skipped_top:
                continue
            rel = f"{rel_dir}/{d}" if rel_dir else d
            if rules.is_ignored(rel, is_dir=True):
                continue
            kept.append(d)
        dirnames[:] = kept

        for name in filenames:
            rel = f"{rel_dir}/{name}" if rel_dir else name
            if rules.is_ignored(rel):
                continue
            yield rel


def build_file_manifest(source_dir: Path, root_dir: Path | None = None) -> FileManifest:
    """Hash every packaged file of a library.

    Args:
        source_dir: Library source directory.
        root_dir: Consumer project root (see :func:`iter_source_files`).

    Returns:
        FileManifest sorted by path.

    Raises:
        FingerprintError: If any file can't be read. No partial manifest is
            returned.
    """
    source_dir = source_dir.resolve()
    try:
        paths = sorted(iter_source_files(source_dir, root_dir))
    except OSError as e:
        raise FingerprintError(f"Failed to list files in '{source_dir}': {e}") from e

    entries: list[FileEntry] = []
    for rel in paths:
        try:
            digest = compute_file_sha256(source_dir / rel)
        except OSError as e:
            raise FingerprintError(f"Failed to hash '{source_dir / rel}': {e}") from e
        entries.append(FileEntry(path=rel, sha256=digest))

    logger.debug("Hashed %d files in '%s'", len(entries), source_dir)
    return FileManifest(entries=tuple(entries))
