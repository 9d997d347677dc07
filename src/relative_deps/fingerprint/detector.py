"""Change detection for local dependencies.

Compares the fingerprint of a library's current source tree with the record
left by the last successful install. Detection never writes: the caller
persists ``ChangeReport.fingerprint`` once the reinstall has succeeded.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from relative_deps.fingerprint.engine import build_file_manifest
from relative_deps.fingerprint.store import HASH_FILE_NAME, read_record, record_path
from relative_deps.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ChangeReport:
    """Outcome of a change detection pass.

    Attributes:
        changed: True if the library must be rebuilt and reinstalled.
        fingerprint: Freshly computed fingerprint, to persist after install.
        record_path: Where the fingerprint record lives.
        first_divergent_file: First file whose line differs from the record
            (diagnostic only; None on first install or when unchanged).
    """

    changed: bool
    fingerprint: str
    record_path: Path
    first_divergent_file: str | None = None


def _line_path(line: str) -> str:
    return line.split(" ", 1)[1] if " " in line else line


def first_divergent_file(current: str, previous: str) -> str | None:
    """Find the first file at which two fingerprints differ.

    Lines are compared by position, not matched by path.

    Returns:
        Path taken from the first differing line, or None if identical.
    """
    current_lines = current.split("\n") if current else []
    previous_lines = previous.split("\n") if previous else []

    for i, line in enumerate(current_lines):
        if i >= len(previous_lines) or line != previous_lines[i]:
            return _line_path(line)
    if len(previous_lines) > len(current_lines):
        return _line_path(previous_lines[len(current_lines)])
    return None


def detect_changes(
    name: str,
    source_dir: Path,
    root_dir: Path,
    installed_dir: Path,
    *,
    hash_file_name: str = HASH_FILE_NAME,
) -> ChangeReport:
    """Decide whether a local dependency changed since its last install.

    Args:
        name: Dependency name (for log messages).
        source_dir: Library source directory.
        root_dir: Consumer project root.
        installed_dir: Installed copy under node_modules.
        hash_file_name: Record file name inside ``installed_dir``.

    Raises:
        FingerprintError: If the source tree can't be hashed.
    """
    path = record_path(installed_dir, hash_file_name)
    previous = read_record(path)
    fingerprint = build_file_manifest(source_dir, root_dir).serialize()

    if previous is not None and fingerprint == previous:
        logger.info("No changes", extra={"dependency": name})
        return ChangeReport(changed=False, fingerprint=fingerprint, record_path=path)

    divergent = None
    if previous:
        divergent = first_divergent_file(fingerprint, previous)
        if divergent is not None:
            logger.info("Changed file: %s", divergent, extra={"dependency": name})

    return ChangeReport(
        changed=True,
        fingerprint=fingerprint,
        record_path=path,
        first_divergent_file=divergent,
    )
