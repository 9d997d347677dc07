"""Persisted fingerprint records.

One record per installed dependency, stored inside the installed copy so that
removing the dependency also removes its record.
"""

from __future__ import annotations

import os
from pathlib import Path

from relative_deps.logging_config import get_logger

logger = get_logger(__name__)

HASH_FILE_NAME = ".relative-deps-hash"


def record_path(installed_dir: Path, file_name: str = HASH_FILE_NAME) -> Path:
    """Location of the fingerprint record for an installed dependency."""
    return installed_dir / file_name


def read_record(path: Path) -> str | None:
    """Read a fingerprint record.

    Returns:
        Record content, or None if no record exists or it is not valid UTF-8.
    """
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except UnicodeDecodeError as e:
        logger.warning("Ignoring unreadable fingerprint record '%s': %s", path, e)
        return None


def write_record(path: Path, fingerprint: str) -> None:
    """Write a fingerprint record atomically.

    Content goes to a temporary sibling first and is moved into place with
    ``os.replace``, so readers see either the old or the new record.
    """
    tmp = path.with_name(f"{path.name}.{os.getpid()}.tmp")
    try:
        tmp.write_text(fingerprint, encoding="utf-8", newline="")
        os.replace(tmp, path)
    finally:
        tmp.unlink(missing_ok=True)
