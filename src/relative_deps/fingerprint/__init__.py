"""Source tree fingerprinting and change detection.

- Per-file SHA256 manifest honoring .gitignore rules
- Fingerprint records stored next to the installed copy
- Change detection with first-divergent-file diagnostics
"""

from relative_deps.fingerprint.detector import (
    ChangeReport,
    detect_changes,
    first_divergent_file,
)
from relative_deps.fingerprint.engine import (
    EXCLUDED_DIRS,
    FileEntry,
    FileManifest,
    FingerprintError,
    build_file_manifest,
    compute_file_sha256,
    iter_source_files,
)
from relative_deps.fingerprint.store import (
    HASH_FILE_NAME,
    read_record,
    record_path,
    write_record,
)

__all__ = [
    "EXCLUDED_DIRS",
    "HASH_FILE_NAME",
    "ChangeReport",
    "FileEntry",
    "FileManifest",
    "FingerprintError",
    "build_file_manifest",
    "compute_file_sha256",
    "detect_changes",
    "first_divergent_file",
    "iter_source_files",
    "read_record",
    "record_path",
    "write_record",
]
