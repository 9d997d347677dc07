"""Building, packing and installing local dependencies."""

from relative_deps.build.install import (
    ArchiveError,
    InstallError,
    archive_file_name,
    extract_archive,
    pack_and_install,
    replace_installed,
    temporary_archive,
)
from relative_deps.build.runner import (
    CommandError,
    CommandResult,
    CommandRunner,
    default_yarn_executable,
)
from relative_deps.build.trigger import build_library

__all__ = [
    "ArchiveError",
    "CommandError",
    "CommandResult",
    "CommandRunner",
    "InstallError",
    "archive_file_name",
    "build_library",
    "default_yarn_executable",
    "extract_archive",
    "pack_and_install",
    "replace_installed",
    "temporary_archive",
]
