"""Sync orchestration across all declared local dependencies.

Per dependency:
    Resolving -> Detecting -> Unchanged
                           -> Changed -> Building -> Installing -> RecordingFingerprint

A missing source directory either falls back to the regular dependency
(skip and continue) or aborts the run. Every other failure is raised and
aborts the run as well.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from relative_deps.build.install import pack_and_install
from relative_deps.build.runner import CommandRunner
from relative_deps.build.trigger import build_library
from relative_deps.config import SyncConfig
from relative_deps.fingerprint.detector import detect_changes
from relative_deps.fingerprint.store import write_record
from relative_deps.logging_config import get_logger
from relative_deps.project.manifest import (
    DependencyDeclaration,
    MissingDependencyError,
    Project,
)

logger = get_logger(__name__)


class SyncOutcome(str, Enum):
    """Terminal state of one dependency."""

    SYNCED = "SYNCED"
    UNCHANGED = "UNCHANGED"
    SKIPPED_FALLBACK = "SKIPPED_FALLBACK"


@dataclass(frozen=True)
class DependencyResult:
    """Outcome for a single local dependency.

    Attributes:
        name: Dependency name.
        outcome: Terminal state reached.
        source_dir: Resolved library directory.
        changed_file: First divergent file, when one was reported.
    """

    name: str
    outcome: SyncOutcome
    source_dir: Path
    changed_file: str | None = None


def sync_dependency(
    project: Project,
    declaration: DependencyDeclaration,
    config: SyncConfig,
    runner: CommandRunner,
) -> DependencyResult:
    """Bring one local dependency up to date.

    Raises:
        MissingDependencyError: Source directory missing and no regular
            dependency to fall back to.
        ConfigurationError: Library manifest missing, invalid or misnamed.
        CommandError: install, build or pack failed.
        InstallError: Archive missing or not extractable.
        FingerprintError: Source tree could not be hashed.
    """
    dep = project.resolve(declaration)
    name = dep.name
    logger.info("Checking '%s' in '%s'", name, dep.source_dir)

    regular_version = project.manifest.regular_version(name)
    if not regular_version:
        logger.warning(
            "The relative dependency '%s' should also be added as normal- or dev-dependency",
            name,
        )

    if not dep.source_dir.is_dir():
        if regular_version:
            logger.warning(
                "Could not find target directory '%s', using normally installed version ('%s') instead",
                dep.source_dir,
                regular_version,
            )
            return DependencyResult(name, SyncOutcome.SKIPPED_FALLBACK, dep.source_dir)
        raise MissingDependencyError(
            f"Failed to resolve dependency {name}: failed to find target directory "
            f"'{dep.source_dir}', and the library is not present as normal dependency either"
        )

    report = detect_changes(
        name,
        dep.source_dir,
        project.root,
        dep.installed_dir,
        hash_file_name=config.hash_file_name,
    )
    if not report.changed:
        return DependencyResult(name, SyncOutcome.UNCHANGED, dep.source_dir)

    build_library(name, dep.source_dir, config.build_script, runner, config.yarn)
    pack_and_install(name, dep.source_dir, dep.installed_dir, runner, config.yarn)
    write_record(report.record_path, report.fingerprint)
    logger.info("Re-installing %s... DONE", name)

    return DependencyResult(
        name,
        SyncOutcome.SYNCED,
        dep.source_dir,
        changed_file=report.first_divergent_file,
    )


def sync_project(
    project: Project,
    config: SyncConfig,
    runner: CommandRunner | None = None,
) -> list[DependencyResult]:
    """Sync every relative dependency in declaration order.

    Fallbacks skip only their own dependency; any exception stops the run.
    """
    if runner is None:
        runner = CommandRunner()

    results: list[DependencyResult] = []
    for declaration in project.declarations():
        results.append(sync_dependency(project, declaration, config, runner))
    return results
