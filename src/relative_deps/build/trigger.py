"""Build step for a local dependency."""

from __future__ import annotations

from pathlib import Path

from relative_deps.build.runner import CommandRunner
from relative_deps.logging_config import get_logger
from relative_deps.project.manifest import (
    MANIFEST_FILE_NAME,
    NODE_MODULES_DIR,
    PackageNameMismatchError,
    load_package_manifest,
)

logger = get_logger(__name__)


def build_library(
    name: str,
    source_dir: Path,
    build_script: str,
    runner: CommandRunner,
    yarn: str,
) -> None:
    """Prepare and build a library in place.

    1. Runs ``yarn install`` if the library has no node_modules yet.
    2. Checks that the library's package.json name equals ``name``.
    3. Runs ``yarn run <build_script>`` if that script is declared.

    Raises:
        ConfigurationError: If the library's package.json is missing or invalid.
        PackageNameMismatchError: If the library declares a different name.
        CommandError: If install or build exits non-zero.
    """
    if not (source_dir / NODE_MODULES_DIR).exists():
        logger.info("Running '%s install' in %s", yarn, source_dir)
        runner.run([yarn, "install"], cwd=source_dir)

    manifest = load_package_manifest(source_dir / MANIFEST_FILE_NAME)
    if manifest.name != name:
        raise PackageNameMismatchError(expected=name, found=manifest.name)

    if build_script in manifest.scripts:
        logger.info("Building %s in %s", name, source_dir)
        runner.run([yarn, "run", build_script], cwd=source_dir)
    else:
        logger.debug("No '%s' script declared by %s, skipping build", build_script, name)
