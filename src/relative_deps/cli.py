"""
Command line entry point.

Installs every ``relativeDependencies`` entry of the nearest package.json,
rebuilding and reinstalling only the libraries whose sources changed.

Usage:
    relative-deps                       # sync using the "build" script
    relative-deps --build-script prepare
    relative-deps --json-logs --log-level DEBUG

Exit code 0 = success (or nothing declared); 1 = configuration error or
failed build/install.
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path

from pydantic import ValidationError

from relative_deps import __version__
from relative_deps.build.install import InstallError
from relative_deps.build.runner import CommandError
from relative_deps.config import DEFAULT_BUILD_SCRIPT, SyncConfig
from relative_deps.fingerprint.engine import FingerprintError
from relative_deps.logging_config import get_logger, setup_logging
from relative_deps.project.manifest import ConfigurationError, find_project
from relative_deps.sync import SyncOutcome, sync_project

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="relative-deps",
        description="Install local libraries into node_modules, rebuilding only when their sources change.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version",
        "-V",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--build-script",
        "-b",
        default=DEFAULT_BUILD_SCRIPT,
        metavar="SCRIPT",
        help=f"Library script to run before packing (default: {DEFAULT_BUILD_SCRIPT})",
    )
    parser.add_argument(
        "--project-dir",
        type=Path,
        default=None,
        help="Directory to start looking for package.json (default: current directory)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: INFO)",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit one JSON object per log line",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    setup_logging(level=args.log_level, json_format=args.json_logs)

    try:
        config = SyncConfig.from_env(build_script=args.build_script)
        project = find_project(args.project_dir or Path.cwd())
    except ValidationError as e:
        logger.error("Invalid configuration: %s", e)
        return EXIT_FAILURE
    except ConfigurationError as e:
        logger.error("%s", e)
        return EXIT_FAILURE

    if not project.declarations():
        logger.warning("No 'relativeDependencies' specified in package.json")
        return EXIT_OK

    try:
        results = sync_project(project, config)
    except (ConfigurationError, CommandError, InstallError, FingerprintError, OSError) as e:
        logger.error("%s", e)
        return EXIT_FAILURE

    synced = sum(1 for r in results if r.outcome is SyncOutcome.SYNCED)
    logger.debug("Processed %d dependencies, %d reinstalled", len(results), synced)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
