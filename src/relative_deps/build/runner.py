"""Subprocess boundary for package-manager commands.

Every external command goes through :class:`CommandRunner`, which blocks
until the command exits and returns its captured output. Callers decide
whether to surface that output; failures carry it in :class:`CommandError`.
"""

from __future__ import annotations

import subprocess
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from relative_deps.logging_config import get_logger

logger = get_logger(__name__)

# Exit code reported when the executable itself can't be started
COMMAND_NOT_FOUND_EXIT_CODE = 127


def default_yarn_executable(platform: str | None = None) -> str:
    """Yarn executable name for the host OS.

    Windows needs the ``.cmd`` shim because commands are started without a
    shell (so paths containing spaces survive as single arguments).
    """
    platform = platform if platform is not None else sys.platform
    return "yarn.cmd" if platform == "win32" else "yarn"


@dataclass(frozen=True)
class CommandResult:
    """Result of a finished command.

    Attributes:
        args: Command line as executed.
        cwd: Working directory.
        exit_code: Process exit status.
        stdout: Captured standard output.
        stderr: Captured standard error.
    """

    args: tuple[str, ...]
    cwd: Path
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def command_line(self) -> str:
        return " ".join(self.args)

    @property
    def output(self) -> str:
        """Combined stdout and stderr for diagnostics."""
        return "\n".join(part for part in (self.stdout.rstrip(), self.stderr.rstrip()) if part)


class CommandError(Exception):
    """Raised when an external command fails."""

    def __init__(self, result: CommandResult, message: str | None = None) -> None:
        self.result = result
        if message is None:
            message = f"Command '{result.command_line}' in '{result.cwd}' failed with exit code {result.exit_code}"
        super().__init__(message)

    def __str__(self) -> str:
        base = super().__str__()
        output = self.result.output
        return f"{base}\n{output}" if output else base


class CommandRunner:
    """Runs commands synchronously and captures their output."""

    def execute(self, args: Sequence[str], *, cwd: Path) -> CommandResult:
        """Run a command and return its result without checking the exit code.

        Raises:
            CommandError: If the executable can't be started.
        """
        args = tuple(str(a) for a in args)
        try:
            completed = subprocess.run(
                args,
                cwd=cwd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                check=False,
            )
        except FileNotFoundError as e:
            result = CommandResult(
                args=args,
                cwd=cwd,
                exit_code=COMMAND_NOT_FOUND_EXIT_CODE,
                stderr=str(e),
            )
            raise CommandError(result, f"Could not start '{args[0]}' in '{cwd}': {e.strerror}") from e

        return CommandResult(
            args=args,
            cwd=cwd,
            exit_code=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )

    def run(self, args: Sequence[str], *, cwd: Path) -> CommandResult:
        """Run a command and raise if it exits non-zero.

        Raises:
            CommandError: On non-zero exit, with the captured output attached.
        """
        result = self.execute(args, cwd=cwd)
        if not result.ok:
            raise CommandError(result)
        if result.output:
            logger.debug("%s\n%s", result.command_line, result.output)
        return result
