"""Command runner for executing shell commands.

This module provides the base command execution functionality used by
all specialized command modules.
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Mapping, Sequence
from pathlib import Path

from loguru import logger

from .types import CommandResult


class CommandRunner:
    """Low-level command executor with consistent result handling.

    All specialized command modules (Docker, kubectl) use this runner for
    actual command execution. A missing executable is reported as a failed
    ``CommandResult`` rather than an exception so that best-effort callers
    can treat it like any other failure.
    """

    def __init__(self, cwd: Path | None = None) -> None:
        """Initialize the command runner.

        Args:
            cwd: Working directory for commands (defaults to the current one)
        """
        self.cwd = cwd

    def run(
        self,
        cmd: Sequence[str],
        *,
        input_data: str | None = None,
        env: Mapping[str, str] | None = None,
        capture_output: bool = True,
        check: bool = False,
    ) -> CommandResult:
        """Execute a command and return structured result.

        Args:
            cmd: Command and arguments as a sequence
            input_data: Optional text sent to stdin
            env: Extra environment variables layered over os.environ
            capture_output: Whether to capture stdout/stderr
            check: Whether to raise exception on non-zero exit code

        Returns:
            CommandResult with success status, output, and return code

        Raises:
            subprocess.CalledProcessError: If check=True and command fails
        """
        logger.debug(f"Running: {' '.join(cmd)}")

        full_env = None
        if env:
            full_env = os.environ.copy()
            full_env.update(env)

        try:
            result = subprocess.run(
                list(cmd),
                cwd=self.cwd,
                capture_output=capture_output,
                text=True,
                input=input_data,
                env=full_env,
                check=check,
            )
        except FileNotFoundError as e:
            logger.debug(f"Executable not found: {cmd[0]}")
            return CommandResult(success=False, stderr=str(e), returncode=127)

        if result.returncode != 0:
            logger.debug(
                f"Command exited with {result.returncode}: {(result.stderr or '').strip()}"
            )

        return CommandResult(
            success=result.returncode == 0,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
            returncode=result.returncode,
        )
