"""Process runners: the external process service behind each step.

A runner turns ``(command, options)`` into a ProcessResult. Failures of
the command itself never raise; they come back as
``ProcessResult.error``.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from src.planning.errors import ProcessExecutionError
from src.planning.models import ProcessResult

logger = logging.getLogger(__name__)

SUPPORTED_OPTIONS = frozenset({"cwd", "env", "timeout", "encoding"})


class ProcessRunner(ABC):
    """Abstract adapter for running one command.

    Implementations connect to an actual process provider:
    - ShellProcessRunner: Runs commands through the system shell
    - Test doubles: Return canned results
    """

    @abstractmethod
    async def run(
        self,
        command: str,
        options: Mapping[str, Any] | None = None,
    ) -> ProcessResult:
        """Run command and deliver its outcome exactly once.

        Args:
            command: Shell command to run.
            options: Runner-specific configuration.

        Returns:
            ProcessResult with stdout, stderr and any error.
        """
        pass


class ShellProcessRunner(ProcessRunner):
    """Runs commands with ``asyncio.create_subprocess_shell``.

    Recognized options:
    - cwd: Working directory
    - env: Environment for the child, replacing the current one
    - timeout: Seconds before the child is killed
    - encoding: Output encoding, utf-8 by default
    """

    async def run(
        self,
        command: str,
        options: Mapping[str, Any] | None = None,
    ) -> ProcessResult:
        options = dict(options or {})
        ignored = sorted(set(options) - SUPPORTED_OPTIONS)
        if ignored:
            logger.debug("Ignoring unsupported options for %r: %s", command, ignored)

        encoding = options.get("encoding") or "utf-8"
        timeout = options.get("timeout")

        try:
            proc = await asyncio.create_subprocess_shell(
                command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=options.get("cwd"),
                env=options.get("env"),
                start_new_session=True,
            )
        except OSError as e:
            logger.debug("Could not spawn %r: %s", command, e)
            return ProcessResult(
                stderr=str(e),
                error=ProcessExecutionError(
                    f"Command failed to start: {command}\n{e}",
                    command=command,
                    returncode=None,
                    stderr=str(e),
                ),
                returncode=None,
            )

        try:
            out, err = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            self._kill_group(proc)
            await proc.wait()
            logger.debug("Killed %r after %ss", command, timeout)
            return ProcessResult(
                error=ProcessExecutionError(
                    f"Command timed out after {timeout}s: {command}",
                    command=command,
                    returncode=proc.returncode,
                    timed_out=True,
                ),
                returncode=proc.returncode,
            )

        stdout = out.decode(encoding, errors="replace")
        stderr = err.decode(encoding, errors="replace")
        if proc.returncode != 0:
            return ProcessResult(
                stdout=stdout,
                stderr=stderr,
                error=ProcessExecutionError(
                    f"Command failed: {command}\n{stderr}",
                    command=command,
                    returncode=proc.returncode,
                    stderr=stderr,
                ),
                returncode=proc.returncode,
            )

        return ProcessResult(stdout=stdout, stderr=stderr, returncode=proc.returncode)

    @staticmethod
    def _kill_group(proc: asyncio.subprocess.Process) -> None:
        """Kill the shell and every process it started."""
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
