"""Error taxonomy for plan construction and execution."""

from __future__ import annotations


class PlanError(Exception):
    """Base class for exec-plan errors."""


class InvalidArgument(PlanError, TypeError):
    """Raised when a step cannot be resolved from the given arguments.

    Raised synchronously from ``add`` before the plan is touched.
    """

    def __init__(self, message: str, value: object = None):
        super().__init__(message)
        self.value = value


class ProcessExecutionError(PlanError):
    """Failure of a single command, produced by the process runner.

    Never raised into caller code: it travels inside a ``ProcessResult``
    and reaches listeners through the ``execerror`` event.
    """

    def __init__(
        self,
        message: str,
        command: str,
        returncode: int | None = None,
        stderr: str = "",
        timed_out: bool = False,
    ):
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        self.timed_out = timed_out
