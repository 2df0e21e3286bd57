"""Plan layer models.

This module provides the structures shared by plan construction and
plan execution:
- PlanConfig: Plan-wide printing and error policy
- Step: One scheduled command with its optional hooks
- ProcessResult: Outcome delivered by the process runner
- StepResult / RoundState: What happened during one execution round
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field

from src.planning.errors import ProcessExecutionError


# pre_logic(prior_stdout) -> ignored
PreLogic = Callable[[str], Any]

# error_handler(error, stderr) -> True / False / anything else
ErrorHandler = Callable[[ProcessExecutionError, str], Any]


class PlanEvent(str, Enum):
    """Lifecycle notifications published by a plan."""

    EXECERROR = "execerror"
    COMPLETE = "complete"
    FINISH = "finish"


class StepStatus(str, Enum):
    """Status of a single step within a round."""

    COMPLETED = "completed"
    FAILED = "failed"  # Failed and stopped the round
    RECOVERED = "recovered"  # Failed but the round went on
    SKIPPED = "skipped"  # Never ran because the round halted


class RoundStatus(str, Enum):
    """Status of one execution round."""

    RUNNING = "running"
    COMPLETED = "completed"
    FINISHED_WITH_ERRORS = "finished_with_errors"
    HALTED = "halted"
    ABORTED = "aborted"  # A hook or listener raised


class PlanConfig(BaseModel):
    """Plan-wide configuration, fixed at construction time.

    The three flags are independent. Both snake_case names and the
    camelCase keys (``autoPrintOut`` etc.) are accepted; anything else
    is ignored.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    auto_print_out: bool = Field(default=True, alias="autoPrintOut")
    auto_print_err: bool = Field(default=True, alias="autoPrintErr")
    continue_on_error: bool = Field(default=True, alias="continueOnError")


class Step(BaseModel):
    """One scheduled command invocation, immutable once added."""

    model_config = ConfigDict(frozen=True)

    command: str = Field(min_length=1)
    pre_logic: PreLogic | None = None
    options: dict[Any, Any] | None = None
    error_handler: ErrorHandler | None = None

    def describe(self) -> dict[str, Any]:
        """Summarize the step without its callables."""
        return {
            "command": self.command,
            "options": dict(self.options) if self.options else None,
            "has_pre_logic": self.pre_logic is not None,
            "has_error_handler": self.error_handler is not None,
        }


@dataclass(frozen=True)
class ProcessResult:
    """Outcome of one command: ``(error?, stdout, stderr)``."""

    stdout: str = ""
    stderr: str = ""
    error: ProcessExecutionError | None = None
    returncode: int | None = 0

    @property
    def failed(self) -> bool:
        return self.error is not None


class StepResult(BaseModel):
    """Outcome of a single step in one round."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0)
    command: str
    status: StepStatus
    stdout: str = ""
    stderr: str = ""
    error: str | None = None
    returncode: int | None = None

    # True when the step's error handler returned an explicit True/False
    policy_overridden: bool = False


class RoundState(BaseModel):
    """Full record of one execution round."""

    round_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    total_steps: int = Field(ge=0)
    status: RoundStatus = RoundStatus.RUNNING

    step_results: list[StepResult] = Field(default_factory=list)

    started_at: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    completed_at: str | None = None

    def is_complete(self) -> bool:
        """Check if the round has ended, whatever the outcome."""
        return self.status != RoundStatus.RUNNING

    def get_progress(self) -> float:
        """Get the share of steps that have run, as a percentage."""
        if self.total_steps == 0:
            return 100.0
        ran = sum(1 for r in self.step_results if r.status != StepStatus.SKIPPED)
        return (ran / self.total_steps) * 100
