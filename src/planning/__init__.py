"""Plan construction layer.

This module provides:
- PlanConfig / Step: Validated plan configuration and step records
- resolve_step_args: Turns a variadic ``add`` call into a Step
- PlanStore: Ordered pending steps with an atomic drain
- The error taxonomy shared with the executor layer
"""

from src.planning.errors import (
    InvalidArgument,
    PlanError,
    ProcessExecutionError,
)

from src.planning.models import (
    ErrorHandler,
    PlanConfig,
    PlanEvent,
    PreLogic,
    ProcessResult,
    RoundState,
    RoundStatus,
    Step,
    StepResult,
    StepStatus,
)

from src.planning.resolver import (
    build_step,
    resolve_step_args,
    validate_command,
)

from src.planning.store import PlanStore

__all__ = [
    # Errors
    "InvalidArgument",
    "PlanError",
    "ProcessExecutionError",
    # Models
    "ErrorHandler",
    "PlanConfig",
    "PlanEvent",
    "PreLogic",
    "ProcessResult",
    "RoundState",
    "RoundStatus",
    "Step",
    "StepResult",
    "StepStatus",
    # Resolver
    "build_step",
    "resolve_step_args",
    "validate_command",
    # Store
    "PlanStore",
]
