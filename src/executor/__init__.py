"""Executor layer for sequential command plans.

This module provides:
- ExecPlan: Main facade for adding steps and running them
- ChainBuilder: Links drained steps into continuations
- ExecutionEngine: Runs a chain and applies the error policy
- ProcessRunner / ConsoleSink: Adapters for processes and output

Key concepts:
- Step: One command plus optional pre-logic and error handler
- Round: One execute() call, running one drained batch of steps
- Policy override: An error handler returning True/False instead of
  deferring to ``continue_on_error``

Example usage:
    from src.executor import ExecPlan

    plan = ExecPlan({"autoPrintOut": False})
    plan.add("git pull")
    plan.add(lambda out: print("pulled"), "make", {"cwd": "build"})
    plan.add("./deploy.sh", lambda error, stderr: False)

    plan.on("execerror", lambda error, stderr: print("failed:", stderr))
    plan.on("complete", lambda stdout: print(stdout))
    plan.on("finish", lambda: print("round over"))

    plan.execute()
    states = await plan.wait()
"""

from src.executor.builder import (
    ChainBuilder,
    Continuation,
    iter_chain,
)

from src.executor.console import (
    ConsoleSink,
    StreamConsoleSink,
)

from src.executor.engine import ExecutionEngine

from src.executor.events import EventChannel

from src.executor.facade import ExecPlan

from src.executor.runner import (
    ProcessRunner,
    ShellProcessRunner,
)

__all__ = [
    # Builder
    "ChainBuilder",
    "Continuation",
    "iter_chain",
    # Console
    "ConsoleSink",
    "StreamConsoleSink",
    # Engine
    "ExecutionEngine",
    # Events
    "EventChannel",
    # Facade
    "ExecPlan",
    # Runner
    "ProcessRunner",
    "ShellProcessRunner",
]
