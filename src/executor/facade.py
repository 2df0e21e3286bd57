"""ExecPlan facade - main entry point for building and running plans.

This module provides the ExecPlan class that ties together:
- Step registration through the argument resolver
- The pending-step store and its atomic drain
- Chain building and background execution rounds
- Lifecycle notifications for listeners
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from src.executor.builder import ChainBuilder
from src.executor.console import ConsoleSink, StreamConsoleSink
from src.executor.engine import ExecutionEngine
from src.executor.events import EventChannel, Listener
from src.executor.runner import ProcessRunner, ShellProcessRunner
from src.planning.errors import InvalidArgument, PlanError
from src.planning.models import (
    ErrorHandler,
    PlanConfig,
    PlanEvent,
    PreLogic,
    RoundState,
    Step,
)
from src.planning.resolver import build_step, resolve_step_args
from src.planning.store import PlanStore

logger = logging.getLogger(__name__)


class ExecPlan:
    """An ordered plan of shell commands run one after another.

    Usage:
        plan = ExecPlan({"continueOnError": False})
        plan.add("make build")
        plan.add(lambda out: print("testing"), "make test", on_test_failure)
        plan.on("finish", lambda: print("done"))

        plan.execute()        # returns at once, the round runs in the loop
        await plan.wait()

    ``execute`` empties the plan, so new steps can be added straight away
    and form an independent next batch. Rounds started while another is
    still running proceed independently of each other.
    """

    def __init__(
        self,
        config: PlanConfig | Mapping[str, Any] | None = None,
        *,
        runner: ProcessRunner | None = None,
        console: ConsoleSink | None = None,
    ) -> None:
        """Initialize the plan.

        Args:
            config: PlanConfig, or a mapping of its fields. Unknown keys
                are ignored.
            runner: Process service for commands (shell by default).
            console: Sink for step output (standard streams by default).
        """
        if config is None:
            config = PlanConfig()
        elif not isinstance(config, PlanConfig):
            config = PlanConfig.model_validate(dict(config))
        self._config = config

        self._store = PlanStore()
        self._events = EventChannel()
        self._builder = ChainBuilder()
        self._engine = ExecutionEngine(
            config,
            runner or ShellProcessRunner(),
            console or StreamConsoleSink(),
            self._events,
        )

        # Rounds in flight, in start order
        self._rounds: list[asyncio.Task[RoundState]] = []

    # --- configuration ---

    @property
    def config(self) -> PlanConfig:
        return self._config

    def will_auto_print_out(self) -> bool:
        return self._config.auto_print_out

    def will_auto_print_err(self) -> bool:
        return self._config.auto_print_err

    def continues_on_error(self) -> bool:
        return self._config.continue_on_error

    # --- plan management ---

    def add(self, *args: Any) -> Step:
        """Add a step: ``add([pre_logic,] command[, options][, error_handler])``.

        Args:
            pre_logic: Called with the prior step's stdout before command.
            command: Shell command to run.
            options: Mapping passed to the process runner (cwd, env, ...).
            error_handler: Called with ``(error, stderr)`` if command fails.
                Returning True or False overrides ``continue_on_error``
                and suppresses the execerror event.

        Returns:
            The Step that was added.

        Raises:
            InvalidArgument: If no string command can be resolved. The
                plan is left untouched.
        """
        step = resolve_step_args(*args)
        self._store.append(step)
        return step

    def add_step(
        self,
        command: str,
        *,
        pre_logic: PreLogic | None = None,
        options: Mapping[str, Any] | None = None,
        error_handler: ErrorHandler | None = None,
    ) -> Step:
        """Add a step through named parameters. See ``add``."""
        step = build_step(command, pre_logic, options, error_handler)
        self._store.append(step)
        return step

    def append(self, step: Step) -> Step:
        """Add an already built Step."""
        if not isinstance(step, Step):
            raise InvalidArgument(f"expected a Step, got {step!r}", value=step)
        self._store.append(step)
        return step

    @property
    def pending(self) -> int:
        """Number of steps waiting for the next execute()."""
        return len(self._store)

    @property
    def steps(self) -> tuple[Step, ...]:
        return self._store.snapshot()

    # --- events ---

    def on(self, event: PlanEvent | str, listener: Listener) -> None:
        """Subscribe listener to execerror, complete or finish."""
        self._events.subscribe(event, listener)

    def off(self, event: PlanEvent | str, listener: Listener) -> None:
        self._events.unsubscribe(event, listener)

    @property
    def events(self) -> EventChannel:
        return self._events

    # --- execution ---

    def execute(self) -> None:
        """Drain the plan and start running it in the background.

        Returns immediately. Does nothing, and publishes nothing, when
        the plan is empty.

        Raises:
            PlanError: If called outside a running event loop. The plan
                is not drained in that case.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as e:
            raise PlanError("execute() must be called from a running event loop") from e

        steps = self._store.drain()
        if not steps:
            logger.debug("execute() on an empty plan, nothing to do")
            return

        head = self._builder.build(steps)
        state = RoundState(total_steps=len(steps))
        task = loop.create_task(self._engine.execute(head, state))
        self._rounds.append(task)
        task.add_done_callback(self._forget_round)

    async def wait(self) -> list[RoundState]:
        """Wait for every round in flight and return their states."""
        rounds = list(self._rounds)
        if not rounds:
            return []
        return list(await asyncio.gather(*rounds))

    @property
    def running(self) -> int:
        """Number of rounds still in flight."""
        return len(self._rounds)

    def _forget_round(self, task: asyncio.Task[RoundState]) -> None:
        if task in self._rounds:
            self._rounds.remove(task)

    def __repr__(self) -> str:
        commands = [step.command for step in self._store.snapshot()]
        return f"ExecPlan(pending={commands!r}, running={len(self._rounds)})"
