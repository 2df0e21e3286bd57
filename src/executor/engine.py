"""Execution engine for the executor layer.

This module provides the ExecutionEngine class for:
- Walking a continuation chain one command at a time
- Forwarding step output to the console sink
- Deciding, at every failure, whether the round halts or goes on
- Publishing the execerror / complete / finish notifications
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from src.executor.builder import Continuation, iter_chain
from src.executor.console import ConsoleSink
from src.executor.events import EventChannel
from src.executor.runner import ProcessRunner
from src.planning.models import (
    PlanConfig,
    PlanEvent,
    ProcessResult,
    RoundState,
    RoundStatus,
    Step,
    StepResult,
    StepStatus,
)

logger = logging.getLogger(__name__)


class ExecutionEngine:
    """Drives a continuation chain to its end.

    For each finished command the engine:
    1. Forwards its output to the console sink, as configured
    2. On failure, asks the step's own error handler for a decision
    3. Falls back to ``continue_on_error`` (and publishes execerror)
       when the handler made no explicit True/False decision
    4. Runs the next step's pre-logic and command, or stops the round

    ``finish`` is published exactly once per round, whatever happened.
    """

    def __init__(
        self,
        config: PlanConfig,
        runner: ProcessRunner,
        console: ConsoleSink,
        events: EventChannel,
    ) -> None:
        """Initialize the execution engine.

        Args:
            config: Plan-wide printing and error policy.
            runner: Process service that runs each command.
            console: Sink for step output.
            events: Channel the lifecycle notifications go to.
        """
        self._config = config
        self._runner = runner
        self._console = console
        self._events = events

    async def execute(self, head: Continuation, state: RoundState) -> RoundState:
        """Run the chain starting at head and return the final state.

        Args:
            head: First continuation of a built chain.
            state: Round record to fill in.

        Returns:
            The same RoundState, completed.
        """
        logger.info("Starting round %s with %d step(s)", state.round_id, state.total_steps)

        try:
            node: Continuation | None = head
            outcome: ProcessResult | None = None

            while node is not None:
                if not node.is_first and not self._settle(node, outcome, state):
                    self._skip_remaining(node, state)
                    state.status = RoundStatus.HALTED
                    break

                if node.is_terminal:
                    break

                outcome = await self._dispatch(node, outcome)
                node = node.next

        except Exception:
            logger.exception("Round %s aborted", state.round_id)
            state.status = RoundStatus.ABORTED

        state.completed_at = datetime.now(UTC).isoformat()
        logger.info("Round %s ended: %s", state.round_id, state.status.value)

        self._publish_finish(state)
        return state

    def _publish_finish(self, state: RoundState) -> None:
        """Call every finish listener, even when an earlier one raises."""
        for listener in self._events.listeners(PlanEvent.FINISH):
            try:
                listener()
            except Exception:
                logger.exception("Finish listener failed in round %s", state.round_id)
                state.status = RoundStatus.ABORTED

    async def _dispatch(
        self,
        node: Continuation,
        prior: ProcessResult | None,
    ) -> ProcessResult:
        """Run node's pre-logic and command, waiting for the outcome."""
        step = node.step
        prior_stdout = prior.stdout if prior is not None else ""

        if step.pre_logic is not None:
            step.pre_logic(prior_stdout)

        logger.debug("Running step %d: %s", node.index, step.command)
        options = dict(step.options) if step.options is not None else None
        return await self._runner.run(step.command, options)

    def _settle(
        self,
        node: Continuation,
        outcome: ProcessResult,
        state: RoundState,
    ) -> bool:
        """Handle the outcome of the step node settles.

        Returns:
            Whether the round should go on to node's own step.
        """
        step = node.settles
        index = node.index - 1

        if not outcome.failed:
            self._print_success(outcome)
            state.step_results.append(self._make_result(index, step, outcome, StepStatus.COMPLETED))
            if node.is_terminal:
                state.status = RoundStatus.COMPLETED
                self._events.publish(PlanEvent.COMPLETE, outcome.stdout)
            return True

        if self._config.auto_print_err:
            self._console.write_err(outcome.stderr or str(outcome.error))

        should_continue, overridden = self._apply_policy(index, step, outcome)

        status = StepStatus.RECOVERED if should_continue else StepStatus.FAILED
        state.step_results.append(
            self._make_result(index, step, outcome, status, policy_overridden=overridden)
        )

        if should_continue and node.is_terminal:
            state.status = RoundStatus.FINISHED_WITH_ERRORS
        return should_continue

    def _apply_policy(
        self,
        index: int,
        step: Step,
        outcome: ProcessResult,
    ) -> tuple[bool, bool]:
        """Decide whether a failed step stops the round.

        Returns:
            Tuple of (should_continue, overridden_by_handler).
        """
        decision = None
        if step.error_handler is not None:
            decision = step.error_handler(outcome.error, outcome.stderr)

        # Only an exact bool overrides the plan-wide policy
        if decision is True or decision is False:
            logger.debug(
                "Error handler of step %d decided continue=%s", index, decision
            )
            return decision, True

        logger.warning(
            "Step %d failed (%s); continue_on_error=%s",
            index,
            step.command,
            self._config.continue_on_error,
        )
        self._events.publish(PlanEvent.EXECERROR, outcome.error, outcome.stderr)
        return self._config.continue_on_error, False

    def _print_success(self, outcome: ProcessResult) -> None:
        # auto_print_err only covers failed steps
        if not self._config.auto_print_out:
            return
        self._console.write_out(outcome.stdout)
        if outcome.stderr:
            self._console.write_err("stderr: " + outcome.stderr)

    def _skip_remaining(self, node: Continuation, state: RoundState) -> None:
        """Record every step from node onward as skipped."""
        for rest in iter_chain(node):
            if rest.step is not None:
                state.step_results.append(
                    StepResult(index=rest.index, command=rest.step.command, status=StepStatus.SKIPPED)
                )

    def _make_result(
        self,
        index: int,
        step: Step,
        outcome: ProcessResult,
        status: StepStatus,
        policy_overridden: bool = False,
    ) -> StepResult:
        return StepResult(
            index=index,
            command=step.command,
            status=status,
            stdout=outcome.stdout,
            stderr=outcome.stderr,
            error=str(outcome.error) if outcome.error is not None else None,
            returncode=outcome.returncode,
            policy_overridden=policy_overridden,
        )
