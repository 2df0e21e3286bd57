"""Pending-step storage for a plan."""

from __future__ import annotations

from src.planning.models import Step


class PlanStore:
    """Ordered, append-only sequence of steps owned by one plan.

    ``drain`` hands out the current batch as a tuple and starts a fresh
    list, so the drained batch and later appends never share storage.
    """

    def __init__(self) -> None:
        self._steps: list[Step] = []

    def append(self, step: Step) -> None:
        """Add a step to the tail of the plan."""
        self._steps.append(step)

    def drain(self) -> tuple[Step, ...]:
        """Return every pending step in order and empty the store."""
        steps, self._steps = tuple(self._steps), []
        return steps

    def snapshot(self) -> tuple[Step, ...]:
        """Return the pending steps without removing them."""
        return tuple(self._steps)

    def __len__(self) -> int:
        return len(self._steps)

    def __bool__(self) -> bool:
        return bool(self._steps)
