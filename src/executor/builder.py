"""Step chain construction.

A drained batch of N steps becomes a linked list of N + 1 continuations.
Continuation ``i`` receives the outcome of step ``i - 1`` (nothing for
the head), lets the engine decide whether to go on, and then runs step
``i``. The extra terminal continuation receives the outcome of the last
step. Each continuation carries the step whose outcome it receives as
``settles``, so a failure is always judged by that step's own handler.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from src.planning.models import Step


@dataclass(frozen=True)
class Continuation:
    """What happens next after one step's command has finished."""

    index: int
    step: Step | None  # None for the terminal continuation
    settles: Step | None  # Step whose outcome arrives here
    next: Continuation | None = None

    @property
    def is_first(self) -> bool:
        return self.settles is None

    @property
    def is_terminal(self) -> bool:
        return self.step is None


class ChainBuilder:
    """Builds continuation chains from drained step batches."""

    def build(self, steps: Sequence[Step]) -> Continuation:
        """Build the chain for steps, last step first.

        Args:
            steps: Drained steps in execution order.

        Returns:
            The head continuation, which runs the first step.

        Raises:
            ValueError: If steps is empty.
        """
        if not steps:
            raise ValueError("cannot build a chain from an empty plan")

        # Each continuation closes over the next one, so build backward
        node = Continuation(index=len(steps), step=None, settles=steps[-1])
        for index in range(len(steps) - 1, -1, -1):
            node = Continuation(
                index=index,
                step=steps[index],
                settles=steps[index - 1] if index > 0 else None,
                next=node,
            )
        return node


def iter_chain(head: Continuation) -> Iterator[Continuation]:
    """Walk a chain from head to its terminal continuation."""
    node: Continuation | None = head
    while node is not None:
        yield node
        node = node.next
