"""Tests for PlanStore, ChainBuilder and EventChannel."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from src.executor.builder import ChainBuilder, iter_chain
from src.executor.events import EventChannel
from src.planning.models import PlanEvent, Step
from src.planning.store import PlanStore


@pytest.fixture
def steps() -> list[Step]:
    """Three plain steps."""
    return [Step(command=f"echo {name}") for name in ("a", "b", "c")]


class TestPlanStore:
    """Tests for PlanStore."""

    def test_append_keeps_order(self, steps):
        store = PlanStore()
        for step in steps:
            store.append(step)

        assert len(store) == 3
        assert [s.command for s in store.snapshot()] == ["echo a", "echo b", "echo c"]

    def test_drain_empties_store(self, steps):
        store = PlanStore()
        for step in steps:
            store.append(step)

        drained = store.drain()

        assert drained == tuple(steps)
        assert len(store) == 0
        assert not store

    def test_append_after_drain_does_not_alias(self, steps):
        """Test a new batch never shows up in an already drained one."""
        store = PlanStore()
        store.append(steps[0])
        drained = store.drain()

        store.append(steps[1])

        assert drained == (steps[0],)
        assert store.snapshot() == (steps[1],)

    def test_drain_empty_store(self):
        assert PlanStore().drain() == ()


class TestChainBuilder:
    """Tests for ChainBuilder."""

    def test_builds_one_continuation_per_step_plus_terminal(self, steps):
        head = ChainBuilder().build(steps)
        chain = list(iter_chain(head))

        assert len(chain) == 4
        assert [node.index for node in chain] == [0, 1, 2, 3]
        assert [node.step for node in chain] == [*steps, None]
        assert chain[-1].is_terminal
        assert not any(node.is_terminal for node in chain[:-1])

    def test_each_continuation_settles_the_previous_step(self, steps):
        """Test a step's outcome is handed to the continuation after it."""
        chain = list(iter_chain(ChainBuilder().build(steps)))

        assert chain[0].is_first
        assert chain[0].settles is None
        assert chain[1].settles is steps[0]
        assert chain[2].settles is steps[1]
        assert chain[3].settles is steps[2]

    def test_single_step_chain(self):
        step = Step(command="ls")
        head = ChainBuilder().build([step])

        assert head.step is step
        assert head.is_first
        assert head.next.is_terminal
        assert head.next.settles is step

    def test_empty_plan_rejected(self):
        with pytest.raises(ValueError):
            ChainBuilder().build([])


class TestEventChannel:
    """Tests for EventChannel."""

    def test_publish_calls_listeners_in_order(self):
        channel = EventChannel()
        calls = []
        channel.subscribe(PlanEvent.COMPLETE, lambda out: calls.append(("first", out)))
        channel.subscribe("complete", lambda out: calls.append(("second", out)))

        channel.publish(PlanEvent.COMPLETE, "done")

        assert calls == [("first", "done"), ("second", "done")]

    def test_events_are_separate(self):
        channel = EventChannel()
        listener = MagicMock()
        channel.subscribe("finish", listener)

        channel.publish("complete", "out")

        listener.assert_not_called()

    def test_unsubscribe(self):
        channel = EventChannel()
        listener = MagicMock()
        channel.subscribe("finish", listener)
        channel.unsubscribe("finish", listener)

        channel.publish("finish")

        listener.assert_not_called()
        assert channel.listeners("finish") == []

    def test_unknown_event_rejected(self):
        with pytest.raises(ValueError):
            EventChannel().subscribe("error", MagicMock())
