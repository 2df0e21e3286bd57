"""Publish/subscribe channel for plan lifecycle notifications."""

from __future__ import annotations

from typing import Any, Callable

from src.planning.models import PlanEvent

Listener = Callable[..., Any]


class EventChannel:
    """Holds listeners per event and calls them synchronously on publish.

    Listeners run in subscription order. Exceptions raised by a listener
    propagate to the publisher.
    """

    def __init__(self) -> None:
        self._listeners: dict[PlanEvent, list[Listener]] = {event: [] for event in PlanEvent}

    def subscribe(self, event: PlanEvent | str, listener: Listener) -> None:
        """Register listener for event.

        Raises:
            ValueError: If event is not a known plan event.
        """
        self._listeners[PlanEvent(event)].append(listener)

    def unsubscribe(self, event: PlanEvent | str, listener: Listener) -> None:
        """Remove one registration of listener, if present."""
        listeners = self._listeners[PlanEvent(event)]
        if listener in listeners:
            listeners.remove(listener)

    def publish(self, event: PlanEvent | str, *args: Any) -> None:
        """Call every listener of event with args."""
        for listener in list(self._listeners[PlanEvent(event)]):
            listener(*args)

    def listeners(self, event: PlanEvent | str) -> list[Listener]:
        return list(self._listeners[PlanEvent(event)])
