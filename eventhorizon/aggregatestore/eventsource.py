"""A simple in-memory source of uncommitted events for model aggregates."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from eventhorizon.event import Event


class SliceEventSource:
    """Collects events to be handled once an aggregate has been saved.

    Meant to be inherited by aggregates that are stored as models.
    """

    def __init__(self, events: Iterable[Event] = ()) -> None:
        self._uncommitted: list[Event] = list(events)

    def append_event(self, event: Event) -> None:
        """Keep an event to be handled after a successful save."""
        self._uncommitted.append(event)

    def uncommitted_events(self) -> list[Event]:
        """The events appended since the last clear."""
        return list(self._uncommitted)

    def clear_uncommitted_events(self) -> None:
        """Forget the uncommitted events."""
        self._uncommitted = []

    def __len__(self) -> int:
        return len(self._uncommitted)

    def __iter__(self) -> Iterator[Event]:
        return iter(self._uncommitted)