"""A base for event sourced aggregates, tracking version and new events."""

from __future__ import annotations

import datetime
import uuid
from typing import Any, Protocol, runtime_checkable

from eventhorizon.aggregate import Aggregate
from eventhorizon.context import Context
from eventhorizon.event import Event, EventOption, for_aggregate, new_event


@runtime_checkable
class VersionedAggregate(Aggregate, Protocol):
    """An aggregate built from events, with a version and uncommitted events."""

    def uncommitted_events(self) -> list[Event]:
        """Events created since the aggregate was last saved."""
        ...

    def clear_uncommitted_events(self) -> None:
        """Forget the uncommitted events."""
        ...

    def aggregate_version(self) -> int:
        """The version of the aggregate."""
        ...

    def set_aggregate_version(self, version: int) -> None:
        """Set the version after an event has been applied."""
        ...

    def apply_event(self, ctx: Context, event: Event) -> None:
        """Apply an event to the aggregate, raising if it cannot be applied."""
        ...


class AggregateBase:
    """Common state of an event sourced aggregate.

    Subclasses provide ``handle_command`` and ``apply_event``.
    """

    def __init__(self, aggregate_type: str, aggregate_id: uuid.UUID) -> None:
        self._type = aggregate_type
        self._id = aggregate_id
        self._version = 0
        self._events: list[Event] = []

    def entity_id(self) -> uuid.UUID:
        """The ID of the aggregate."""
        return self._id

    def aggregate_type(self) -> str:
        """The type of the aggregate."""
        return self._type

    def aggregate_version(self) -> int:
        """The version of the last applied event."""
        return self._version

    def set_aggregate_version(self, version: int) -> None:
        """Set the version after an event has been applied."""
        self._version = version

    def uncommitted_events(self) -> list[Event]:
        """Events appended since the last clear."""
        return list(self._events)

    def clear_uncommitted_events(self) -> None:
        """Forget the uncommitted events."""
        self._events = []

    def append_event(
        self,
        event_type: str,
        data: Any,
        timestamp: datetime.datetime,
        *options: EventOption | None,
    ) -> Event:
        """Create an event for this aggregate and keep it as uncommitted."""
        version = self._version + len(self._events) + 1
        event = new_event(
            event_type,
            data,
            timestamp,
            *options,
            for_aggregate(self._type, self._id, version),
        )
        self._events.append(event)
        return event