"""Domain events, event options and the event data factory registry."""

from __future__ import annotations

import datetime
import threading
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from eventhorizon.command import Command, CommandIDer, RegistrationError

_NIL = uuid.UUID(int=0)


@dataclass
class Event:
    """A change that has happened to an aggregate.

    Event types should be in past tense and carry the intent of the change
    (``CustomerMoved`` rather than ``CustomerAddressCorrected``).
    """

    event_type: str
    data: Any
    timestamp: datetime.datetime
    aggregate_type: str = ""
    aggregate_id: uuid.UUID = _NIL
    version: int = 0
    metadata: dict[str, Any] | None = None

    def __str__(self) -> str:
        text = self.event_type
        if self.aggregate_id != _NIL and self.version != 0:
            text += f"({self.aggregate_id}, v{self.version})"
        return text


EventOption = Callable[[Event], None]


def for_aggregate(aggregate_type: str, aggregate_id: uuid.UUID, version: int) -> EventOption:
    """Option setting the aggregate type, ID and version of an event."""

    def apply(event: Event) -> None:
        event.aggregate_type = aggregate_type
        event.aggregate_id = aggregate_id
        event.version = version

    return apply


def with_metadata(metadata: Mapping[str, Any] | None) -> EventOption:
    """Option merging metadata into an event.

    The value types must be supported by the codecs in use.
    """

    def apply(event: Event) -> None:
        if event.metadata is None:
            event.metadata = dict(metadata) if metadata is not None else None
        elif metadata is not None:
            event.metadata.update(metadata)

    return apply


def with_global_position(position: int) -> EventOption:
    """Option storing the global event position in the metadata."""
    return with_metadata({"position": position})


def from_command(cmd: Command) -> EventOption:
    """Option adding the originating command type, and ID if it has one."""
    metadata: dict[str, Any] = {"command_type": str(cmd.command_type())}
    if isinstance(cmd, CommandIDer):
        metadata["command_id"] = str(cmd.command_id())
    return with_metadata(metadata)


def new_event(
    event_type: str,
    data: Any,
    timestamp: datetime.datetime,
    *options: EventOption | None,
) -> Event:
    """Create an event with a type, data and timestamp, applying options."""
    event = Event(event_type=event_type, data=data, timestamp=timestamp)
    for option in options:
        if option is not None:
            option(event)
    return event


def new_event_for_aggregate(
    event_type: str,
    data: Any,
    timestamp: datetime.datetime,
    aggregate_type: str,
    aggregate_id: uuid.UUID,
    version: int,
    *options: EventOption | None,
) -> Event:
    """Create an event and set its aggregate data.

    Deprecated: use ``new_event`` with the ``for_aggregate`` option.
    """
    return new_event(
        event_type,
        data,
        timestamp,
        *options,
        for_aggregate(aggregate_type, aggregate_id, version),
    )


class EventDataNotRegisteredError(LookupError):
    """Raised when no event data factory is registered for a type."""

    def __init__(self, message: str = "event data not registered") -> None:
        super().__init__(message)


EventDataFactory = Callable[[], Any]

_factories: dict[str, EventDataFactory] = {}
_factories_lock = threading.Lock()


def register_event_data(event_type: str, factory: EventDataFactory) -> None:
    """Register a factory creating event data for an event type."""
    if not event_type:
        raise RegistrationError("eventhorizon: attempt to register empty event type")

    with _factories_lock:
        if event_type in _factories:
            raise RegistrationError(
                f'eventhorizon: registering duplicate types for "{event_type}"'
            )
        _factories[event_type] = factory


def unregister_event_data(event_type: str) -> None:
    """Remove the event data factory registered for a type."""
    if not event_type:
        raise RegistrationError("eventhorizon: attempt to unregister empty event type")

    with _factories_lock:
        if event_type not in _factories:
            raise RegistrationError(
                f'eventhorizon: unregister of non-registered type "{event_type}"'
            )
        del _factories[event_type]


def create_event_data(event_type: str) -> Any:
    """Create event data of a type using its registered factory."""
    with _factories_lock:
        factory = _factories.get(event_type)
    if factory is None:
        raise EventDataNotRegisteredError()
    return factory()