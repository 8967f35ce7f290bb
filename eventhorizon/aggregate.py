"""Aggregates, entities, aggregate stores and the aggregate factory registry."""

from __future__ import annotations

import datetime
import enum
import threading
import uuid
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from eventhorizon.command import Command, RegistrationError
from eventhorizon.context import Context
from eventhorizon.event import Event

_NIL = uuid.UUID(int=0)


@runtime_checkable
class Entity(Protocol):
    """An item identified by an ID rather than by its attribute values."""

    def entity_id(self) -> uuid.UUID:
        """The ID of the entity."""
        ...


@runtime_checkable
class Versionable(Protocol):
    """An item that has a version number."""

    def aggregate_version(self) -> int:
        """The version of the item."""
        ...


@runtime_checkable
class Aggregate(Entity, Protocol):
    """A versioned data entity that handles commands and produces events."""

    def aggregate_type(self) -> str:
        """The type name of the aggregate."""
        ...

    def handle_command(self, ctx: Context, cmd: Command) -> None:
        """Handle a command, raising on failure."""
        ...


@runtime_checkable
class AggregateStore(Protocol):
    """Loads and saves aggregates."""

    def load(self, ctx: Context, aggregate_type: str, aggregate_id: uuid.UUID) -> Aggregate:
        """Load the most recent version of an aggregate."""
        ...

    def save(self, ctx: Context, aggregate: Aggregate) -> None:
        """Save the uncommitted events of an aggregate."""
        ...


@runtime_checkable
class SnapshotStrategy(Protocol):
    """Decides whether a snapshot of an aggregate should be taken."""

    def should_take_snapshot(
        self,
        last_snapshot_version: int,
        last_snapshot_timestamp: datetime.datetime,
        event: Event,
    ) -> bool:
        ...


class AggregateNotFoundError(LookupError):
    """Raised when no aggregate can be found."""

    def __init__(self, message: str = "aggregate not found") -> None:
        super().__init__(message)


class AggregateNotRegisteredError(LookupError):
    """Raised when no aggregate factory is registered for a type."""

    def __init__(self, message: str = "aggregate not registered") -> None:
        super().__init__(message)


class AggregateStoreOp(str, enum.Enum):
    """The store operation during which an error happened."""

    LOAD = "load"
    SAVE = "save"


class AggregateStoreError(Exception):
    """An error in an aggregate store, with the operation and aggregate involved."""

    def __init__(
        self,
        err: BaseException | None = None,
        op: AggregateStoreOp | str | None = None,
        aggregate_type: str = "",
        aggregate_id: uuid.UUID = _NIL,
    ) -> None:
        self.err = err
        self.op = op
        self.aggregate_type = aggregate_type
        self.aggregate_id = aggregate_id
        super().__init__(self._describe())
        self.__cause__ = err

    def _describe(self) -> str:
        text = "aggregate store: "
        op = self.op.value if isinstance(self.op, AggregateStoreOp) else self.op
        if op:
            text += f"{op}: "
        text += str(self.err) if self.err is not None else "unknown error"
        if self.aggregate_id is not None and self.aggregate_id != _NIL:
            name = self.aggregate_type or "Aggregate"
            text += f", {name}({self.aggregate_id})"
        return text

    def __str__(self) -> str:
        return self._describe()


class AggregateError(Exception):
    """An error raised by an aggregate while handling a command."""

    def __init__(self, err: BaseException) -> None:
        self.err = err
        super().__init__(f"aggregate error: {err}")
        self.__cause__ = err


AggregateFactory = Callable[[uuid.UUID], Any]

_aggregates: dict[str, AggregateFactory] = {}
_aggregates_lock = threading.Lock()


def register_aggregate(factory: AggregateFactory) -> None:
    """Register a factory creating aggregates of the type it produces."""
    aggregate = factory(uuid.uuid4())
    if aggregate is None:
        raise RegistrationError("eventhorizon: created aggregate is nil")

    aggregate_type = aggregate.aggregate_type()
    if not aggregate_type:
        raise RegistrationError("eventhorizon: attempt to register empty aggregate type")

    with _aggregates_lock:
        if aggregate_type in _aggregates:
            raise RegistrationError(
                f'eventhorizon: registering duplicate types for "{aggregate_type}"'
            )
        _aggregates[aggregate_type] = factory


def create_aggregate(aggregate_type: str, aggregate_id: uuid.UUID) -> Aggregate:
    """Create an aggregate of a type with an ID using its registered factory."""
    with _aggregates_lock:
        factory = _aggregates.get(aggregate_type)
    if factory is None:
        raise AggregateNotRegisteredError()
    return factory(aggregate_id)