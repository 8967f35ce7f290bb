"""An aggregate store that rebuilds aggregates from their stored events."""

from __future__ import annotations

import datetime
import uuid
from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from eventhorizon.aggregate import (
    Aggregate,
    AggregateNotFoundError,
    AggregateStoreError,
    AggregateStoreOp,
    SnapshotStrategy,
    create_aggregate,
)
from eventhorizon.aggregatestore.aggregatebase import VersionedAggregate
from eventhorizon.aggregatestore.snapshotstrategy import NoSnapshotStrategy
from eventhorizon.context import Context
from eventhorizon.event import Event


class InvalidEventStoreError(ValueError):
    """Raised when an aggregate store is created without an event store."""

    def __init__(self, message: str = "invalid event store") -> None:
        super().__init__(message)


class AggregateNotVersionedError(TypeError):
    """Raised when an aggregate is not a versioned, event sourced aggregate."""

    def __init__(self, message: str = "aggregate is not versioned") -> None:
        super().__init__(message)


class MismatchedEventTypeError(ValueError):
    """Raised when a loaded event belongs to another aggregate type."""

    def __init__(self, message: str = "mismatched event type and aggregate type") -> None:
        super().__init__(message)


class _EventApplyError(Exception):
    """An aggregate refused to apply an event."""


@runtime_checkable
class _SnapshotStore(Protocol):
    def load_snapshot(self, ctx: Context, aggregate_id: uuid.UUID) -> Any:
        ...

    def save_snapshot(self, ctx: Context, aggregate_id: uuid.UUID, snapshot: Any) -> None:
        ...


@runtime_checkable
class _Snapshotable(Protocol):
    def create_snapshot(self) -> Any:
        ...

    def apply_snapshot(self, snapshot: Any) -> None:
        ...


class EventSourcedAggregateStore:
    """Loads aggregates by replaying their events and saves their new events.

    The event store must provide ``save(ctx, events, original_version)`` and
    ``load_from(ctx, aggregate_id, version)``. If it also provides
    ``load_snapshot`` and ``save_snapshot``, snapshots are used for aggregates
    that provide ``create_snapshot`` and ``apply_snapshot``.
    """

    def __init__(self, store: Any, *, snapshot_strategy: SnapshotStrategy | None = None) -> None:
        if store is None:
            raise InvalidEventStoreError()
        self._store = store
        self._snapshot_strategy: SnapshotStrategy = snapshot_strategy or NoSnapshotStrategy()
        self._snapshot_store: _SnapshotStore | None = (
            store if isinstance(store, _SnapshotStore) else None
        )

    def load(self, ctx: Context, aggregate_type: str, aggregate_id: uuid.UUID) -> Aggregate:
        """Create an aggregate and apply all its stored events to it."""

        def failure(err: BaseException) -> AggregateStoreError:
            return AggregateStoreError(err, AggregateStoreOp.LOAD, aggregate_type, aggregate_id)

        try:
            aggregate = create_aggregate(aggregate_type, aggregate_id)
        except Exception as err:
            raise failure(err) from err

        if not isinstance(aggregate, VersionedAggregate):
            err = AggregateNotVersionedError()
            raise failure(err) from err

        from_version = 1
        if isinstance(aggregate, _Snapshotable) and self._snapshot_store is not None:
            try:
                snapshot = self._snapshot_store.load_snapshot(ctx, aggregate_id)
            except Exception as err:
                raise failure(err) from err
            if snapshot is not None:
                aggregate.apply_snapshot(snapshot)
                from_version = snapshot.version + 1

        try:
            events = self._store.load_from(ctx, aggregate.entity_id(), from_version)
        except AggregateNotFoundError:
            events = []
        except Exception as err:
            raise failure(err) from err

        try:
            self._apply_events(ctx, aggregate, events or [])
        except Exception as err:
            raise failure(err) from err

        return aggregate

    def save(self, ctx: Context, aggregate: Aggregate) -> None:
        """Store the uncommitted events of an aggregate and apply them to it."""

        def failure(err: BaseException) -> AggregateStoreError:
            return AggregateStoreError(
                err, AggregateStoreOp.SAVE, aggregate.aggregate_type(), aggregate.entity_id()
            )

        if not isinstance(aggregate, VersionedAggregate):
            err = AggregateNotVersionedError()
            raise failure(err) from err

        events = aggregate.uncommitted_events()
        if not events:
            return

        try:
            self._store.save(ctx, events, aggregate.aggregate_version())
        except Exception as err:
            raise failure(err) from err

        aggregate.clear_uncommitted_events()

        try:
            self._apply_events(ctx, aggregate, events)
        except Exception as err:
            raise failure(err) from err

        self._take_snapshot(ctx, aggregate, events[-1], failure)

    def _take_snapshot(self, ctx: Context, aggregate: Aggregate, last_event: Event, failure) -> None:
        if not isinstance(aggregate, _Snapshotable) or self._snapshot_store is None:
            return

        try:
            snapshot = self._snapshot_store.load_snapshot(ctx, aggregate.entity_id())
        except Exception as err:
            raise failure(err) from err

        if snapshot is not None:
            version = snapshot.version
            timestamp = snapshot.timestamp
        else:
            version = 0
            timestamp = datetime.datetime.now(last_event.timestamp.tzinfo)

        if self._snapshot_strategy.should_take_snapshot(version, timestamp, last_event):
            try:
                self._snapshot_store.save_snapshot(
                    ctx, aggregate.entity_id(), aggregate.create_snapshot()
                )
            except Exception as err:
                raise failure(err) from err

    @staticmethod
    def _apply_events(ctx: Context, aggregate: VersionedAggregate, events: Sequence[Event]) -> None:
        for event in events:
            if event.aggregate_type != aggregate.aggregate_type():
                raise MismatchedEventTypeError()
            try:
                aggregate.apply_event(ctx, event)
            except Exception as err:
                raise _EventApplyError(f"could not apply event {event}: {err}") from err
            aggregate.set_aggregate_version(event.version)