import datetime
import uuid
from dataclasses import dataclass
from typing import Any

import pytest

from eventhorizon.aggregate import (
    AggregateNotRegisteredError,
    AggregateStoreError,
    AggregateStoreOp,
    register_aggregate,
)
from eventhorizon.aggregatestore.aggregatebase import AggregateBase
from eventhorizon.aggregatestore.eventsourced import (
    AggregateNotVersionedError,
    EventSourcedAggregateStore,
    InvalidEventStoreError,
    MismatchedEventTypeError,
)
from eventhorizon.aggregatestore.snapshotstrategy import EveryNumberEventSnapshotStrategy
from eventhorizon.context import Context

AGG_TYPE = "EventSourcedTestAggregate"
AGG_OTHER_TYPE = "EventSourcedTestAggregateOther"
EVENT_TYPE = "EventSourcedTestEvent"
EVENT_OTHER_TYPE = "EventSourcedTestEventOther"
TIMESTAMP = datetime.datetime(2009, 11, 10, 23, 0, 0, tzinfo=datetime.timezone.utc)


@dataclass
class EventData:
    content: str = ""


@dataclass
class Snapshot:
    version: int
    timestamp: datetime.datetime
    aggregate_type: str
    state: Any


class TestAggregate(AggregateBase):
    def __init__(self, aggregate_id):
        super().__init__(AGG_TYPE, aggregate_id)
        self.event = None

    def handle_command(self, ctx, cmd):
        return None

    def apply_event(self, ctx, event):
        self.event = event


class TestAggregateOther(AggregateBase):
    def __init__(self, aggregate_id):
        super().__init__(AGG_OTHER_TYPE, aggregate_id)
        self.err = None
        self.applied_events = 0

    def handle_command(self, ctx, cmd):
        return None

    def apply_event(self, ctx, event):
        if self.err is not None:
            raise self.err
        self.applied_events += 1

    def create_snapshot(self):
        return Snapshot(
            version=self.aggregate_version(),
            timestamp=datetime.datetime.now(datetime.timezone.utc),
            aggregate_type=AGG_TYPE,
            state=self,
        )

    def apply_snapshot(self, snapshot):
        self._id = snapshot.state.entity_id()


class PlainAggregate:
    def __init__(self, aggregate_id):
        self._id = aggregate_id

    def entity_id(self):
        return self._id

    def aggregate_type(self):
        return "EventSourcedPlain"

    def handle_command(self, ctx, cmd):
        return None


register_aggregate(TestAggregate)
register_aggregate(TestAggregateOther)


class MockEventStore:
    def __init__(self):
        self.events = []
        self.err = None
        self.snapshot = None

    def save(self, ctx, events, original_version):
        if self.err is not None:
            raise self.err
        self.events.extend(events)

    def load(self, ctx, aggregate_id):
        if self.err is not None:
            raise self.err
        return [e for e in self.events if e.aggregate_id == aggregate_id]

    def load_from(self, ctx, aggregate_id, version):
        if self.err is not None:
            raise self.err
        return [
            e for e in self.events if e.aggregate_id == aggregate_id and e.version >= version
        ]

    def load_snapshot(self, ctx, aggregate_id):
        return self.snapshot

    def save_snapshot(self, ctx, aggregate_id, snapshot):
        self.snapshot = snapshot


def _causes(exc):
    while exc is not None:
        yield exc
        exc = exc.__cause__


@pytest.fixture
def stores():
    event_store = MockEventStore()
    return EventSourcedAggregateStore(event_store), event_store


def test_new_store_requires_event_store():
    with pytest.raises(InvalidEventStoreError, match="invalid event store"):
        EventSourcedAggregateStore(None)


def test_load_no_events(stores):
    store, _ = stores
    aggregate_id = uuid.uuid4()
    agg = store.load(Context(), AGG_TYPE, aggregate_id)
    assert isinstance(agg, TestAggregate)
    assert agg.entity_id() == aggregate_id
    assert agg.aggregate_version() == 0
    assert agg.event is None


def test_load_events(stores):
    store, event_store = stores
    ctx = Context()
    aggregate_id = uuid.uuid4()

    writer = TestAggregate(aggregate_id)
    event1 = writer.append_event(EVENT_TYPE, EventData("event1"), TIMESTAMP)
    event_store.save(ctx, [event1], 0)

    loaded = store.load(ctx, AGG_TYPE, aggregate_id)
    assert loaded.entity_id() == aggregate_id
    assert loaded.aggregate_version() == 1
    assert loaded.event == event1


def test_load_store_error(stores):
    store, event_store = stores
    store_err = RuntimeError("error")
    event_store.err = store_err
    with pytest.raises(AggregateStoreError) as exc_info:
        store.load(Context(), AGG_TYPE, uuid.uuid4())
    assert exc_info.value.err is store_err
    assert exc_info.value.op == AggregateStoreOp.LOAD


def test_load_mismatched_event_type(stores):
    store, event_store = stores
    ctx = Context()

    agg = TestAggregate(uuid.uuid4())
    event_store.save(ctx, [agg.append_event(EVENT_TYPE, EventData("event"), TIMESTAMP)], 0)

    other_id = uuid.uuid4()
    other = TestAggregateOther(other_id)
    event_store.save(
        ctx, [other.append_event(EVENT_OTHER_TYPE, EventData("event2"), TIMESTAMP)], 0
    )

    with pytest.raises(AggregateStoreError) as exc_info:
        store.load(ctx, AGG_TYPE, other_id)
    assert isinstance(exc_info.value.err, MismatchedEventTypeError)


def test_save_events(stores):
    store, event_store = stores
    ctx = Context()
    aggregate_id = uuid.uuid4()
    agg = TestAggregateOther(aggregate_id)

    store.save(ctx, agg)
    assert event_store.load(ctx, aggregate_id) == []

    event1 = agg.append_event(EVENT_TYPE, EventData("event"), TIMESTAMP)
    store.save(ctx, agg)

    events = event_store.load(ctx, aggregate_id)
    assert len(events) == 1
    assert events[0] is event1
    assert agg.uncommitted_events() == []
    assert agg.aggregate_version() == 1


def test_save_store_error(stores):
    store, event_store = stores
    agg = TestAggregateOther(uuid.uuid4())
    agg.append_event(EVENT_TYPE, EventData("event"), TIMESTAMP)

    store_err = RuntimeError("store error")
    event_store.err = store_err
    with pytest.raises(AggregateStoreError) as exc_info:
        store.save(Context(), agg)
    assert exc_info.value.err is store_err
    assert exc_info.value.op == AggregateStoreOp.SAVE
    assert len(agg.uncommitted_events()) == 1


def test_save_aggregate_apply_error(stores):
    store, _ = stores
    agg = TestAggregateOther(uuid.uuid4())
    agg.append_event(EVENT_TYPE, EventData("event"), TIMESTAMP)

    agg_err = RuntimeError("aggregate error")
    agg.err = agg_err
    with pytest.raises(AggregateStoreError) as exc_info:
        store.save(Context(), agg)
    assert any(cause is agg_err for cause in _causes(exc_info.value))


def test_save_not_versioned(stores):
    store, _ = stores
    with pytest.raises(AggregateStoreError) as exc_info:
        store.save(Context(), PlainAggregate(uuid.uuid4()))
    assert isinstance(exc_info.value.err, AggregateNotVersionedError)


def test_take_snapshot():
    event_store = MockEventStore()
    store = EventSourcedAggregateStore(
        event_store, snapshot_strategy=EveryNumberEventSnapshotStrategy(2)
    )
    ctx = Context()
    agg = TestAggregateOther(uuid.uuid4())

    for i in range(3):
        agg.append_event(EVENT_TYPE, EventData(f"event{i}"), TIMESTAMP)
        store.save(ctx, agg)

    assert event_store.snapshot is not None
    assert event_store.snapshot.version == 2

    loaded = store.load(ctx, agg.aggregate_type(), agg.entity_id())
    assert isinstance(loaded, TestAggregateOther)
    assert loaded.applied_events == 1


def test_aggregate_not_registered(stores):
    store, _ = stores
    with pytest.raises(AggregateStoreError) as exc_info:
        store.load(Context(), "EventSourcedTestAggregate3", uuid.uuid4())
    assert isinstance(exc_info.value.err, AggregateNotRegisteredError)