# eventhorizon

A toolkit for building applications with CQRS and event sourcing. It has no
dependencies outside the standard library.

## What it provides

- **Events** (`eventhorizon.event`): the `Event` dataclass, `new_event` with
  the options `for_aggregate`, `with_metadata`, `with_global_position` and
  `from_command`, and a registry of event data factories
  (`register_event_data`, `unregister_event_data`, `create_event_data`).
- **Commands** (`eventhorizon.command`, `eventhorizon.command_check`): the
  `Command`, `CommandIDer` and `CommandHandler` protocols,
  `CommandHandlerFunc`, a command registry (`register_command`,
  `unregister_command`, `create_command`, `registered_commands`) and
  `check_command`, which raises `MissingCommandError`,
  `MissingAggregateIDError` or `CommandFieldError` when a command is missing,
  has no aggregate ID, or has a required field left empty. Dataclass fields
  marked `field(metadata={"eh": "optional"})` and names starting with an
  underscore are not checked.
- **Context** (`eventhorizon.context`): an immutable `Context` carrying values
  and cancellation. Helpers store and read the aggregate ID, aggregate type and
  command type, and registered marshalers turn the values into a plain
  dictionary and back (`marshal_context`, `unmarshal_context`,
  `copy_context`).
- **Aggregates** (`eventhorizon.aggregate`): the `Entity`, `Aggregate`,
  `AggregateStore` and `SnapshotStrategy` protocols, `AggregateStoreError`,
  `AggregateError`, and a registry of aggregate factories
  (`register_aggregate`, `create_aggregate`).
- **Aggregate stores** (`eventhorizon.aggregatestore`):
  - `aggregatebase.AggregateBase` for event sourced aggregates; its
    `append_event` numbers new events after the current version.
  - `eventsourced.EventSourcedAggregateStore`, which loads an aggregate by
    replaying its events and saves its uncommitted events, optionally taking
    snapshots.
  - `snapshotstrategy`: `NoSnapshotStrategy`,
    `EveryNumberEventSnapshotStrategy` and `PeriodSnapshotStrategy`.
  - `eventsource.SliceEventSource`, a list of uncommitted events for model
    aggregates.
- **Command handling** (`eventhorizon.commandhandler`):
  `aggregate_handler.AggregateCommandHandler` loads an aggregate, lets it handle
  a command and saves it; `bus.CommandBus` routes commands to one handler per
  command type.
- **Comparison** (`eventhorizon.compare`): `compare_events` raises
  `EventMismatchError` on the first difference, and `compare_event_slices`
  returns whether two sequences match; the options `ignore_timestamp`,
  `ignore_version` and `ignore_position_metadata` relax the comparison.
- **Event bus errors** (`eventhorizon.eventbus`): `EventBusError` and the
  errors raised when adding handlers.

## Installation

```
pip install .
```

## Example

```python
from datetime import datetime, timezone

from eventhorizon.aggregate import register_aggregate
from eventhorizon.aggregatestore.aggregatebase import AggregateBase
from eventhorizon.event import new_event

class UserAggregate(AggregateBase):
    def __init__(self, aggregate_id):
        super().__init__("User", aggregate_id)
        self.name = ""

    def handle_command(self, ctx, cmd):
        self.append_event("UserCreated", {"name": cmd.name},
                          datetime.now(timezone.utc))

    def apply_event(self, ctx, event):
        if event.event_type == "UserCreated":
            self.name = event.data["name"]

register_aggregate(UserAggregate)

event = new_event("UserCreated", {"name": "Ada"},
                  datetime(2009, 11, 10, 23, tzinfo=timezone.utc))
print(event)  # UserCreated
```

## What it does not do

- It has no storage. `EventSourcedAggregateStore` works with an event store
  you supply, which must provide `save(ctx, events, original_version)` and
  `load_from(ctx, aggregate_id, version)`; if it also provides
  `load_snapshot` and `save_snapshot`, snapshots are used.
- It has no event bus implementation, only the errors an event bus reports.
- It has no codecs: events and commands are not serialized to JSON, BSON or
  any other format. `eventhorizon.codec` is an empty namespace.

## Running the tests

```
pip install ".[test]"
pytest
```