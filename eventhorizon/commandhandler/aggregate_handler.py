"""A command handler that dispatches commands to aggregates."""

from __future__ import annotations

from eventhorizon.aggregate import AggregateError, AggregateNotFoundError, AggregateStore
from eventhorizon.command import Command
from eventhorizon.command_check import check_command
from eventhorizon.context import Context, ContextCancelledError


class NilAggregateStoreError(ValueError):
    """Raised when a handler is created without an aggregate store."""

    def __init__(self, message: str = "aggregate store is nil") -> None:
        super().__init__(message)


class AggregateCommandHandler:
    """Dispatches commands to aggregates of one type.

    The aggregate is loaded from the store, handles the command, and is then
    saved back to the store.
    """

    def __init__(self, aggregate_type: str, store: AggregateStore | None) -> None:
        if store is None:
            raise NilAggregateStoreError()
        self._aggregate_type = aggregate_type
        self._store = store

    def handle_command(self, ctx: Context, cmd: Command) -> None:
        """Handle a command with the aggregate it is addressed to."""
        if ctx.done():
            raise ContextCancelledError()

        check_command(cmd)

        aggregate = self._store.load(ctx, self._aggregate_type, cmd.aggregate_id())
        if aggregate is None:
            raise AggregateNotFoundError()

        try:
            aggregate.handle_command(ctx, cmd)
        except Exception as err:
            raise AggregateError(err) from err

        self._store.save(ctx, aggregate)