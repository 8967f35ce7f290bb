"""A command handler that routes commands to handlers by command type."""

from __future__ import annotations

import threading

from eventhorizon.command import Command, CommandHandler
from eventhorizon.command_check import check_command
from eventhorizon.context import Context, ContextCancelledError


class HandlerAlreadySetError(ValueError):
    """Raised when a handler is already set for a command type."""

    def __init__(self, message: str = "handler is already set") -> None:
        super().__init__(message)


class HandlerNotFoundError(LookupError):
    """Raised when no handler is set for a command type."""

    def __init__(self, message: str = "no handlers for command") -> None:
        super().__init__(message)


class CommandBus:
    """Routes each command to the handler set for its command type."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._lock = threading.Lock()

    def handle_command(self, ctx: Context, cmd: Command) -> None:
        """Handle a command with the handler set for its type."""
        if ctx.done():
            raise ContextCancelledError()

        check_command(cmd)

        with self._lock:
            handler = self._handlers.get(cmd.command_type())
        if handler is None:
            raise HandlerNotFoundError()
        handler.handle_command(ctx, cmd)

    def set_handler(self, handler: CommandHandler, command_type: str) -> None:
        """Set the handler for a command type; a type can have only one."""
        with self._lock:
            if command_type in self._handlers:
                raise HandlerAlreadySetError()
            self._handlers[command_type] = handler