"""Commands, command handlers and the command factory registry."""

from __future__ import annotations

import threading
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from eventhorizon.context import Context


@runtime_checkable
class Command(Protocol):
    """A domain command sent to a handler.

    Public fields of a dataclass command are required unless marked with
    ``field(metadata={"eh": "optional"})``; see ``check_command``.
    """

    def aggregate_id(self) -> uuid.UUID:
        """The ID of the aggregate that should handle the command."""
        ...

    def aggregate_type(self) -> str:
        """The type of the aggregate that can handle the command."""
        ...

    def command_type(self) -> str:
        """The type of the command."""
        ...


@runtime_checkable
class CommandIDer(Protocol):
    """A command that carries a unique instance ID."""

    def command_id(self) -> uuid.UUID:
        """The ID of this command instance."""
        ...


@runtime_checkable
class CommandHandler(Protocol):
    """Anything able to handle commands; errors are raised."""

    def handle_command(self, ctx: Context, cmd: Command) -> None:
        ...


@dataclass(frozen=True)
class CommandHandlerFunc:
    """Adapts a plain function into a command handler."""

    func: Callable[[Context, Command], None]

    def handle_command(self, ctx: Context, cmd: Command) -> None:
        """Call the wrapped function."""
        return self.func(ctx, cmd)


class RegistrationError(Exception):
    """Raised on invalid registration or unregistration of a factory."""


class CommandNotRegisteredError(LookupError):
    """Raised when no command factory is registered for a type."""

    def __init__(self, message: str = "command not registered") -> None:
        super().__init__(message)


CommandFactory = Callable[[], Command]

_commands: dict[str, CommandFactory] = {}
_commands_lock = threading.Lock()


def register_command(factory: CommandFactory) -> None:
    """Register a factory creating commands of the type it produces."""
    cmd = factory()
    if cmd is None:
        raise RegistrationError("eventhorizon: created command is nil")

    command_type = cmd.command_type()
    if not command_type:
        raise RegistrationError("eventhorizon: attempt to register empty command type")

    with _commands_lock:
        if command_type in _commands:
            raise RegistrationError(
                f'eventhorizon: registering duplicate types for "{command_type}"'
            )
        _commands[command_type] = factory


def unregister_command(command_type: str) -> None:
    """Remove the factory registered for a command type."""
    if not command_type:
        raise RegistrationError("eventhorizon: attempt to unregister empty command type")

    with _commands_lock:
        if command_type not in _commands:
            raise RegistrationError(
                f'eventhorizon: unregister of non-registered type "{command_type}"'
            )
        del _commands[command_type]


def create_command(command_type: str) -> Command:
    """Create a command of a type using its registered factory."""
    with _commands_lock:
        factory = _commands.get(command_type)
    if factory is None:
        raise CommandNotRegisteredError()
    return factory()


def registered_commands() -> dict[str, CommandFactory]:
    """Return a copy of the registered command factories by type."""
    with _commands_lock:
        return dict(_commands)