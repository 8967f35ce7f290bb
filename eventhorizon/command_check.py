"""Validation of required command fields."""

from __future__ import annotations

import dataclasses
import datetime
import numbers
import types
import uuid
from collections.abc import Iterator
from typing import Any, Protocol, runtime_checkable

_NIL = uuid.UUID(int=0)
_CALLABLE_TYPES = (
    types.FunctionType,
    types.BuiltinFunctionType,
    types.MethodType,
    types.LambdaType,
)


@runtime_checkable
class IsZeroer(Protocol):
    """A value that knows whether it is zero and so missing in a command."""

    def is_zero(self) -> bool:
        ...


class MissingCommandError(ValueError):
    """Raised when there is no command to handle."""

    def __init__(self, message: str = "missing command") -> None:
        super().__init__(message)


class MissingAggregateIDError(ValueError):
    """Raised when a command has no aggregate ID."""

    def __init__(self, message: str = "missing aggregate ID") -> None:
        super().__init__(message)


class CommandFieldError(ValueError):
    """Raised when a required command field is missing."""

    def __init__(self, field: str) -> None:
        super().__init__(f"missing field: {field}")
        self.field = field


def _public_fields(obj: Any) -> Iterator[tuple[str, Any, bool]]:
    """Yield (name, value, optional) for the public fields of an object."""
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        for f in dataclasses.fields(obj):
            if f.name.startswith("_"):
                continue
            yield f.name, getattr(obj, f.name), f.metadata.get("eh") == "optional"
    else:
        for name, value in vars(obj).items():
            if not name.startswith("_"):
                yield name, value, False


def check_command(cmd: Any) -> None:
    """Raise if a command is missing, lacks an aggregate ID or a required field.

    Fields marked ``field(metadata={"eh": "optional"})`` and names starting
    with an underscore are not checked.
    """
    if cmd is None:
        raise MissingCommandError()

    aggregate_id = cmd.aggregate_id()
    if aggregate_id is None or aggregate_id == _NIL:
        raise MissingAggregateIDError()

    for name, value, optional in _public_fields(cmd):
        if optional:
            continue
        zero = value.is_zero() if isinstance(value, IsZeroer) else _is_zero(value)
        if zero:
            raise CommandFieldError(name)


def _is_zero(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, numbers.Number):
        # Plain numbers and booleans are never considered missing.
        return False
    if isinstance(value, str):
        return value == ""
    if isinstance(value, uuid.UUID):
        return value == _NIL
    if isinstance(value, datetime.datetime):
        return value.replace(tzinfo=None) == datetime.datetime.min
    if isinstance(value, tuple):
        return all(_is_zero(item) for item in value)
    if isinstance(value, (list, dict, set, frozenset, bytes, bytearray)):
        return False
    if isinstance(value, _CALLABLE_TYPES):
        # Functions are not allowed as command fields at all.
        return True
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return all(_is_zero(item) for _, item, _ in _public_fields(value))
    return False