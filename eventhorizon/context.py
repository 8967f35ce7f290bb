"""Request contexts carrying values and cancellation, plus wire marshaling."""

from __future__ import annotations

import enum
import threading
import uuid
from collections.abc import Callable, Iterator, Mapping
from typing import Any

DEFAULT_MIN_VERSION_DEADLINE = 10.0
"""Seconds to wait when creating a min version context that waits."""

_AGGREGATE_ID_KEY_STR = "eh_aggregate_id"
_AGGREGATE_TYPE_KEY_STR = "eh_aggregate_type"
_COMMAND_TYPE_KEY_STR = "eh_command_type"


class ContextCancelledError(Exception):
    """Raised when work is attempted on a cancelled context."""

    def __init__(self, message: str = "context canceled") -> None:
        super().__init__(message)


class _ContextKey(enum.Enum):
    AGGREGATE_ID = enum.auto()
    AGGREGATE_TYPE = enum.auto()
    COMMAND_TYPE = enum.auto()


_ROOT = object()


class Context:
    """An immutable chain of key/value pairs with cancellation.

    A new ``Context()`` is an empty background context. ``with_value`` derives
    a child; cancelling a context also cancels everything derived from it,
    but never its parents.
    """

    __slots__ = ("_parent", "_key", "_value", "_cancelled")

    def __init__(self) -> None:
        self._parent: Context | None = None
        self._key: Any = _ROOT
        self._value: Any = None
        self._cancelled = False

    def _chain(self) -> Iterator[Context]:
        node: Context | None = self
        while node is not None:
            yield node
            node = node._parent

    def with_value(self, key: Any, value: Any) -> Context:
        """Return a child context where ``key`` maps to ``value``."""
        child = Context()
        child._parent = self
        child._key = key
        child._value = value
        return child

    def value(self, key: Any) -> Any:
        """Return the nearest value stored for ``key``, or None."""
        for node in self._chain():
            if node._parent is not None and node._key == key:
                return node._value
        return None

    def cancel(self) -> None:
        """Cancel this context and every context derived from it."""
        self._cancelled = True

    def done(self) -> bool:
        """Whether this context or one of its parents has been cancelled."""
        return any(node._cancelled for node in self._chain())

    def __repr__(self) -> str:
        return f"Context(done={self.done()})"


def aggregate_id_from_context(ctx: Context) -> uuid.UUID | None:
    """Return the aggregate ID stored on the context, if any."""
    value = ctx.value(_ContextKey.AGGREGATE_ID)
    return value if isinstance(value, uuid.UUID) else None


def aggregate_type_from_context(ctx: Context) -> str | None:
    """Return the aggregate type stored on the context, if any."""
    value = ctx.value(_ContextKey.AGGREGATE_TYPE)
    return value if isinstance(value, str) else None


def command_type_from_context(ctx: Context) -> str | None:
    """Return the command type stored on the context, if any."""
    value = ctx.value(_ContextKey.COMMAND_TYPE)
    return value if isinstance(value, str) else None


def new_context_with_aggregate_id(ctx: Context, aggregate_id: uuid.UUID) -> Context:
    """Return a context carrying an aggregate ID."""
    return ctx.with_value(_ContextKey.AGGREGATE_ID, aggregate_id)


def new_context_with_aggregate_type(ctx: Context, aggregate_type: str) -> Context:
    """Return a context carrying an aggregate type."""
    return ctx.with_value(_ContextKey.AGGREGATE_TYPE, aggregate_type)


def new_context_with_command_type(ctx: Context, command_type: str) -> Context:
    """Return a context carrying a command type."""
    return ctx.with_value(_ContextKey.COMMAND_TYPE, command_type)


ContextMarshalFunc = Callable[[Context, dict], None]
ContextUnmarshalFunc = Callable[[Context, Mapping[str, Any]], Context]

_marshal_funcs: list[ContextMarshalFunc] = []
_marshal_lock = threading.Lock()
_unmarshal_funcs: list[ContextUnmarshalFunc] = []
_unmarshal_lock = threading.Lock()


def register_context_marshaler(func: ContextMarshalFunc) -> None:
    """Register a function that writes context values into a dict."""
    with _marshal_lock:
        _marshal_funcs.append(func)


def marshal_context(ctx: Context) -> dict[str, Any]:
    """Collect all registered context values into a plain dict.

    Raises ValueError if two marshalers produce the same key.
    """
    with _marshal_lock:
        funcs = list(_marshal_funcs)

    all_vals: dict[str, Any] = {}
    for func in funcs:
        vals: dict[str, Any] = {}
        func(ctx, vals)
        for key, val in vals.items():
            if key in all_vals:
                raise ValueError(f"duplicate context entry for: {key}")
            all_vals[key] = val
    return all_vals


def register_context_unmarshaler(func: ContextUnmarshalFunc) -> None:
    """Register a function that restores context values from a dict."""
    with _unmarshal_lock:
        _unmarshal_funcs.append(func)


def unmarshal_context(ctx: Context, vals: Mapping[str, Any] | None) -> Context:
    """Return ``ctx`` extended with the values found in ``vals``."""
    if vals is None:
        return ctx
    with _unmarshal_lock:
        funcs = list(_unmarshal_funcs)
    for func in funcs:
        ctx = func(ctx, vals)
    return ctx


def copy_context(source: Context, target: Context) -> Context:
    """Copy every registered value present in ``source`` onto ``target``."""
    return unmarshal_context(target, marshal_context(source))


def _marshal_builtin_values(ctx: Context, vals: dict) -> None:
    aggregate_id = aggregate_id_from_context(ctx)
    if aggregate_id is not None:
        vals[_AGGREGATE_ID_KEY_STR] = str(aggregate_id)
    aggregate_type = aggregate_type_from_context(ctx)
    if aggregate_type is not None:
        vals[_AGGREGATE_TYPE_KEY_STR] = aggregate_type
    command_type = command_type_from_context(ctx)
    if command_type is not None:
        vals[_COMMAND_TYPE_KEY_STR] = command_type


def _unmarshal_builtin_values(ctx: Context, vals: Mapping[str, Any]) -> Context:
    aggregate_id = vals.get(_AGGREGATE_ID_KEY_STR)
    if isinstance(aggregate_id, str):
        try:
            ctx = new_context_with_aggregate_id(ctx, uuid.UUID(aggregate_id))
        except ValueError:
            pass
    aggregate_type = vals.get(_AGGREGATE_TYPE_KEY_STR)
    if isinstance(aggregate_type, str):
        ctx = new_context_with_aggregate_type(ctx, aggregate_type)
    command_type = vals.get(_COMMAND_TYPE_KEY_STR)
    if isinstance(command_type, str):
        ctx = new_context_with_command_type(ctx, command_type)
    return ctx


register_context_marshaler(_marshal_builtin_values)
register_context_unmarshaler(_unmarshal_builtin_values)