"""Errors reported by event buses."""

from __future__ import annotations

from typing import Any

from eventhorizon.context import Context
from eventhorizon.event import Event


class MissingMatcherError(ValueError):
    """Raised when adding a handler without a matcher."""

    def __init__(self, message: str = "missing matcher") -> None:
        super().__init__(message)


class MissingHandlerError(ValueError):
    """Raised when adding a missing handler."""

    def __init__(self, message: str = "missing handler") -> None:
        super().__init__(message)


class HandlerAlreadyAddedError(ValueError):
    """Raised when adding the same handler twice."""

    def __init__(self, message: str = "handler already added") -> None:
        super().__init__(message)


class EventBusError(Exception):
    """An asynchronous handler error, with the event it happened on."""

    def __init__(
        self,
        err: BaseException | None = None,
        ctx: Context | None = None,
        event: Event | Any = None,
    ) -> None:
        self.err = err
        self.ctx = ctx
        self.event = event
        super().__init__(self._describe())
        self.__cause__ = err

    def _describe(self) -> str:
        text = "event bus: "
        text += str(self.err) if self.err is not None else "unknown error"
        if self.event is not None:
            text += f" [{self.event}]"
        return text

    def __str__(self) -> str:
        return self._describe()