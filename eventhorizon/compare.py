"""Comparison of events, with options to ignore some of their parts."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from eventhorizon.event import Event


@dataclass
class CompareConfig:
    """Which parts of events to ignore when comparing."""

    ignore_timestamp: bool = False
    ignore_version: bool = False
    ignore_position: bool = False


CompareOption = Callable[[CompareConfig], None]


class EventMismatchError(AssertionError):
    """Raised when two compared events differ."""


def ignore_timestamp() -> CompareOption:
    """Ignore event timestamps when comparing."""

    def apply(config: CompareConfig) -> None:
        config.ignore_timestamp = True

    return apply


def ignore_version() -> CompareOption:
    """Ignore event versions when comparing."""

    def apply(config: CompareConfig) -> None:
        config.ignore_version = True

    return apply


def ignore_position_metadata() -> CompareOption:
    """Ignore the position entry of the metadata when comparing."""

    def apply(config: CompareConfig) -> None:
        config.ignore_position = True

    return apply


def _without_position(metadata: dict[str, Any] | None) -> dict[str, Any]:
    return {k: v for k, v in (metadata or {}).items() if k != "position"}


def compare_events(e1: Event, e2: Event, *options: CompareOption | None) -> None:
    """Raise EventMismatchError describing the first difference between events."""
    config = CompareConfig()
    for option in options:
        if option is not None:
            option(config)

    if e1.event_type != e2.event_type:
        raise EventMismatchError(
            f"incorrect event type: {e1.event_type} (should be {e2.event_type})"
        )

    if e1.data != e2.data:
        raise EventMismatchError(f"incorrect event data: {e1.data} (should be {e2.data})")

    if not config.ignore_timestamp and e1.timestamp != e2.timestamp:
        raise EventMismatchError(
            f"incorrect timestamp: {e1.timestamp} (should be {e2.timestamp})"
        )

    if e1.aggregate_type != e2.aggregate_type:
        raise EventMismatchError(
            f"incorrect aggregate type: {e1.aggregate_type} (should be {e2.aggregate_type})"
        )

    if e1.aggregate_id != e2.aggregate_id:
        raise EventMismatchError(
            f"incorrect aggregate ID: {e1.aggregate_id} (should be {e2.aggregate_id})"
        )

    if not config.ignore_version and e1.version != e2.version:
        raise EventMismatchError(
            f"incorrect version: {e1.version} (should be {e2.version})"
        )

    m1: dict[str, Any] | None = e1.metadata
    m2: dict[str, Any] | None = e2.metadata
    if config.ignore_position:
        m1 = _without_position(m1)
        m2 = _without_position(m2)

    if m1 != m2:
        raise EventMismatchError(f"incorrect event metadata: {m1} (should be {m2})")


def compare_event_slices(
    evts1: Sequence[Event], evts2: Sequence[Event], *options: CompareOption | None
) -> bool:
    """Whether two sequences of events are pairwise equal under the options."""
    if len(evts1) != len(evts2):
        return False
    try:
        for e1, e2 in zip(evts1, evts2):
            compare_events(e1, e2, *options)
    except EventMismatchError:
        return False
    return True