"""Strategies deciding when to take a snapshot of an aggregate."""

from __future__ import annotations

import datetime
from dataclasses import dataclass

from eventhorizon.event import Event


@dataclass(frozen=True)
class NoSnapshotStrategy:
    """Never take a snapshot."""

    def should_take_snapshot(
        self,
        last_snapshot_version: int,
        last_snapshot_timestamp: datetime.datetime,
        event: Event,
    ) -> bool:
        return False


@dataclass(frozen=True)
class EveryNumberEventSnapshotStrategy:
    """Take a snapshot once ``threshold`` events have passed since the last one."""

    threshold: int

    def should_take_snapshot(
        self,
        last_snapshot_version: int,
        last_snapshot_timestamp: datetime.datetime,
        event: Event,
    ) -> bool:
        return event.version - last_snapshot_version >= self.threshold


@dataclass(frozen=True)
class PeriodSnapshotStrategy:
    """Take a snapshot once ``threshold`` time has passed since the last one."""

    threshold: datetime.timedelta

    def should_take_snapshot(
        self,
        last_snapshot_version: int,
        last_snapshot_timestamp: datetime.datetime,
        event: Event,
    ) -> bool:
        return event.timestamp - last_snapshot_timestamp >= self.threshold