"""Lifetime counters."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from acexporter.state._rwlock import ReadWriteLock


class Counter(StrEnum):
    LAPS = "laps"
    COLLISIONS = "collisions"
    CONNECTIONS = "connections"
    DISCONNECTIONS = "disconnections"


class CounterSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    laps: int = 0
    collisions: int = 0
    connections: int = 0
    disconnections: int = 0


class CounterBank:
    """Concurrency-safe set of monotonic counters.

    Values only ever grow by one per recorded event and are never reset while
    the process runs.
    """

    def __init__(self) -> None:
        self._lock = ReadWriteLock()
        self._values: dict[Counter, int] = {counter: 0 for counter in Counter}

    def increment(self, counter: Counter) -> int:
        """Add one to ``counter`` and return the new value."""
        with self._lock.write():
            value = self._values[counter] + 1
            self._values[counter] = value
        return value

    def get(self, counter: Counter) -> int:
        with self._lock.read():
            return self._values[counter]

    def snapshot(self) -> CounterSnapshot:
        with self._lock.read():
            values = {counter.value: value for counter, value in self._values.items()}
        return CounterSnapshot(**values)
