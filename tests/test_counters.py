from __future__ import annotations

import threading

from acexporter.state import Counter, CounterBank, CounterSnapshot


def test_counters_start_at_zero() -> None:
    bank = CounterBank()
    assert bank.snapshot() == CounterSnapshot()
    for counter in Counter:
        assert bank.get(counter) == 0


def test_increment_returns_new_value() -> None:
    bank = CounterBank()
    assert bank.increment(Counter.LAPS) == 1
    assert bank.increment(Counter.LAPS) == 2
    assert bank.get(Counter.LAPS) == 2
    assert bank.get(Counter.COLLISIONS) == 0


def test_snapshot_is_independent_of_later_increments() -> None:
    bank = CounterBank()
    bank.increment(Counter.CONNECTIONS)
    snapshot = bank.snapshot()

    bank.increment(Counter.CONNECTIONS)

    assert snapshot.connections == 1
    assert bank.snapshot().connections == 2


def test_concurrent_increments_are_not_lost() -> None:
    bank = CounterBank()

    def work() -> None:
        for _ in range(1000):
            bank.increment(Counter.COLLISIONS)

    threads = [threading.Thread(target=work) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)

    assert bank.get(Counter.COLLISIONS) == 8000


def test_snapshot_values_never_decrease() -> None:
    bank = CounterBank()
    previous = bank.snapshot()
    for counter in (Counter.LAPS, Counter.DISCONNECTIONS, Counter.LAPS, Counter.COLLISIONS):
        bank.increment(counter)
        current = bank.snapshot()
        for field in CounterSnapshot.model_fields:
            assert getattr(current, field) >= getattr(previous, field)
        previous = current
