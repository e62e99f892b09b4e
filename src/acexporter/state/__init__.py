"""State/store layer.

This package is the single source of truth for how decoded event-stream
frames and polled ``/INFO`` snapshots are merged into the in-memory view of
the server.
"""

from acexporter.state.context import SessionContext, SessionContextView
from acexporter.state.counters import Counter, CounterBank, CounterSnapshot
from acexporter.state.roster import RosterStore

__all__ = [
    "Counter",
    "CounterBank",
    "CounterSnapshot",
    "RosterStore",
    "SessionContext",
    "SessionContextView",
]
