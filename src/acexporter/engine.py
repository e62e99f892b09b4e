"""Aggregation engine.

Owns the roster, counters and session context, and is the only component
that turns raw datagrams into state changes. Everything else (feed, poller,
web handlers) receives the engine by reference and reads through
:meth:`AggregationEngine.view`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from pydantic import BaseModel, ConfigDict

from acexporter._acsp.decoder import decode_frame
from acexporter.dispatcher import EventDispatcher
from acexporter.exceptions import AcProtocolError
from acexporter.models.events import AcspEvent
from acexporter.models.participant import Participant
from acexporter.state.context import SessionContext, SessionContextView
from acexporter.state.counters import CounterBank, CounterSnapshot
from acexporter.state.roster import RosterStore

_logger = logging.getLogger(__name__)


class EngineView(BaseModel):
    """Read-only point-in-time view of all aggregated state.

    Each store is copied under its own lock, so the view is consistent per
    store rather than across stores.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    participants: tuple[Participant, ...] = ()
    counters: CounterSnapshot = CounterSnapshot()
    context: SessionContextView = SessionContextView()

    @property
    def connected_count(self) -> int:
        return sum(1 for participant in self.participants if participant.is_connected)

    @property
    def connected_participants(self) -> tuple[Participant, ...]:
        return tuple(participant for participant in self.participants if participant.is_connected)


class AggregationEngine:
    """Decode datagrams and fold them into the state stores."""

    def __init__(
        self,
        *,
        roster: RosterStore | None = None,
        counters: CounterBank | None = None,
        context: SessionContext | None = None,
        on_session_change: Callable[[], None] | None = None,
        on_notification: Callable[[str], None] | None = None,
    ) -> None:
        self.roster = roster if roster is not None else RosterStore()
        self.counters = counters if counters is not None else CounterBank()
        self.context = context if context is not None else SessionContext()
        self._on_session_change = on_session_change
        self.dispatcher = EventDispatcher(
            roster=self.roster,
            counters=self.counters,
            context=self.context,
            on_session_change=self._session_changed,
            on_notification=on_notification,
        )
        self._frames_received = 0
        self._frames_dropped = 0

    def set_session_change_callback(self, callback: Callable[[], None] | None) -> None:
        """Set the hook run after a new-session event (the exporter wires the poller here)."""
        self._on_session_change = callback

    def _session_changed(self) -> None:
        if self._on_session_change is not None:
            self._on_session_change()

    @property
    def frames_received(self) -> int:
        return self._frames_received

    @property
    def frames_dropped(self) -> int:
        return self._frames_dropped

    def handle_datagram(self, data: bytes) -> AcspEvent | None:
        """Decode and apply one datagram.

        Malformed frames are logged and dropped without touching any store;
        ``None`` is returned for them.
        """
        self._frames_received += 1
        try:
            event = decode_frame(data)
        except AcProtocolError as exc:
            self._frames_dropped += 1
            _logger.debug("Dropping malformed frame (%d bytes): %s", len(data), exc)
            return None
        self.dispatcher.dispatch(event)
        return event

    def connected_count(self) -> int:
        return self.roster.connected_count()

    def view(self) -> EngineView:
        return EngineView(
            participants=self.roster.participants(),
            counters=self.counters.snapshot(),
            context=self.context.view(),
        )
