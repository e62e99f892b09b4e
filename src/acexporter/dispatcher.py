"""Event routing: one state update rule per event kind.

Each rule mutates the stores through their own locked methods and only then
formats the human-readable notification line, so no lock is held while
formatting or while the notification callback runs.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from acexporter.models.events import (
    AcspEvent,
    ChatEvent,
    ClientEvent,
    ConnectionClosedEvent,
    ErrorEvent,
    EventKind,
    LapCompletedEvent,
    NewConnectionEvent,
    NewSessionEvent,
    SessionInfoEvent,
    SlotInfoEvent,
    UnknownEvent,
    VersionEvent,
)
from acexporter.models.participant import Participant
from acexporter.state.context import SessionContext
from acexporter.state.counters import Counter, CounterBank
from acexporter.state.roster import RosterStore

_logger = logging.getLogger(__name__)
# Receives every notification line at INFO.
_events_logger = logging.getLogger("acexporter.events")


def format_lap_time(lap_time_ms: int) -> str:
    """Format milliseconds as ``MM:SS.mmm``."""
    minutes, remainder = divmod(lap_time_ms, 60_000)
    seconds, millis = divmod(remainder, 1000)
    return f"{minutes:02d}:{seconds:02d}.{millis:03d}"


def _players_suffix(connected: int, max_clients: int) -> str:
    if max_clients > 0:
        return f"Players: {connected}/{max_clients}"
    return f"Total players: {connected}"


class EventDispatcher:
    """Apply decoded events to the roster, counters and session context.

    Parameters
    ----------
    roster, counters, context
        Stores owned by the aggregation engine.
    on_session_change
        Called (without arguments) after a new-session event has been applied.
        Must not block; the exporter uses it to schedule a poll cycle.
    on_notification
        Receives every notification line in addition to the log.
    """

    def __init__(
        self,
        *,
        roster: RosterStore,
        counters: CounterBank,
        context: SessionContext,
        on_session_change: Callable[[], None] | None = None,
        on_notification: Callable[[str], None] | None = None,
    ) -> None:
        self._roster = roster
        self._counters = counters
        self._context = context
        self._on_session_change = on_session_change
        self._on_notification = on_notification
        self._handlers: dict[EventKind, Callable[[Any], str | None]] = {
            EventKind.ERROR: self._on_error,
            EventKind.CHAT: self._on_chat,
            EventKind.NEW_SESSION: self._on_new_session,
            EventKind.NEW_CONNECTION: self._on_new_connection,
            EventKind.CONNECTION_CLOSED: self._on_connection_closed,
            EventKind.SLOT_INFO: self._on_slot_info,
            EventKind.LAP_COMPLETED: self._on_lap_completed,
            EventKind.VERSION: self._on_version,
            EventKind.SESSION_INFO: self._on_session_info,
            EventKind.CLIENT_EVENT: self._on_client_event,
        }

    @property
    def handled_kinds(self) -> frozenset[EventKind]:
        return frozenset(self._handlers)

    def dispatch(self, event: AcspEvent) -> str | None:
        """Apply ``event`` and return its notification line, if it has one."""
        if isinstance(event, UnknownEvent):
            _logger.debug("Ignoring frame with unknown tag %d (%d bytes)", event.tag, len(event.payload))
            return None

        line = self._handlers[event.KIND](event)
        if line is not None:
            self._notify(line)
        return line

    def _notify(self, line: str) -> None:
        _events_logger.info("%s", line)
        if self._on_notification is None:
            return
        try:
            self._on_notification(line)
        except Exception:
            _logger.debug("on_notification callback failed", exc_info=True)

    def _max_clients(self) -> int:
        snapshot = self._context.snapshot()
        return snapshot.max_clients if snapshot is not None else 0

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    def _on_error(self, _event: ErrorEvent) -> str:
        return "Server reported an error"

    def _on_chat(self, event: ChatEvent) -> str:
        name = self._roster.display_name(event.slot_id)
        return f"CHAT [{name}]: {event.message}"

    def _on_new_session(self, event: NewSessionEvent) -> str:
        self._context.apply_new_session(server_name=event.server_name, track=event.track_display)
        if self._on_session_change is not None:
            try:
                self._on_session_change()
            except Exception:
                _logger.warning("Failed to schedule refresh after session change", exc_info=True)
        return (
            f"NEW SESSION: {event.server_name} on {event.track_display} "
            f"(session {event.current_session_index + 1}/{event.session_count})"
        )

    def _on_new_connection(self, event: NewConnectionEvent) -> str:
        self._roster.upsert_connection(
            event.slot_id,
            driver_name=event.driver_name,
            driver_guid=event.driver_guid,
        )
        self._counters.increment(Counter.CONNECTIONS)
        connected = self._roster.connected_count()
        return (
            f"DRIVER CONNECTED: {event.driver_name} (Slot #{event.slot_id}) | "
            f"{_players_suffix(connected, self._max_clients())}"
        )

    def _on_connection_closed(self, event: ConnectionClosedEvent) -> str:
        known = self._roster.mark_disconnected(event.slot_id)
        self._counters.increment(Counter.DISCONNECTIONS)
        if not known:
            _logger.debug("Connection closed for unknown slot %d", event.slot_id)
        connected = self._roster.connected_count()
        return (
            f"DRIVER DISCONNECTED: {event.driver_name} (Slot #{event.slot_id}) | "
            f"{_players_suffix(connected, self._max_clients())}"
        )

    def _on_slot_info(self, event: SlotInfoEvent) -> None:
        self._roster.replace(
            Participant(
                slot_id=event.slot_id,
                is_connected=event.is_connected,
                car_model=event.car_model,
                car_skin=event.car_skin,
                driver_name=event.driver_name,
                driver_guid=event.driver_guid,
            )
        )
        return None

    def _on_lap_completed(self, event: LapCompletedEvent) -> str:
        self._counters.increment(Counter.LAPS)
        name = self._roster.display_name(event.slot_id)
        line = f"LAP COMPLETED: {name} - {format_lap_time(event.lap_time_ms)}"
        if event.cuts > 0:
            line += f" [{event.cuts} cuts]"
        return line

    def _on_version(self, event: VersionEvent) -> str:
        return f"Protocol version: {event.version}"

    def _on_session_info(self, event: SessionInfoEvent) -> None:
        label = event.session_type_enum.label
        self._context.apply_session_info(server_name=event.server_name, session_type=label)
        _logger.debug("Session info: server=%s type=%s", event.server_name, label)
        return None

    def _on_client_event(self, event: ClientEvent) -> str:
        self._counters.increment(Counter.COLLISIONS)
        name = self._roster.display_name(event.slot_id)
        return f"EVENT: {name} - {event.description}"
