"""Event-stream frame decoder.

``decode_frame`` is a pure function: it either returns one fully populated
event model or raises. Callers must not apply anything to shared state when
it raises.
"""

from __future__ import annotations

from collections.abc import Callable

from acexporter._acsp._frame import FrameReader
from acexporter.exceptions import InsufficientDataError
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

# Declared minimum payload (bytes after the tag) per kind. Checked before any
# field is read; the strict reader then rejects text fields that overrun.
MIN_PAYLOAD: dict[EventKind, int] = {
    EventKind.ERROR: 0,
    EventKind.CHAT: 1,
    EventKind.NEW_SESSION: 4,
    EventKind.NEW_CONNECTION: 1,
    EventKind.CONNECTION_CLOSED: 1,
    EventKind.SLOT_INFO: 1,
    EventKind.LAP_COMPLETED: 9,
    EventKind.VERSION: 1,
    EventKind.SESSION_INFO: 13,
    EventKind.CLIENT_EVENT: 2,
}


def _decode_error(_reader: FrameReader) -> ErrorEvent:
    # Trailing bytes are ignored and not re-encoded.
    return ErrorEvent()


def _decode_chat(reader: FrameReader) -> ChatEvent:
    slot_id = reader.u8("slot id")
    return ChatEvent(slot_id=slot_id, message=reader.string("message"))


def _decode_new_session(reader: FrameReader) -> NewSessionEvent:
    return NewSessionEvent(
        version=reader.u8("version"),
        session_index=reader.u8("session index"),
        current_session_index=reader.u8("current session index"),
        session_count=reader.u8("session count"),
        server_name=reader.string("server name"),
        track=reader.string("track"),
        track_config=reader.string("track config"),
    )


def _decode_new_connection(reader: FrameReader) -> NewConnectionEvent:
    driver_name = reader.string("driver name")
    driver_guid = reader.string("driver guid")
    return NewConnectionEvent(
        driver_name=driver_name,
        driver_guid=driver_guid,
        slot_id=reader.u8("slot id"),
        car_model_id=reader.u8("car model"),
        car_skin_id=reader.u8("car skin"),
    )


def _decode_connection_closed(reader: FrameReader) -> ConnectionClosedEvent:
    driver_name = reader.string("driver name")
    return ConnectionClosedEvent(driver_name=driver_name, slot_id=reader.u8("slot id"))


def _decode_slot_info(reader: FrameReader) -> SlotInfoEvent:
    slot_id = reader.u8("slot id")
    connected = reader.u8("connected flag")
    return SlotInfoEvent(
        slot_id=slot_id,
        is_connected=connected == 1,
        car_model=reader.string("car model"),
        car_skin=reader.string("car skin"),
        driver_name=reader.string("driver name"),
        driver_guid=reader.string("driver guid"),
    )


def _decode_lap_completed(reader: FrameReader) -> LapCompletedEvent:
    """Fixed fields are strict; the leaderboard trailer is taken as-is.

    The trailer is not interpreted, so a frame cut inside it still decodes
    (with a shorter ``leaderboard``) as long as the 9-byte minimum is met.
    """
    return LapCompletedEvent(
        slot_id=reader.u8("slot id"),
        lap_time_ms=reader.u32("lap time"),
        cuts=reader.u8("cuts"),
        leaderboard=reader.rest(),
    )


def _decode_version(reader: FrameReader) -> VersionEvent:
    return VersionEvent(version=reader.u8("version"))


def _decode_session_info(reader: FrameReader) -> SessionInfoEvent:
    return SessionInfoEvent(
        version=reader.u8("version"),
        session_index=reader.u8("session index"),
        current_session_index=reader.u8("current session index"),
        session_count=reader.u8("session count"),
        server_name=reader.string("server name"),
        session_type=reader.u8("session type"),
        session_time=reader.u16("session time"),
        laps=reader.u16("laps"),
        wait_time=reader.u16("wait time"),
        ambient_temp=reader.string("ambient temp"),
        road_temp=reader.string("road temp"),
        weather_graphics=reader.string("weather graphics"),
        elapsed_ms=reader.string("elapsed ms"),
    )


def _decode_client_event(reader: FrameReader) -> ClientEvent:
    return ClientEvent(slot_id=reader.u8("slot id"), event_type=reader.u8("event type"))


_DECODERS: dict[EventKind, Callable[[FrameReader], AcspEvent]] = {
    EventKind.ERROR: _decode_error,
    EventKind.CHAT: _decode_chat,
    EventKind.NEW_SESSION: _decode_new_session,
    EventKind.NEW_CONNECTION: _decode_new_connection,
    EventKind.CONNECTION_CLOSED: _decode_connection_closed,
    EventKind.SLOT_INFO: _decode_slot_info,
    EventKind.LAP_COMPLETED: _decode_lap_completed,
    EventKind.VERSION: _decode_version,
    EventKind.SESSION_INFO: _decode_session_info,
    EventKind.CLIENT_EVENT: _decode_client_event,
}


def decode_frame(data: bytes) -> AcspEvent:
    """Decode one datagram into a typed event.

    Raises
    ------
    InsufficientDataError
        If the datagram is empty, shorter than the declared minimum for its
        kind, or any field runs past the end of the buffer.
    """
    if not data:
        raise InsufficientDataError("empty datagram")

    tag = data[0]
    payload = bytes(data[1:])
    try:
        kind = EventKind(tag)
    except ValueError:
        return UnknownEvent(tag=tag, payload=payload)

    minimum = MIN_PAYLOAD[kind]
    if len(payload) < minimum:
        raise InsufficientDataError(
            f"{kind.name} payload is {len(payload)} bytes, needs at least {minimum}",
            kind=tag,
        )
    return _DECODERS[kind](FrameReader(payload, kind=tag))
