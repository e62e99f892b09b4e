"""Frame builders.

Outbound control requests sent to the server, plus ``encode_event`` which
writes any decoded event back into its wire layout (used to simulate a server
feed).
"""

from __future__ import annotations

from acexporter._acsp._frame import FrameWriter
from acexporter._constants import ACSP_GET_CAR_INFO, ACSP_GET_SESSION_INFO, ACSP_REALTIMEPOS_INTERVAL, MAX_SLOT_ID
from acexporter.models.events import (
    AcspEvent,
    ChatEvent,
    ClientEvent,
    ConnectionClosedEvent,
    ErrorEvent,
    LapCompletedEvent,
    NewConnectionEvent,
    NewSessionEvent,
    SessionInfoEvent,
    SlotInfoEvent,
    UnknownEvent,
    VersionEvent,
)

# Lap frames carry at least this many leaderboard bytes after the fixed fields.
_LAP_TRAILER_MIN = 3


def build_realtime_updates_request() -> bytes:
    """Handshake: ask the server to start streaming events to this socket."""
    return bytes([ACSP_REALTIMEPOS_INTERVAL])


def build_session_info_request() -> bytes:
    return bytes([ACSP_GET_SESSION_INFO])


def build_slot_info_request(slot_id: int) -> bytes:
    """Request the authoritative slot-info frame for ``slot_id``."""
    if not 0 <= slot_id <= MAX_SLOT_ID:
        raise ValueError(f"slot id must be between 0 and {MAX_SLOT_ID}, got {slot_id}")
    return bytes([ACSP_GET_CAR_INFO, slot_id])


def encode_event(event: AcspEvent) -> bytes:
    """Write ``event`` in the layout :func:`decode_frame` reads."""
    if isinstance(event, UnknownEvent):
        return FrameWriter(event.tag).raw(event.payload).to_bytes()

    writer = FrameWriter(event.KIND)
    if isinstance(event, ChatEvent):
        writer.u8(event.slot_id).string(event.message)
    elif isinstance(event, NewSessionEvent):
        (
            writer.u8(event.version)
            .u8(event.session_index)
            .u8(event.current_session_index)
            .u8(event.session_count)
            .string(event.server_name)
            .string(event.track)
            .string(event.track_config)
        )
    elif isinstance(event, NewConnectionEvent):
        (
            writer.string(event.driver_name)
            .string(event.driver_guid)
            .u8(event.slot_id)
            .u8(event.car_model_id)
            .u8(event.car_skin_id)
        )
    elif isinstance(event, ConnectionClosedEvent):
        writer.string(event.driver_name).u8(event.slot_id)
    elif isinstance(event, SlotInfoEvent):
        (
            writer.u8(event.slot_id)
            .u8(1 if event.is_connected else 0)
            .string(event.car_model)
            .string(event.car_skin)
            .string(event.driver_name)
            .string(event.driver_guid)
        )
    elif isinstance(event, LapCompletedEvent):
        (
            writer.u8(event.slot_id)
            .u32(event.lap_time_ms)
            .u8(event.cuts)
            .raw(event.leaderboard.ljust(_LAP_TRAILER_MIN, b"\x00"))
        )
    elif isinstance(event, VersionEvent):
        writer.u8(event.version)
    elif isinstance(event, SessionInfoEvent):
        (
            writer.u8(event.version)
            .u8(event.session_index)
            .u8(event.current_session_index)
            .u8(event.session_count)
            .string(event.server_name)
            .u8(event.session_type)
            .u16(event.session_time)
            .u16(event.laps)
            .u16(event.wait_time)
            .string(event.ambient_temp)
            .string(event.road_temp)
            .string(event.weather_graphics)
            .string(event.elapsed_ms)
        )
    elif isinstance(event, ClientEvent):
        writer.u8(event.slot_id).u8(event.event_type)
    elif not isinstance(event, ErrorEvent):
        raise TypeError(f"Unsupported event type: {type(event).__name__}")
    return writer.to_bytes()
