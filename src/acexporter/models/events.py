"""Typed event-stream frames.

Each frame kind the server emits decodes into one frozen model below. The
set is closed: frames with an unrecognised tag decode into
:class:`UnknownEvent` and are otherwise ignored.
"""

from __future__ import annotations

import enum
from typing import Annotated, ClassVar, Union

from pydantic import Field

from acexporter.models._base import AcBaseModel, ClientEventType, SessionType

SlotId = Annotated[int, Field(ge=0, le=255)]
UInt8 = Annotated[int, Field(ge=0, le=0xFF)]
UInt16 = Annotated[int, Field(ge=0, le=0xFFFF)]
UInt32 = Annotated[int, Field(ge=0, le=0xFFFFFFFF)]


class EventKind(enum.IntEnum):
    """Leading tag byte of a server -> client frame."""

    ERROR = 0
    CHAT = 1
    NEW_SESSION = 3
    NEW_CONNECTION = 4
    CONNECTION_CLOSED = 5
    SLOT_INFO = 7
    LAP_COMPLETED = 9
    VERSION = 10
    SESSION_INFO = 11
    CLIENT_EVENT = 12


class ErrorEvent(AcBaseModel):
    """The server reported an error; the frame carries no fields."""

    KIND: ClassVar[EventKind] = EventKind.ERROR


class ChatEvent(AcBaseModel):
    KIND: ClassVar[EventKind] = EventKind.CHAT

    slot_id: SlotId
    message: str = ""


class NewSessionEvent(AcBaseModel):
    """A new session started (also sent once after the handshake)."""

    KIND: ClassVar[EventKind] = EventKind.NEW_SESSION

    version: UInt8 = 0
    session_index: UInt8 = 0
    current_session_index: UInt8 = 0
    session_count: UInt8 = 0
    server_name: str = ""
    track: str = ""
    track_config: str = ""

    @property
    def track_display(self) -> str:
        """Track name with the layout appended as ``"track (config)"`` when present."""
        if self.track_config:
            return f"{self.track} ({self.track_config})"
        return self.track


class NewConnectionEvent(AcBaseModel):
    KIND: ClassVar[EventKind] = EventKind.NEW_CONNECTION

    driver_name: str = ""
    driver_guid: str = ""
    slot_id: SlotId
    car_model_id: UInt8 = 0
    car_skin_id: UInt8 = 0


class ConnectionClosedEvent(AcBaseModel):
    KIND: ClassVar[EventKind] = EventKind.CONNECTION_CLOSED

    driver_name: str = ""
    slot_id: SlotId


class SlotInfoEvent(AcBaseModel):
    """Authoritative description of one slot, sent in reply to a slot-info request."""

    KIND: ClassVar[EventKind] = EventKind.SLOT_INFO

    slot_id: SlotId
    is_connected: bool = False
    car_model: str = ""
    car_skin: str = ""
    driver_name: str = ""
    driver_guid: str = ""


class LapCompletedEvent(AcBaseModel):
    KIND: ClassVar[EventKind] = EventKind.LAP_COMPLETED

    slot_id: SlotId
    lap_time_ms: UInt32
    cuts: UInt8 = 0
    # Leaderboard summary following the fixed fields; kept opaque.
    leaderboard: bytes = Field(default=b"", repr=False)

    @property
    def lap_time_seconds(self) -> float:
        return self.lap_time_ms / 1000.0


class VersionEvent(AcBaseModel):
    KIND: ClassVar[EventKind] = EventKind.VERSION

    version: UInt8


class SessionInfoEvent(AcBaseModel):
    KIND: ClassVar[EventKind] = EventKind.SESSION_INFO

    version: UInt8 = 0
    session_index: UInt8 = 0
    current_session_index: UInt8 = 0
    session_count: UInt8 = 0
    server_name: str = ""
    session_type: UInt8 = 0
    session_time: UInt16 = 0
    laps: UInt16 = 0
    wait_time: UInt16 = 0
    ambient_temp: str = Field(default="", repr=False)
    road_temp: str = Field(default="", repr=False)
    weather_graphics: str = Field(default="", repr=False)
    elapsed_ms: str = Field(default="", repr=False)

    @property
    def session_type_enum(self) -> SessionType:
        return SessionType(self.session_type)


class ClientEvent(AcBaseModel):
    KIND: ClassVar[EventKind] = EventKind.CLIENT_EVENT

    slot_id: SlotId
    event_type: UInt8

    @property
    def event_type_enum(self) -> ClientEventType:
        return ClientEventType(self.event_type)

    @property
    def description(self) -> str:
        event_type = self.event_type_enum
        if event_type == ClientEventType.COLLISION_WITH_ENV:
            return "Collision with ENV"
        if event_type == ClientEventType.COLLISION_WITH_CAR:
            return "Collision with CAR"
        return f"Unknown ({self.event_type})"


class UnknownEvent(AcBaseModel):
    """Frame with a tag this package does not interpret."""

    tag: UInt8
    payload: bytes = Field(default=b"", repr=False)


AcspEvent = Union[
    ErrorEvent,
    ChatEvent,
    NewSessionEvent,
    NewConnectionEvent,
    ConnectionClosedEvent,
    SlotInfoEvent,
    LapCompletedEvent,
    VersionEvent,
    SessionInfoEvent,
    ClientEvent,
    UnknownEvent,
]
"""Any decoded event-stream frame."""
