"""Data models for event-stream frames, roster entries and server snapshots."""

from acexporter.models._base import AcBaseModel, AcEnum, ClientEventType, SessionType
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
from acexporter.models.server_info import ServerInfo

__all__ = [
    "AcBaseModel",
    "AcEnum",
    "AcspEvent",
    "ChatEvent",
    "ClientEvent",
    "ClientEventType",
    "ConnectionClosedEvent",
    "ErrorEvent",
    "EventKind",
    "LapCompletedEvent",
    "NewConnectionEvent",
    "NewSessionEvent",
    "Participant",
    "ServerInfo",
    "SessionInfoEvent",
    "SessionType",
    "SlotInfoEvent",
    "UnknownEvent",
    "VersionEvent",
]
