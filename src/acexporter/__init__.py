"""acexporter - Prometheus exporter for Assetto Corsa dedicated servers."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("acexporter")
except PackageNotFoundError:
    __version__ = "0+local"
from acexporter._acsp import decode_frame, encode_event
from acexporter.config import ExporterConfig
from acexporter.engine import AggregationEngine, EngineView
from acexporter.exceptions import (
    AcConfigError,
    AcExporterError,
    AcProtocolError,
    AcTransportError,
    InsufficientDataError,
)
from acexporter.exporter import AcServerExporter
from acexporter.metrics import render_metrics
from acexporter.models import (
    ChatEvent,
    ClientEvent,
    ClientEventType,
    ConnectionClosedEvent,
    ErrorEvent,
    EventKind,
    LapCompletedEvent,
    NewConnectionEvent,
    NewSessionEvent,
    Participant,
    ServerInfo,
    SessionInfoEvent,
    SessionType,
    SlotInfoEvent,
    UnknownEvent,
    VersionEvent,
)
from acexporter.poller import PollCycleResult, PollOrchestrator

__all__ = [
    "AcConfigError",
    "AcExporterError",
    "AcProtocolError",
    "AcServerExporter",
    "AcTransportError",
    "AggregationEngine",
    "ChatEvent",
    "ClientEvent",
    "ClientEventType",
    "ConnectionClosedEvent",
    "EngineView",
    "ErrorEvent",
    "EventKind",
    "ExporterConfig",
    "InsufficientDataError",
    "LapCompletedEvent",
    "NewConnectionEvent",
    "NewSessionEvent",
    "Participant",
    "PollCycleResult",
    "PollOrchestrator",
    "ServerInfo",
    "SessionInfoEvent",
    "SessionType",
    "SlotInfoEvent",
    "UnknownEvent",
    "VersionEvent",
    "__version__",
    "decode_frame",
    "encode_event",
    "render_metrics",
]
