"""Event-stream (UDP plugin protocol) codec."""

from acexporter._acsp.decoder import MIN_PAYLOAD, decode_frame
from acexporter._acsp.encoder import (
    build_realtime_updates_request,
    build_session_info_request,
    build_slot_info_request,
    encode_event,
)

__all__ = [
    "MIN_PAYLOAD",
    "build_realtime_updates_request",
    "build_session_info_request",
    "build_slot_info_request",
    "decode_frame",
    "encode_event",
]
