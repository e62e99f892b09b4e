"""Internal constants shared across the library."""

INFO_PATH = "/INFO"
METRICS_CONTENT_TYPE = "text/plain; version=0.0.4"

# ------------------------------------------------------------------
# Outbound operations (client -> server)
# ------------------------------------------------------------------

ACSP_REALTIMEPOS_INTERVAL = 3
ACSP_GET_CAR_INFO = 4
ACSP_GET_SESSION_INFO = 7

# ------------------------------------------------------------------
# Runtime defaults
# ------------------------------------------------------------------

DEFAULT_POLL_INTERVAL: float = 30.0
DEFAULT_SLOT_COUNT: int = 50
DEFAULT_INFO_TIMEOUT: float = 3.0
DEFAULT_REPLY_GRACE: float = 2.0
#: Delay between two per-slot requests in a burst (pacing only; the server never acks).
SLOT_REQUEST_PACING: float = 0.01
#: Delay after a new-session event before a poll cycle starts.
SESSION_SETTLE_DELAY: float = 1.0
#: Delay between the handshake and the first poll cycle.
STARTUP_DELAY: float = 1.0

MAX_SLOT_ID = 255


def slot_label(slot_id: int) -> str:
    """Fallback display name for a slot without a known driver."""
    return f"Slot #{slot_id}"
