"""Session/server context and last-good snapshot holder."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict

from acexporter.models.server_info import ServerInfo
from acexporter.state._rwlock import ReadWriteLock


def _utcnow() -> datetime:
    return datetime.now(UTC)


class SessionContextView(BaseModel):
    """Point-in-time copy of :class:`SessionContext`."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    server_name: str = ""
    track: str = ""
    session_type: str = ""
    snapshot: ServerInfo | None = None
    snapshot_updated_at: datetime | None = None


class SessionContext:
    """Last-known server name, track and session type, plus the last good ``/INFO`` snapshot.

    The scalar fields come from the event stream; the snapshot comes from
    polling. A failed poll never touches the snapshot, so readers keep seeing
    the last successful one.
    """

    def __init__(self, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._lock = ReadWriteLock()
        self._server_name = ""
        self._track = ""
        self._session_type = ""
        self._snapshot: ServerInfo | None = None
        self._snapshot_updated_at: datetime | None = None

    def apply_new_session(self, *, server_name: str, track: str) -> None:
        with self._lock.write():
            self._server_name = server_name
            self._track = track

    def apply_session_info(self, *, server_name: str, session_type: str) -> None:
        with self._lock.write():
            self._server_name = server_name
            self._session_type = session_type

    def replace_snapshot(self, snapshot: ServerInfo) -> None:
        """Install ``snapshot`` as the last good record, replacing the previous one."""
        now = self._clock()
        with self._lock.write():
            self._snapshot = snapshot
            self._snapshot_updated_at = now

    def snapshot(self) -> ServerInfo | None:
        with self._lock.read():
            return self._snapshot

    def view(self) -> SessionContextView:
        with self._lock.read():
            return SessionContextView(
                server_name=self._server_name,
                track=self._track,
                session_type=self._session_type,
                snapshot=self._snapshot,
                snapshot_updated_at=self._snapshot_updated_at,
            )
