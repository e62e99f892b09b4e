"""Poll orchestration.

A poll cycle refreshes the ``/INFO`` snapshot, asks the server for every
slot's details over the event stream, and then waits for the replies to be
applied by the engine before reporting. Cycles run on a fixed period and,
additionally, shortly after each session change.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass

from acexporter._constants import (
    DEFAULT_POLL_INTERVAL,
    DEFAULT_REPLY_GRACE,
    DEFAULT_SLOT_COUNT,
    SESSION_SETTLE_DELAY,
    SLOT_REQUEST_PACING,
)
from acexporter._transport import InfoTransport
from acexporter.engine import AggregationEngine, EngineView
from acexporter.exceptions import AcTransportError
from acexporter.feed import SlotRequester
from acexporter.models.server_info import ServerInfo

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PollCycleResult:
    """Outcome of one completed poll cycle."""

    snapshot_ok: bool
    slots_requested: int
    connected_count: int
    view: EngineView


def format_status_summary(view: EngineView) -> list[str]:
    """Human-readable status lines for ``view``.

    Prefers the polled snapshot and falls back to what the event stream told
    us when no snapshot has ever succeeded.
    """
    context = view.context
    snapshot = context.snapshot
    connected = view.connected_count
    if snapshot is not None:
        mode = snapshot.session_type.label
        lines = [
            f"Server: {snapshot.name} | Track: {snapshot.track_display} | Mode: {mode} | "
            f"Players: {connected}/{snapshot.max_clients}"
        ]
    else:
        parts = [f"Server: {context.server_name or 'Unknown'}"]
        if context.track:
            parts.append(f"Track: {context.track}")
        if context.session_type:
            parts.append(f"Mode: {context.session_type}")
        parts.append(f"Players: {connected}")
        lines = [" | ".join(parts)]

    for participant in view.connected_participants:
        lines.append(f"  {participant.driver_name} (Slot #{participant.slot_id}) - {participant.car_model}")
    return lines


class PollOrchestrator:
    """Run poll cycles against the snapshot source and the event stream."""

    def __init__(
        self,
        engine: AggregationEngine,
        info: InfoTransport,
        feed: SlotRequester,
        *,
        interval: float = DEFAULT_POLL_INTERVAL,
        slot_count: int = DEFAULT_SLOT_COUNT,
        reply_grace: float = DEFAULT_REPLY_GRACE,
        pacing: float = SLOT_REQUEST_PACING,
        settle_delay: float = SESSION_SETTLE_DELAY,
    ) -> None:
        self._engine = engine
        self._info = info
        self._feed = feed
        self._interval = interval
        self._slot_count = slot_count
        self._reply_grace = reply_grace
        self._pacing = pacing
        self._settle_delay = settle_delay
        self._pending: set[asyncio.Task[PollCycleResult | None]] = set()
        self._cycles_completed = 0

    @property
    def cycles_completed(self) -> int:
        return self._cycles_completed

    async def refresh_snapshot(self) -> ServerInfo | None:
        """Fetch ``/INFO`` and install it; returns ``None`` on failure.

        A failure leaves the previous snapshot in place.
        """
        try:
            info = await self._info.fetch_info()
        except asyncio.CancelledError:
            raise
        except AcTransportError as exc:
            _logger.warning("Server info unavailable: %s", exc)
            return None
        except Exception:
            _logger.warning("Server info fetch failed unexpectedly", exc_info=True)
            return None
        self._engine.context.replace_snapshot(info)
        return info

    async def _request_slots(self) -> int:
        sent = 0
        for slot_id in range(self._slot_count):
            try:
                self._feed.request_slot_info(slot_id)
                sent += 1
            except OSError as exc:
                _logger.debug("Slot info request for slot %d failed: %s", slot_id, exc)
            await asyncio.sleep(self._pacing)
        return sent

    async def run_cycle(self) -> PollCycleResult:
        """Run one full cycle: snapshot, slot burst, grace window, summary."""
        snapshot = await self.refresh_snapshot()
        sent = await self._request_slots()
        await asyncio.sleep(self._reply_grace)

        view = self._engine.view()
        result = PollCycleResult(
            snapshot_ok=snapshot is not None,
            slots_requested=sent,
            connected_count=view.connected_count,
            view=view,
        )
        self._cycles_completed += 1
        for line in format_status_summary(view):
            _logger.info("%s", line)
        _logger.debug(
            "Event stream: %d frames received, %d dropped",
            self._engine.frames_received,
            self._engine.frames_dropped,
        )
        return result

    async def _guarded_cycle(self, delay: float = 0.0) -> PollCycleResult | None:
        if delay > 0:
            await asyncio.sleep(delay)
        try:
            return await self.run_cycle()
        except asyncio.CancelledError:
            raise
        except Exception:
            _logger.warning("Poll cycle failed", exc_info=True)
            return None

    async def run_forever(self, *, initial_delay: float = 0.0) -> None:
        """Run a cycle now (after ``initial_delay``) and then every ``interval`` seconds."""
        await self._guarded_cycle(initial_delay)
        while True:
            await asyncio.sleep(self._interval)
            await self._guarded_cycle()

    def trigger(self, delay: float | None = None) -> asyncio.Task[PollCycleResult | None]:
        """Schedule an extra cycle after ``delay`` (default: the session settle delay).

        Must be called from the event loop thread. Returns immediately.
        """
        effective_delay = self._settle_delay if delay is None else delay
        task = asyncio.get_running_loop().create_task(self._guarded_cycle(effective_delay))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def aclose(self) -> None:
        """Cancel triggered cycles that are still pending."""
        tasks = list(self._pending)
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._pending.clear()
