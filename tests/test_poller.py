from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

import pytest

from acexporter._acsp import encode_event
from acexporter.engine import AggregationEngine
from acexporter.exceptions import AcTransportError
from acexporter.models import NewConnectionEvent, NewSessionEvent, ServerInfo, SlotInfoEvent
from acexporter.poller import PollOrchestrator, format_status_summary


@dataclass
class _FakeInfo:
    responses: list[ServerInfo | AcTransportError]
    calls: int = 0

    async def fetch_info(self) -> ServerInfo:
        response = self.responses[min(self.calls, len(self.responses) - 1)]
        self.calls += 1
        if isinstance(response, AcTransportError):
            raise response
        return response


@dataclass
class _ReplyingFeed:
    """Answers each slot request by feeding a slot-info frame into the engine."""

    engine: AggregationEngine
    occupied: dict[int, tuple[str, str]] = field(default_factory=dict)
    requested: list[int] = field(default_factory=list)

    def request_slot_info(self, slot_id: int) -> None:
        self.requested.append(slot_id)
        driver = self.occupied.get(slot_id)
        event = SlotInfoEvent(
            slot_id=slot_id,
            is_connected=driver is not None,
            car_model=driver[1] if driver else "",
            driver_name=driver[0] if driver else "",
        )
        self.engine.handle_datagram(encode_event(event))


def _build_poller(
    engine: AggregationEngine,
    info: _FakeInfo,
    feed: _ReplyingFeed,
    *,
    slot_count: int = 4,
) -> PollOrchestrator:
    return PollOrchestrator(
        engine,
        info,
        feed,
        interval=0.01,
        slot_count=slot_count,
        reply_grace=0.0,
        pacing=0.0,
        settle_delay=0.0,
    )


@pytest.mark.asyncio
async def test_cycle_fetches_snapshot_and_requests_every_slot() -> None:
    engine = AggregationEngine()
    info = _FakeInfo([ServerInfo(name="Sunday Cup", maxclients=24, track="spa")])
    feed = _ReplyingFeed(engine, occupied={1: ("Alice", "ks_mazda_mx5_cup")})
    poller = _build_poller(engine, info, feed)

    result = await poller.run_cycle()

    assert result.snapshot_ok is True
    assert result.slots_requested == 4
    assert result.connected_count == 1
    assert feed.requested == [0, 1, 2, 3]
    assert engine.context.snapshot() is not None
    assert poller.cycles_completed == 1


@pytest.mark.asyncio
async def test_failed_fetch_keeps_previous_snapshot() -> None:
    engine = AggregationEngine()
    good = ServerInfo(name="Sunday Cup", maxclients=24)
    info = _FakeInfo([good, AcTransportError("HTTP 500", status_code=500)])
    poller = _build_poller(engine, info, _ReplyingFeed(engine))

    assert await poller.refresh_snapshot() == good
    assert await poller.refresh_snapshot() is None

    assert engine.context.snapshot() == good


@pytest.mark.asyncio
async def test_cycle_completes_when_snapshot_unavailable() -> None:
    engine = AggregationEngine()
    info = _FakeInfo([AcTransportError("timed out")])
    feed = _ReplyingFeed(engine)
    poller = _build_poller(engine, info, feed, slot_count=2)

    result = await poller.run_cycle()

    assert result.snapshot_ok is False
    assert result.slots_requested == 2
    assert engine.context.snapshot() is None


@pytest.mark.asyncio
async def test_new_session_triggers_extra_cycle() -> None:
    engine = AggregationEngine()
    info = _FakeInfo([ServerInfo(name="Sunday Cup")])
    poller = _build_poller(engine, info, _ReplyingFeed(engine), slot_count=1)
    triggered: list[asyncio.Task[object]] = []
    engine.set_session_change_callback(lambda: triggered.append(poller.trigger()))

    engine.handle_datagram(encode_event(NewSessionEvent(server_name="Sunday Cup", track="spa")))

    assert len(triggered) == 1
    result = await triggered[0]
    assert result is not None
    assert info.calls == 1
    await poller.aclose()


@pytest.mark.asyncio
async def test_run_forever_repeats_until_cancelled() -> None:
    engine = AggregationEngine()
    info = _FakeInfo([ServerInfo(name="Sunday Cup")])
    poller = _build_poller(engine, info, _ReplyingFeed(engine), slot_count=1)

    task = asyncio.create_task(poller.run_forever())
    for _ in range(200):
        if poller.cycles_completed >= 2:
            break
        await asyncio.sleep(0.01)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert poller.cycles_completed >= 2


@pytest.mark.asyncio
async def test_failing_feed_does_not_abort_cycle() -> None:
    engine = AggregationEngine()

    class _BrokenFeed:
        def request_slot_info(self, slot_id: int) -> None:
            raise OSError("network unreachable")

    poller = PollOrchestrator(
        engine,
        _FakeInfo([ServerInfo()]),
        _BrokenFeed(),
        slot_count=3,
        reply_grace=0.0,
        pacing=0.0,
    )

    result = await poller.run_cycle()

    assert result.slots_requested == 0


@pytest.mark.asyncio
async def test_aclose_cancels_pending_triggers() -> None:
    engine = AggregationEngine()
    info = _FakeInfo([ServerInfo()])
    poller = _build_poller(engine, info, _ReplyingFeed(engine))

    task = poller.trigger(delay=60.0)
    await poller.aclose()

    assert task.cancelled()
    assert info.calls == 0


def test_status_summary_prefers_snapshot() -> None:
    engine = AggregationEngine()
    engine.context.replace_snapshot(
        ServerInfo(name="Sunday Cup", track="spa", track_config="gp", maxclients=24, session=2)
    )
    engine.handle_datagram(
        encode_event(
            SlotInfoEvent(slot_id=4, is_connected=True, car_model="ks_ferrari_488_gt3", driver_name="Alice")
        )
    )

    assert format_status_summary(engine.view()) == [
        "Server: Sunday Cup | Track: spa (gp) | Mode: Qualifying | Players: 1/24",
        "  Alice (Slot #4) - ks_ferrari_488_gt3",
    ]


def test_status_summary_falls_back_to_event_stream() -> None:
    engine = AggregationEngine()
    engine.handle_datagram(encode_event(NewSessionEvent(server_name="Sunday Cup", track="monza")))
    engine.handle_datagram(encode_event(NewConnectionEvent(driver_name="Bob", driver_guid="b", slot_id=0)))

    lines = format_status_summary(engine.view())

    assert lines[0] == "Server: Sunday Cup | Track: monza | Players: 1"
    assert lines[1] == "  Bob (Slot #0) - "


def test_status_summary_without_any_data() -> None:
    assert format_status_summary(AggregationEngine().view()) == ["Server: Unknown | Players: 0"]


@pytest.mark.asyncio
async def test_unexpected_fetch_error_does_not_skip_slot_requests() -> None:
    engine = AggregationEngine()
    previous = ServerInfo(name="Sunday Cup")
    engine.context.replace_snapshot(previous)

    class _ExplodingInfo:
        async def fetch_info(self) -> ServerInfo:
            raise ValueError("unexpected payload shape")

    feed = _ReplyingFeed(engine)
    poller = _build_poller(engine, _ExplodingInfo(), feed, slot_count=3)  # type: ignore[arg-type]

    result = await poller.run_cycle()

    assert result.snapshot_ok is False
    assert result.slots_requested == 3
    assert feed.requested == [0, 1, 2]
    assert engine.context.snapshot() == previous
