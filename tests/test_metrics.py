from __future__ import annotations

import pytest

from acexporter._acsp import encode_event
from acexporter.engine import AggregationEngine
from acexporter.exceptions import AcTransportError
from acexporter.metrics import escape_label_value, render_metrics
from acexporter.models import ClientEvent, LapCompletedEvent, ServerInfo
from acexporter.poller import PollOrchestrator


class _FailingInfo:
    async def fetch_info(self) -> ServerInfo:
        raise AcTransportError("HTTP 503", status_code=503)


class _NoFeed:
    def request_slot_info(self, slot_id: int) -> None:
        return None


def _sample_lines(text: str) -> list[str]:
    return [line for line in text.splitlines() if line and not line.startswith("#")]


def test_sentinel_block_before_first_snapshot() -> None:
    text = render_metrics(AggregationEngine().view())

    assert text.endswith("\n")
    assert _sample_lines(text) == [
        "ac_server_up 0",
        "ac_server_players 0",
        "ac_server_max_players 0",
        "ac_server_lap_completed_total 0",
        "ac_server_collisions_total 0",
        "ac_server_connections_total 0",
        "ac_server_disconnections_total 0",
    ]
    assert "# TYPE ac_server_up gauge" in text
    assert "# TYPE ac_server_lap_completed_total counter" in text


def test_labeled_gauges_from_snapshot() -> None:
    engine = AggregationEngine()
    engine.context.replace_snapshot(
        ServerInfo.model_validate(
            {
                "name": "Sunday Cup",
                "track": "spa",
                "clients": 3,
                "maxclients": 24,
                "session": 2,
                "cars": ["a", "b"],
                "pass": False,
                "pickup": True,
                "timeleft": 321,
                "poweredBy": "v1",
            }
        )
    )

    lines = _sample_lines(render_metrics(engine.view()))

    labels = 'server_name="Sunday Cup",track="spa",powered_by="v1"'
    assert lines[:8] == [
        f"ac_server_up{{{labels}}} 1",
        f"ac_server_players{{{labels}}} 3",
        f"ac_server_max_players{{{labels}}} 24",
        f"ac_server_session{{{labels}}} 2",
        f"ac_server_cars_available{{{labels}}} 2",
        f"ac_server_password_protected{{{labels}}} 0",
        f"ac_server_pickup_mode{{{labels}}} 1",
        f"ac_server_time_left{{{labels}}} 321",
    ]


def test_counters_follow_events() -> None:
    engine = AggregationEngine()
    engine.handle_datagram(encode_event(LapCompletedEvent(slot_id=0, lap_time_ms=90_000)))
    engine.handle_datagram(encode_event(LapCompletedEvent(slot_id=1, lap_time_ms=91_000)))
    engine.handle_datagram(encode_event(ClientEvent(slot_id=0, event_type=0)))

    lines = _sample_lines(render_metrics(engine.view()))

    assert "ac_server_lap_completed_total 2" in lines
    assert "ac_server_collisions_total 1" in lines


@pytest.mark.asyncio
async def test_stale_snapshot_is_rendered_unchanged_after_failed_refresh() -> None:
    engine = AggregationEngine()
    poller = PollOrchestrator(engine, _FailingInfo(), _NoFeed(), reply_grace=0.0, pacing=0.0)
    engine.context.replace_snapshot(ServerInfo(name="Sunday Cup", clients=5, maxclients=10))
    before = render_metrics(engine.view())

    assert await poller.refresh_snapshot() is None
    after = render_metrics(engine.view())

    assert after == before
    assert 'ac_server_players{server_name="Sunday Cup",track="",powered_by=""} 5' in after


def test_label_values_are_escaped() -> None:
    assert escape_label_value('a"b\\c\nd') == 'a\\"b\\\\c\\nd'

    engine = AggregationEngine()
    engine.context.replace_snapshot(ServerInfo(name='The "Ring"'))

    assert 'server_name="The \\"Ring\\""' in render_metrics(engine.view())
