from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncIterator, Awaitable, Callable

import aiohttp
import pytest
from aiohttp import test_utils, web

from acexporter._transport import HttpInfoTransport
from acexporter.config import ExporterConfig
from acexporter.engine import AggregationEngine
from acexporter.exceptions import AcTransportError
from acexporter.poller import PollOrchestrator

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


class _NoFeed:
    def request_slot_info(self, slot_id: int) -> None:
        return None


@contextlib.asynccontextmanager
async def _serving(handler: Handler, *, info_timeout: float = 3.0) -> AsyncIterator[HttpInfoTransport]:
    app = web.Application()
    app.router.add_get("/INFO", handler)
    async with test_utils.TestServer(app) as server, aiohttp.ClientSession() as session:
        config = ExporterConfig(host="127.0.0.1", http_port=server.port, info_timeout=info_timeout)
        yield HttpInfoTransport(config, session)


@pytest.mark.asyncio
async def test_fetch_parses_snapshot() -> None:
    async def handler(_request: web.Request) -> web.Response:
        return web.json_response({"name": "Sunday Cup", "clients": 3, "maxclients": 16, "poweredBy": "v1"})

    async with _serving(handler) as transport:
        info = await transport.fetch_info()

    assert info.name == "Sunday Cup"
    assert info.clients == 3
    assert info.max_clients == 16
    assert info.powered_by == "v1"


@pytest.mark.asyncio
async def test_non_200_raises_with_status() -> None:
    async def handler(_request: web.Request) -> web.Response:
        return web.Response(status=503, text="busy")

    async with _serving(handler) as transport:
        with pytest.raises(AcTransportError) as excinfo:
            await transport.fetch_info()

    assert excinfo.value.status_code == 503
    assert excinfo.value.endpoint == "/INFO"


@pytest.mark.asyncio
async def test_invalid_json_raises() -> None:
    async def handler(_request: web.Request) -> web.Response:
        return web.Response(text="<html>not json</html>")

    async with _serving(handler) as transport:
        with pytest.raises(AcTransportError, match="Invalid JSON"):
            await transport.fetch_info()


@pytest.mark.asyncio
async def test_non_object_body_raises() -> None:
    async def handler(_request: web.Request) -> web.Response:
        return web.json_response([1, 2, 3])

    async with _serving(handler) as transport:
        with pytest.raises(AcTransportError, match="JSON object"):
            await transport.fetch_info()


@pytest.mark.asyncio
async def test_slow_server_times_out() -> None:
    async def handler(_request: web.Request) -> web.Response:
        await asyncio.sleep(1.0)
        return web.json_response({})

    async with _serving(handler, info_timeout=0.1) as transport:
        with pytest.raises(AcTransportError, match="timed out"):
            await transport.fetch_info()


@pytest.mark.asyncio
async def test_unreachable_server_raises() -> None:
    async with aiohttp.ClientSession() as session:
        # Port 9 (discard) is closed on test hosts.
        transport = HttpInfoTransport(ExporterConfig(host="127.0.0.1", http_port=9, info_timeout=1.0), session)
        with pytest.raises(AcTransportError):
            await transport.fetch_info()


@pytest.mark.asyncio
async def test_non_utf8_body_is_decoded_with_replacement() -> None:
    async def handler(_request: web.Request) -> web.Response:
        return web.Response(body=b'{"name": "Caf\xe9 Cup", "clients": 2}', content_type="application/json")

    async with _serving(handler) as transport:
        info = await transport.fetch_info()

    assert info.name == "Caf\ufffd Cup"
    assert info.clients == 2


@pytest.mark.asyncio
async def test_overflowing_numbers_fall_back_to_defaults() -> None:
    async def handler(_request: web.Request) -> web.Response:
        return web.Response(text='{"name": "Sunday Cup", "timeleft": 1e999, "clients": Infinity}')

    async with _serving(handler) as transport:
        info = await transport.fetch_info()

    assert info.name == "Sunday Cup"
    assert info.time_left == 0
    assert info.clients == 0


@pytest.mark.asyncio
async def test_malformed_bodies_keep_previous_snapshot() -> None:
    bodies = [
        b'{"name": "Sunday Cup", "clients": 3}',
        b'{"timeleft": 1e999}',
        b'{"name": "Caf\xe9 Cup"}',
        b"\xff\xfe not json",
    ]
    served = 0

    async def handler(_request: web.Request) -> web.Response:
        nonlocal served
        body = bodies[min(served, len(bodies) - 1)]
        served += 1
        return web.Response(body=body, content_type="application/json")

    engine = AggregationEngine()
    async with _serving(handler) as transport:
        poller = PollOrchestrator(engine, transport, _NoFeed(), slot_count=1, reply_grace=0.0, pacing=0.0)
        first = await poller.refresh_snapshot()
        second = await poller.refresh_snapshot()
        third = await poller.refresh_snapshot()
        fourth = await poller.refresh_snapshot()

    assert first is not None and first.clients == 3
    assert second is not None and second.time_left == 0
    assert third is not None and third.name == "Caf\ufffd Cup"
    assert fourth is None
    assert engine.context.snapshot() == third
