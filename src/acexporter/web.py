"""aiohttp application exposing metrics and health endpoints."""

from __future__ import annotations

import html
from typing import Protocol

from aiohttp import web

from acexporter._constants import METRICS_CONTENT_TYPE
from acexporter.engine import EngineView
from acexporter.metrics import render_metrics
from acexporter.models.server_info import ServerInfo


class MetricsSource(Protocol):
    """What the web handlers need from the exporter."""

    async def refresh_snapshot(self) -> ServerInfo | None:
        ...

    def view(self) -> EngineView:
        ...


SOURCE_KEY = web.AppKey("source", MetricsSource)

_INDEX_TEMPLATE = """<html>
<head><title>Assetto Corsa Server Exporter</title></head>
<body>
<h1>Assetto Corsa Server Exporter</h1>
<p>Server: {server}</p>
<p><a href="/metrics">Metrics</a></p>
<p><a href="/health">Health</a></p>
</body>
</html>
"""


async def handle_metrics(request: web.Request) -> web.Response:
    source = request.app[SOURCE_KEY]
    # Opportunistic refresh; on failure the last good snapshot is served.
    await source.refresh_snapshot()
    body = render_metrics(source.view())
    return web.Response(body=body.encode("utf-8"), headers={"Content-Type": METRICS_CONTENT_TYPE})


async def handle_health(_request: web.Request) -> web.Response:
    return web.Response(text="OK")


async def handle_index(request: web.Request) -> web.Response:
    view = request.app[SOURCE_KEY].view()
    snapshot = view.context.snapshot
    server = snapshot.name if snapshot is not None else view.context.server_name
    return web.Response(
        text=_INDEX_TEMPLATE.format(server=html.escape(server or "Unknown")),
        content_type="text/html",
    )


def build_app(source: MetricsSource) -> web.Application:
    app = web.Application()
    app[SOURCE_KEY] = source
    app.router.add_get("/metrics", handle_metrics)
    app.router.add_get("/health", handle_health)
    app.router.add_get("/", handle_index)
    return app
