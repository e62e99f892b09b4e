"""High-level async exporter wiring feed, engine, poller and web server."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from typing import Any

import aiohttp
from aiohttp import web

from acexporter._constants import STARTUP_DELAY
from acexporter._transport import HttpInfoTransport, InfoTransport
from acexporter.config import ExporterConfig
from acexporter.engine import AggregationEngine, EngineView
from acexporter.exceptions import AcExporterError
from acexporter.feed import AcspFeed
from acexporter.models.server_info import ServerInfo
from acexporter.poller import PollCycleResult, PollOrchestrator
from acexporter.web import build_app

_logger = logging.getLogger(__name__)


class AcServerExporter:
    """Aggregate a server's event stream and ``/INFO`` snapshot and expose them.

    Usage::

        async with AcServerExporter(config) as exporter:
            await exporter.serve_forever()
    """

    def __init__(
        self,
        config: ExporterConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        info_transport: InfoTransport | None = None,
        on_notification: Callable[[str], None] | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._info_transport = info_transport
        self._engine = AggregationEngine(on_notification=on_notification)
        self._feed: AcspFeed | None = None
        self._poller: PollOrchestrator | None = None
        self._poll_task: asyncio.Task[None] | None = None
        self._runner: web.AppRunner | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> AcServerExporter:
        if self._info_transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._info_transport = HttpInfoTransport(self._config, self._http_session)
        try:
            self._feed = await AcspFeed.open(self._config, self._engine.handle_datagram)
            self._feed.connect()
        except BaseException:
            await self._close_resources()
            raise

        self._poller = PollOrchestrator(
            self._engine,
            self._info_transport,
            self._feed,
            interval=self._config.poll_interval,
            slot_count=self._config.slot_count,
            reply_grace=self._config.reply_grace,
        )
        self._engine.set_session_change_callback(self._on_session_change)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        self._engine.set_session_change_callback(None)
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
        if self._poll_task is not None:
            self._poll_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._poll_task
            self._poll_task = None
        if self._poller is not None:
            await self._poller.aclose()
            self._poller = None
        await self._close_resources()

    async def _close_resources(self) -> None:
        if self._feed is not None:
            await self._feed.close()
            self._feed = None
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_poller(self) -> PollOrchestrator:
        if self._poller is None:
            raise AcExporterError("Exporter not started. Use 'async with AcServerExporter(...) as exporter:'")
        return self._poller

    def _on_session_change(self) -> None:
        poller = self._poller
        if poller is not None:
            poller.trigger()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def config(self) -> ExporterConfig:
        return self._config

    @property
    def engine(self) -> AggregationEngine:
        return self._engine

    def view(self) -> EngineView:
        """Read-only snapshot of the aggregated state."""
        return self._engine.view()

    async def refresh_snapshot(self) -> ServerInfo | None:
        """Fetch ``/INFO`` now; keeps the previous snapshot on failure."""
        return await self._require_poller().refresh_snapshot()

    async def run_cycle(self) -> PollCycleResult:
        return await self._require_poller().run_cycle()

    def start_polling(self, *, initial_delay: float = STARTUP_DELAY) -> asyncio.Task[None]:
        """Start the periodic poll loop in the background (idempotent)."""
        poller = self._require_poller()
        if self._poll_task is None or self._poll_task.done():
            self._poll_task = asyncio.get_running_loop().create_task(
                poller.run_forever(initial_delay=initial_delay)
            )
        return self._poll_task

    async def start_web(self) -> web.AppRunner:
        """Start serving ``/metrics``, ``/health`` and ``/`` on the exporter port."""
        if self._runner is not None:
            return self._runner
        runner = web.AppRunner(build_app(self))
        await runner.setup()
        site = web.TCPSite(runner, self._config.exporter_host, self._config.exporter_port)
        try:
            await site.start()
        except OSError as exc:
            await runner.cleanup()
            raise AcExporterError(
                f"Failed to listen on {self._config.exporter_host}:{self._config.exporter_port}: {exc}"
            ) from exc
        self._runner = runner
        _logger.info(
            "Serving metrics on http://%s:%d/metrics",
            self._config.exporter_host,
            self._config.exporter_port,
        )
        return runner

    async def serve_forever(self) -> None:
        """Poll and serve until cancelled."""
        poll_task = self.start_polling()
        await self.start_web()
        await poll_task
