"""UDP event-stream endpoint."""

from __future__ import annotations

import asyncio
import logging
import socket
from collections.abc import Callable
from typing import Any, Protocol

from acexporter._acsp.encoder import (
    build_realtime_updates_request,
    build_session_info_request,
    build_slot_info_request,
)
from acexporter.config import ExporterConfig
from acexporter.exceptions import AcTransportError

_logger = logging.getLogger(__name__)


class SlotRequester(Protocol):
    """What the poll orchestrator needs from the feed."""

    def request_slot_info(self, slot_id: int) -> None:
        ...


class _FeedProtocol(asyncio.DatagramProtocol):
    """Hands every received datagram to ``on_datagram`` in arrival order."""

    def __init__(self, on_datagram: Callable[[bytes], Any]) -> None:
        self._on_datagram = on_datagram
        self.closed: asyncio.Future[None] = asyncio.get_running_loop().create_future()

    def datagram_received(self, data: bytes, addr: tuple[Any, ...]) -> None:
        if not data:
            return
        try:
            self._on_datagram(data)
        except Exception:
            _logger.warning("Failed to handle datagram from %s", addr, exc_info=True)

    def error_received(self, exc: Exception) -> None:
        # ICMP errors and the like surface here; the socket stays usable.
        _logger.warning("Event stream receive error: %s", exc)

    def connection_lost(self, exc: Exception | None) -> None:
        if exc is not None:
            _logger.warning("Event stream socket closed with error: %s", exc)
        if not self.closed.done():
            self.closed.set_result(None)


class AcspFeed:
    """UDP socket exchanging event-stream frames with the simulation server.

    Use :meth:`open` to resolve the server address and bind the local socket;
    failures there raise :class:`AcTransportError` and are fatal at startup.
    """

    def __init__(
        self,
        transport: asyncio.DatagramTransport,
        protocol: _FeedProtocol,
        server_addr: tuple[Any, ...],
    ) -> None:
        self._transport = transport
        self._protocol = protocol
        self._server_addr = server_addr

    @classmethod
    async def open(cls, config: ExporterConfig, on_datagram: Callable[[bytes], Any]) -> AcspFeed:
        loop = asyncio.get_running_loop()
        try:
            infos = await loop.getaddrinfo(
                config.host,
                config.udp_port,
                family=socket.AF_INET,
                type=socket.SOCK_DGRAM,
            )
        except OSError as exc:
            raise AcTransportError(
                f"Failed to resolve UDP address {config.host}:{config.udp_port}: {exc}",
                endpoint=f"{config.host}:{config.udp_port}",
            ) from exc
        if not infos:
            raise AcTransportError(
                f"No address found for {config.host}:{config.udp_port}",
                endpoint=f"{config.host}:{config.udp_port}",
            )
        server_addr = infos[0][4]

        try:
            transport, protocol = await loop.create_datagram_endpoint(
                lambda: _FeedProtocol(on_datagram),
                local_addr=(config.bind_host, config.local_udp_port),
                family=socket.AF_INET,
            )
        except OSError as exc:
            raise AcTransportError(
                f"Failed to bind UDP socket on {config.bind_host}:{config.local_udp_port}: {exc}",
                endpoint=f"{config.bind_host}:{config.local_udp_port}",
            ) from exc

        _logger.debug(
            "Event stream socket bound to %s, server %s",
            transport.get_extra_info("sockname"),
            server_addr,
        )
        return cls(transport, protocol, server_addr)

    @property
    def server_addr(self) -> tuple[Any, ...]:
        return self._server_addr

    @property
    def local_addr(self) -> tuple[Any, ...]:
        sockname: tuple[Any, ...] = self._transport.get_extra_info("sockname")
        return sockname

    @property
    def is_closing(self) -> bool:
        return self._transport.is_closing()

    def send(self, data: bytes) -> None:
        self._transport.sendto(data, self._server_addr)

    def connect(self) -> None:
        """Start the event stream and ask for the current session.

        Raises
        ------
        AcTransportError
            If either request cannot be sent.
        """
        try:
            self.send(build_realtime_updates_request())
            self.send(build_session_info_request())
        except OSError as exc:
            raise AcTransportError(
                f"Handshake with {self._server_addr} failed: {exc}",
                endpoint=str(self._server_addr),
            ) from exc
        _logger.info("Connected to server event stream at %s:%s", *self._server_addr[:2])

    def request_slot_info(self, slot_id: int) -> None:
        self.send(build_slot_info_request(slot_id))

    async def close(self) -> None:
        if not self._transport.is_closing():
            self._transport.close()
        await self._protocol.closed
