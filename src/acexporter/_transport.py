"""HTTP transport for the server's ``/INFO`` snapshot."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Protocol

import aiohttp
from pydantic import ValidationError

from acexporter._constants import INFO_PATH
from acexporter.config import ExporterConfig
from acexporter.exceptions import AcTransportError
from acexporter.models.server_info import ServerInfo

_logger = logging.getLogger(__name__)


class InfoTransport(Protocol):
    """Structural interface for the snapshot source.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpInfoTransport`) concrete.
    """

    async def fetch_info(self) -> ServerInfo:
        ...


class HttpInfoTransport:
    """Fetch and parse ``GET /INFO`` with a bounded timeout."""

    def __init__(self, config: ExporterConfig, http_session: aiohttp.ClientSession) -> None:
        self._url = config.info_url
        self._timeout = aiohttp.ClientTimeout(total=config.info_timeout)
        self._http = http_session

    async def fetch_info(self) -> ServerInfo:
        """Return the parsed snapshot.

        Raises
        ------
        AcTransportError
            On network failure, timeout, non-200 status, invalid JSON, or a
            body that is not a JSON object.
        """
        _logger.debug("GET %s", self._url)

        try:
            async with self._http.get(self._url, timeout=self._timeout) as resp:
                # Same replacement policy as event-stream text fields.
                text = (await resp.read()).decode("utf-8", errors="replace")
                if resp.status != 200:
                    raise AcTransportError(
                        f"HTTP {resp.status} from {INFO_PATH}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=INFO_PATH,
                    )
        except AcTransportError:
            raise
        except asyncio.TimeoutError as exc:
            raise AcTransportError(
                f"Request to {INFO_PATH} timed out after {self._timeout.total}s",
                endpoint=INFO_PATH,
            ) from exc
        except aiohttp.ClientError as exc:
            raise AcTransportError(
                f"Request to {INFO_PATH} failed: {exc}",
                endpoint=INFO_PATH,
            ) from exc

        _logger.debug("Raw %s response: %s", INFO_PATH, text[:2000])

        try:
            body = json.loads(text)
        except json.JSONDecodeError as exc:
            raise AcTransportError(
                f"Invalid JSON from {INFO_PATH}: {text[:200]}",
                endpoint=INFO_PATH,
            ) from exc

        if not isinstance(body, dict):
            raise AcTransportError(
                f"Expected a JSON object from {INFO_PATH}, got {type(body).__name__}",
                endpoint=INFO_PATH,
            )

        try:
            return ServerInfo.model_validate(body)
        except ValidationError as exc:
            raise AcTransportError(
                f"Unexpected payload from {INFO_PATH}: {exc}",
                endpoint=INFO_PATH,
            ) from exc
