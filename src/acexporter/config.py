"""Exporter configuration for acexporter."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Callable
from typing import Any

from acexporter._constants import (
    DEFAULT_INFO_TIMEOUT,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_REPLY_GRACE,
    DEFAULT_SLOT_COUNT,
    INFO_PATH,
    MAX_SLOT_ID,
)
from acexporter.exceptions import AcConfigError


def _check_port(name: str, value: int, *, allow_zero: bool = False) -> None:
    low = 0 if allow_zero else 1
    if not low <= value <= 65535:
        raise AcConfigError(f"{name} must be between {low} and 65535, got {value}")


@dataclasses.dataclass(frozen=True)
class ExporterConfig:
    """Exporter configuration.

    Parameters
    ----------
    host : str
        Simulation server host, used for both the UDP feed and ``/INFO``.
    udp_port : int
        Server UDP plugin port (event stream).
    http_port : int
        Server HTTP port serving the ``/INFO`` snapshot.
    exporter_host : str
        Interface the metrics HTTP server binds to.
    exporter_port : int
        Port the metrics HTTP server listens on.
    bind_host : str
        Local interface for the UDP socket.
    local_udp_port : int
        Local UDP port; ``0`` picks an ephemeral port.
    poll_interval : float
        Seconds between two periodic poll cycles.
    slot_count : int
        Number of slot ids (``0..slot_count-1``) requested per poll cycle.
    info_timeout : float
        Total timeout in seconds for one ``/INFO`` request.
    reply_grace : float
        Seconds a poll cycle waits for slot-info replies before it reports.
    """

    host: str = "127.0.0.1"
    udp_port: int = 9600
    http_port: int = 8081
    exporter_host: str = "0.0.0.0"  # noqa: S104
    exporter_port: int = 9090
    bind_host: str = "0.0.0.0"  # noqa: S104
    local_udp_port: int = 0
    poll_interval: float = DEFAULT_POLL_INTERVAL
    slot_count: int = DEFAULT_SLOT_COUNT
    info_timeout: float = DEFAULT_INFO_TIMEOUT
    reply_grace: float = DEFAULT_REPLY_GRACE

    def __post_init__(self) -> None:
        if not self.host.strip():
            raise AcConfigError("host must be non-empty")
        _check_port("udp_port", self.udp_port)
        _check_port("http_port", self.http_port)
        _check_port("exporter_port", self.exporter_port)
        _check_port("local_udp_port", self.local_udp_port, allow_zero=True)
        if not 1 <= self.slot_count <= MAX_SLOT_ID + 1:
            raise AcConfigError(f"slot_count must be between 1 and {MAX_SLOT_ID + 1}, got {self.slot_count}")
        if self.poll_interval <= 0:
            raise AcConfigError("poll_interval must be positive")
        if self.info_timeout <= 0:
            raise AcConfigError("info_timeout must be positive")
        if self.reply_grace < 0:
            raise AcConfigError("reply_grace must not be negative")

    @property
    def info_url(self) -> str:
        """URL of the server's ``/INFO`` snapshot."""
        return f"http://{self.host}:{self.http_port}{INFO_PATH}"

    @classmethod
    def from_env(cls, **overrides: Any) -> ExporterConfig:
        """Create configuration from environment variables.

        Reads ``AC_SERVER_HOST``, ``AC_SERVER_UDP_PORT``,
        ``AC_SERVER_HTTP_PORT``, ``EXPORTER_PORT`` and the optional
        tuning variables below. Explicit keyword arguments override
        environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        ExporterConfig
            Populated configuration.

        Raises
        ------
        AcConfigError
            If a variable cannot be parsed or a value is out of range.
        """
        env = os.environ

        _ENV_CONFIG_MAP: dict[str, tuple[str, Callable[[str], Any]]] = {
            "AC_SERVER_HOST": ("host", str),
            "AC_SERVER_UDP_PORT": ("udp_port", int),
            "AC_SERVER_HTTP_PORT": ("http_port", int),
            "EXPORTER_HOST": ("exporter_host", str),
            "EXPORTER_PORT": ("exporter_port", int),
            "AC_BIND_HOST": ("bind_host", str),
            "AC_LOCAL_UDP_PORT": ("local_udp_port", int),
            "AC_POLL_INTERVAL": ("poll_interval", float),
            "AC_SLOT_COUNT": ("slot_count", int),
            "AC_INFO_TIMEOUT": ("info_timeout", float),
            "AC_REPLY_GRACE": ("reply_grace", float),
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, (field_name, parse) in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is None or overrides.get(field_name) is not None:
                continue
            try:
                config_kwargs[field_name] = parse(val.strip())
            except ValueError as exc:
                raise AcConfigError(f"{env_key} has an invalid value: {val!r}") from exc

        # Drop explicit None overrides (e.g. unset CLI options) so env/defaults apply.
        config_kwargs.update({key: value for key, value in overrides.items() if value is not None})

        return cls(**config_kwargs)
