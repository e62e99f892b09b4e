"""Custom exception hierarchy for acexporter."""

from __future__ import annotations


class AcExporterError(Exception):
    """Base exception for all acexporter errors."""


class AcConfigError(AcExporterError):
    """Invalid or missing configuration."""


class AcTransportError(AcExporterError):
    """Network-level failure (UDP resolve/bind, HTTP non-200, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class AcProtocolError(AcExporterError):
    """An event-stream datagram could not be decoded."""

    def __init__(self, message: str, *, kind: int | None = None) -> None:
        self.kind = kind
        super().__init__(message)


class InsufficientDataError(AcProtocolError):
    """Frame is shorter than its kind requires, or a text field overruns it.

    Raised before any event is produced, so a truncated frame never reaches
    the state stores.
    """
