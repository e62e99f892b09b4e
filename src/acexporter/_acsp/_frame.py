"""Low-level cursor/builder for event-stream frame payloads.

Integers are little-endian and fixed width; text is length-prefixed with a
single byte and carries no terminator.
"""

from __future__ import annotations

import struct

from acexporter.exceptions import InsufficientDataError

_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")


class FrameReader:
    """Strict read cursor over one frame payload.

    Every read that would run past the end of the buffer raises
    :class:`InsufficientDataError` instead of returning a default.
    """

    def __init__(self, payload: bytes, *, kind: int | None = None) -> None:
        self._data = bytes(payload)
        self._offset = 0
        self._kind = kind

    @property
    def remaining(self) -> int:
        return len(self._data) - self._offset

    def _take(self, size: int, what: str) -> bytes:
        if size > self.remaining:
            raise InsufficientDataError(
                f"{what} needs {size} bytes at offset {self._offset}, {self.remaining} left",
                kind=self._kind,
            )
        start = self._offset
        self._offset += size
        return self._data[start : self._offset]

    def u8(self, what: str = "u8") -> int:
        return self._take(1, what)[0]

    def u16(self, what: str = "u16") -> int:
        value: int = _U16.unpack(self._take(_U16.size, what))[0]
        return value

    def u32(self, what: str = "u32") -> int:
        value: int = _U32.unpack(self._take(_U32.size, what))[0]
        return value

    def string(self, what: str = "string") -> str:
        length = self.u8(f"{what} length")
        raw = self._take(length, what)
        return raw.rstrip(b"\x00").decode("utf-8", errors="replace")

    def rest(self) -> bytes:
        return self._take(self.remaining, "rest")


class FrameWriter:
    """Builder producing frames in the same layout :class:`FrameReader` consumes."""

    def __init__(self, tag: int) -> None:
        self._buffer = bytearray([tag & 0xFF])

    def u8(self, value: int) -> FrameWriter:
        if not 0 <= value <= 0xFF:
            raise ValueError(f"u8 out of range: {value}")
        self._buffer.append(value)
        return self

    def u16(self, value: int) -> FrameWriter:
        self._buffer += _U16.pack(value)
        return self

    def u32(self, value: int) -> FrameWriter:
        self._buffer += _U32.pack(value)
        return self

    def string(self, value: str) -> FrameWriter:
        encoded = value.encode("utf-8")
        if len(encoded) > 0xFF:
            raise ValueError(f"text field too long for a one-byte length prefix: {len(encoded)} bytes")
        self._buffer.append(len(encoded))
        self._buffer += encoded
        return self

    def raw(self, value: bytes) -> FrameWriter:
        self._buffer += value
        return self

    def to_bytes(self) -> bytes:
        return bytes(self._buffer)
