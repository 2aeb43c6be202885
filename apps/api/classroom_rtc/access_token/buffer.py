"""Little-endian byte buffer primitives for the 007 token wire format.

Every multi-byte integer is little-endian. Byte strings carry a uint16 length
prefix, so a single field can hold at most 65535 bytes. Privilege maps are a
uint16 count followed by ``(uint16 code, uint32 expire)`` pairs sorted by code;
signatures are computed over these exact bytes, so ordering is part of the
format.
"""
from __future__ import annotations

import struct
from typing import Mapping

MAX_FIELD_LENGTH = 0xFFFF

_UINT16 = struct.Struct("<H")
_UINT32 = struct.Struct("<I")
_INT16 = struct.Struct("<h")


class BufferUnderflowError(ValueError):
    """Raised when a reader runs past the end of its input."""


class ByteBuffer:
    """Growable write buffer; ``pack()`` returns only what was written."""

    def __init__(self) -> None:
        self._data = bytearray()

    def __len__(self) -> int:
        return len(self._data)

    def put_uint16(self, value: int) -> ByteBuffer:
        self._data += _UINT16.pack(value & 0xFFFF)
        return self

    def put_uint32(self, value: int) -> ByteBuffer:
        self._data += _UINT32.pack(value & 0xFFFFFFFF)
        return self

    def put_int16(self, value: int) -> ByteBuffer:
        self._data += _INT16.pack(value)
        return self

    def put_bytes(self, value: bytes) -> ByteBuffer:
        """Write a uint16 length prefix followed by ``value``.

        Payloads longer than 65535 bytes cannot be represented and are a
        caller bug; they raise ``ValueError`` instead of silently truncating.
        """

        if len(value) > MAX_FIELD_LENGTH:
            raise ValueError(f"field of {len(value)} bytes exceeds {MAX_FIELD_LENGTH}")
        self.put_uint16(len(value))
        self._data += value
        return self

    def put_string(self, value: str) -> ByteBuffer:
        return self.put_bytes(value.encode("utf-8"))

    def put_privilege_map(self, privileges: Mapping[int, int]) -> ByteBuffer:
        self.put_uint16(len(privileges))
        for code in sorted(privileges):
            self.put_uint16(code)
            self.put_uint32(privileges[code])
        return self

    def pack(self) -> bytes:
        return bytes(self._data)


class ByteReader:
    """Cursor over a byte string mirroring :class:`ByteBuffer` writers."""

    def __init__(self, data: bytes) -> None:
        self._data = memoryview(bytes(data))
        self._position = 0

    @property
    def position(self) -> int:
        return self._position

    def remaining(self) -> int:
        return len(self._data) - self._position

    def _take(self, size: int) -> memoryview:
        if size > self.remaining():
            raise BufferUnderflowError(
                f"need {size} bytes at offset {self._position}, only {self.remaining()} left"
            )
        chunk = self._data[self._position : self._position + size]
        self._position += size
        return chunk

    def get_uint16(self) -> int:
        return _UINT16.unpack(self._take(_UINT16.size))[0]

    def get_uint32(self) -> int:
        return _UINT32.unpack(self._take(_UINT32.size))[0]

    def get_int16(self) -> int:
        return _INT16.unpack(self._take(_INT16.size))[0]

    def get_bytes(self) -> bytes:
        length = self.get_uint16()
        return bytes(self._take(length))

    def get_string(self) -> str:
        return self.get_bytes().decode("utf-8")

    def get_privilege_map(self) -> dict[int, int]:
        count = self.get_uint16()
        privileges: dict[int, int] = {}
        for _ in range(count):
            code = self.get_uint16()
            privileges[code] = self.get_uint32()
        return privileges

    def rest(self) -> bytes:
        """Return the unread tail without advancing the cursor."""

        return bytes(self._data[self._position :])
