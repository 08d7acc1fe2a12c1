"""
Cursor over an archive byte buffer.

Integers in a typedstream are written in a space-saving form:
- A single byte holds small values directly
- Marker 0x81 announces a 16-bit little-endian value
- Marker 0x82 announces a 32-bit little-endian value
- Marker 0x83 announces a float/double (only for 'f' and 'd' encodings)

Every read checks the remaining length first and raises TruncatedInput
instead of reading past the end.
"""

import struct
from typing import Optional

from .errors import TruncatedInput, InvalidUtf8

# Archive marker bytes
I_16 = 0x81
I_32 = 0x82
DECIMAL = 0x83
START = 0x84
EMPTY = 0x85
END = 0x86

# Back-references are signed integers offset by this base, so 0x92 is index 0
REFERENCE_BASE = -110


class ByteReader:
    """Forward-only reader over an immutable byte buffer."""

    def __init__(self, data: bytes, offset: int = 0):
        self._data = bytes(data)
        self._pos = offset

    @property
    def position(self) -> int:
        return self._pos

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    @property
    def at_end(self) -> bool:
        return self._pos >= len(self._data)

    def _take(self, size: int) -> bytes:
        if size < 0 or self._pos + size > len(self._data):
            raise TruncatedInput(self._pos, size, self.remaining)
        chunk = self._data[self._pos:self._pos + size]
        self._pos += size
        return chunk

    def _unpack(self, fmt: str):
        return struct.unpack(fmt, self._take(struct.calcsize(fmt)))[0]

    def peek(self) -> int:
        """Return the current byte without consuming it."""
        if self.at_end:
            raise TruncatedInput(self._pos, 1, 0)
        return self._data[self._pos]

    def skip(self, size: int = 1):
        self._take(size)

    def find(self, pattern: bytes, start: Optional[int] = None) -> int:
        """Offset of the next occurrence of pattern, or -1."""
        return self._data.find(pattern, self._pos if start is None else start)

    def seek(self, offset: int):
        if not 0 <= offset <= len(self._data):
            raise TruncatedInput(offset, 0, len(self._data) - offset)
        self._pos = offset

    # Fixed-width little-endian reads

    def read_u8(self) -> int:
        return self._unpack('<B')

    def read_i8(self) -> int:
        return self._unpack('<b')

    def read_u16(self) -> int:
        return self._unpack('<H')

    def read_i16(self) -> int:
        return self._unpack('<h')

    def read_u32(self) -> int:
        return self._unpack('<I')

    def read_i32(self) -> int:
        return self._unpack('<i')

    def read_u64(self) -> int:
        return self._unpack('<Q')

    def read_i64(self) -> int:
        return self._unpack('<q')

    def read_f32(self) -> float:
        return self._unpack('<f')

    def read_f64(self) -> float:
        return self._unpack('<d')

    def read_bytes(self, size: int) -> bytes:
        return self._take(size)

    # Marker-prefixed reads

    def read_signed_int(self) -> int:
        """Read a signed integer whose width is selected by a leading marker."""
        marker = self.read_u8()
        if marker == I_16:
            return self.read_i16()
        if marker == I_32:
            return self.read_i32()
        return marker - 0x100 if marker > 0x7F else marker

    def read_unsigned_int(self) -> int:
        """Read an unsigned integer whose width is selected by a leading marker."""
        marker = self.read_u8()
        if marker == I_16:
            return self.read_u16()
        if marker == I_32:
            return self.read_u32()
        return marker

    def read_length_prefixed_bytes(self) -> bytes:
        length = self.read_unsigned_int()
        return self._take(length)

    def read_string(self) -> str:
        """Read a length-prefixed UTF-8 string."""
        start = self._pos
        raw = self.read_length_prefixed_bytes()
        try:
            return raw.decode('utf-8')
        except UnicodeDecodeError as e:
            raise InvalidUtf8(f"Invalid UTF-8 string at offset {start}: {e}") from e

    def read_reference(self) -> int:
        """Read a back-reference and return the table index it names."""
        return self.read_signed_int() - REFERENCE_BASE
