"""
Legacy pattern decoder for message bodies.

Used when the typedstream decoder rejects a buffer (truncated, unsupported
records). Instead of walking the object graph it frames the first text
record with fixed byte patterns:

    ... "streamtyped" <stamp> ... 01 2B <length> <utf-8 text> 86 84 ...

Only unstyled text is recovered.
"""

import logging

from ..core.errors import (
    InvalidPrefix, InvalidTimestamp, NoEndPattern, NoStartPattern, TruncatedInput,
)
from ..core.reader import ByteReader, I_16, I_32

logger = logging.getLogger(__name__)


class LegacyBodyDecoder:
    """Recovers plain text from an archive by pattern matching."""

    START_PATTERN = b"streamtyped"
    TEXT_PATTERN = b"\x01\x2b"   # one-character type encoding "+"
    END_PATTERN = b"\x86\x84"    # end of string object, start of the next record

    MIN_STAMP = 1
    MAX_STAMP = 0xFFFF

    def __init__(self, data: bytes):
        self.data = bytes(data)

    def decode(self) -> str:
        """
        Extract the message text.

        Returns:
            Text between the length prefix and the end pattern

        Raises:
            NoStartPattern, InvalidTimestamp, InvalidPrefix, NoEndPattern
        """
        reader = ByteReader(self.data)

        start = reader.find(self.START_PATTERN)
        if start == -1:
            raise NoStartPattern()
        reader.seek(start + len(self.START_PATTERN))

        self._read_stamp(reader)

        text_start = reader.find(self.TEXT_PATTERN)
        if text_start == -1:
            raise NoStartPattern()
        reader.seek(text_start + len(self.TEXT_PATTERN))

        length = self._read_prefix(reader)
        payload_start = reader.position
        payload = self._find_payload(payload_start, length)

        logger.debug(f"Legacy decoder recovered {len(payload)} bytes at offset {payload_start}")
        try:
            return payload.decode('utf-8')
        except UnicodeDecodeError as e:
            logger.debug(f"Legacy payload is not UTF-8: {e}")
            raise InvalidPrefix() from e

    def _read_stamp(self, reader: ByteReader) -> int:
        try:
            marker = reader.peek()
            if marker == I_16:
                reader.skip()
                stamp = reader.read_i16()
            elif marker == I_32:
                reader.skip()
                stamp = reader.read_i32()
            else:
                stamp = reader.read_i8()
        except TruncatedInput:
            raise InvalidTimestamp()

        if not self.MIN_STAMP <= stamp <= self.MAX_STAMP:
            raise InvalidTimestamp()
        return stamp

    def _read_prefix(self, reader: ByteReader) -> int:
        try:
            marker = reader.read_u8()
            if marker < 0x80:
                return marker
            if marker == I_16:
                return reader.read_u16()
        except TruncatedInput:
            raise InvalidPrefix()
        raise InvalidPrefix()

    def _find_payload(self, payload_start: int, length: int) -> bytes:
        # The end pattern may also occur inside a multi-byte character, so
        # accept only the occurrence that agrees with the declared length.
        end = self.data.find(self.END_PATTERN, payload_start)
        if end == -1:
            raise NoEndPattern()
        while end != -1:
            if end - payload_start == length:
                return self.data[payload_start:end]
            end = self.data.find(self.END_PATTERN, end + 1)
        raise InvalidPrefix()


def decode_legacy(data: bytes) -> str:
    """Recover unstyled text from an archive buffer."""
    return LegacyBodyDecoder(data).decode()
