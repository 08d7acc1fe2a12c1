"""Fallback decoding for bodies the typedstream decoder rejects."""

from .legacy import LegacyBodyDecoder, decode_legacy

__all__ = ["LegacyBodyDecoder", "decode_legacy"]
