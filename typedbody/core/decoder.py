"""
Message body decoding with fallback.

Tries the typedstream decoder first and falls back to the legacy pattern
decoder. Malformed input never raises out of decode_body(); the outcome is
reported through BodyDecodeResult.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .errors import (
    BodyDecodeError, LegacyPatternError, NoTextError, NotThisFormat, TypedStreamError,
)
from .models import DecodedNode
from .reconstruct import reconstruct
from .text_effects import RichText
from .typedstream import decode_typedstream, first_string
from ..recovery.legacy import decode_legacy

logger = logging.getLogger(__name__)


class DecodeStatus(Enum):
    TYPED = "typed"
    LEGACY = "legacy"
    NO_TEXT = "no_text"


@dataclass
class BodyDecodeResult:
    """Outcome of decoding one message body."""
    status: DecodeStatus
    text: Optional[str] = None
    nodes: List[DecodedNode] = field(default_factory=list)
    typed_error: Optional[BodyDecodeError] = None
    legacy_error: Optional[BodyDecodeError] = None

    @property
    def ok(self) -> bool:
        return self.status != DecodeStatus.NO_TEXT

    @property
    def used_fallback(self) -> bool:
        return self.status == DecodeStatus.LEGACY

    def require_text(self) -> str:
        """
        Get the decoded text.

        Raises:
            NoTextError: neither decoder produced text
        """
        if self.text is None:
            raise NoTextError(
                f"No text recovered (typed: {self.typed_error}; legacy: {self.legacy_error})"
            )
        return self.text


def decode_body(blob: bytes) -> BodyDecodeResult:
    """
    Decode a message body archive.

    Args:
        blob: Raw attributedBody bytes

    Returns:
        BodyDecodeResult tagged TYPED, LEGACY or NO_TEXT
    """
    typed_error: Optional[BodyDecodeError] = None
    try:
        nodes = decode_typedstream(blob)
        text = first_string(nodes)
        if text is not None:
            return BodyDecodeResult(DecodeStatus.TYPED, text, nodes)
        typed_error = NoTextError("Archive contains no string object")
    except NotThisFormat as e:
        logger.debug(f"Not a typedstream archive: {e}")
        typed_error = e
    except TypedStreamError as e:
        logger.warning(f"Typedstream decode failed, trying legacy decoder: {e}")
        typed_error = e

    try:
        text = decode_legacy(blob)
    except LegacyPatternError as e:
        logger.debug(f"Legacy decoder failed: {e}")
        return BodyDecodeResult(DecodeStatus.NO_TEXT, typed_error=typed_error, legacy_error=e)

    return BodyDecodeResult(DecodeStatus.LEGACY, text, typed_error=typed_error)


def decode_rich_text(blob: bytes) -> RichText:
    """
    Decode a body and reconstruct its attributed runs.

    Raises:
        NoTextError: no decoder recovered text
        ReconstructionError: attribute ranges exceed the text
    """
    result = decode_body(blob)
    return reconstruct(result.require_text(), result.nodes)
