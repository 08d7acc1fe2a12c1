"""Errors raised while decoding message bodies."""


class BodyDecodeError(Exception):
    """Base class for every message body decoding failure."""


class TypedStreamError(BodyDecodeError):
    """The typedstream archive could not be decoded."""


class NotThisFormat(TypedStreamError):
    """The buffer does not start with a supported typedstream header."""


class TruncatedInput(TypedStreamError):
    """A read would run past the end of the buffer."""

    def __init__(self, position: int, wanted: int, available: int):
        self.position = position
        self.wanted = wanted
        self.available = available
        super().__init__(
            f"Truncated input at offset {position}: wanted {wanted} bytes, {available} available"
        )


class BadBackreference(TypedStreamError):
    """A back-reference points outside its table or at the wrong kind of entry."""

    def __init__(self, table: str, index: int, size: int):
        self.table = table
        self.index = index
        self.size = size
        super().__init__(f"Bad {table} reference {index} (table holds {size} entries)")


class InvalidUtf8(TypedStreamError):
    """String bytes in the archive are not valid UTF-8."""


class MalformedArchive(TypedStreamError):
    """Unexpected marker, unsupported type encoding or runaway nesting."""


class LegacyPatternError(BodyDecodeError):
    """The legacy pattern decoder could not locate the message text."""


class NoStartPattern(LegacyPatternError):
    def __init__(self):
        super().__init__("No start pattern found!")


class NoEndPattern(LegacyPatternError):
    def __init__(self):
        super().__init__("No end pattern found!")


class InvalidPrefix(LegacyPatternError):
    def __init__(self):
        super().__init__("Prefix length is not standard!")


class InvalidTimestamp(LegacyPatternError):
    def __init__(self):
        super().__init__("Timestamp integer is not valid!")


class NoTextError(BodyDecodeError):
    """Neither decoder recovered any text for the message."""


class ReconstructionError(BodyDecodeError):
    """Attribute ranges run past the end of the decoded text."""


class EditedPayloadError(BodyDecodeError):
    """The edited-message property list is missing or malformed."""
