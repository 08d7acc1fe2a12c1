"""Rich text data structures: effects, attributed runs and placeholders."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, List, Optional, Tuple

ATTACHMENT_CHAR = "\ufffc"
APP_CHAR = "\ufffd"


class EffectKind(Enum):
    PLAIN = "plain"
    BOLD = "bold"
    ITALIC = "italic"
    UNDERLINE = "underline"
    STRIKETHROUGH = "strikethrough"
    MENTION = "mention"
    LINK = "link"
    ONE_TIME_CODE = "one_time_code"
    UNIT_CONVERSION = "unit_conversion"
    ANIMATED = "animated"
    WRITING_DIRECTION = "writing_direction"
    UNKNOWN = "unknown"


class Animation(Enum):
    """Animated text effects, keyed by the number stored in the archive."""
    RIPPLE = 4
    BIG = 5
    BLOOM = 6
    NOD = 8
    SHAKE = 9
    JITTER = 10
    SMALL = 11
    EXPLODE = 12
    UNKNOWN = -1

    @classmethod
    def from_id(cls, value) -> "Animation":
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            return cls.UNKNOWN


class Unit(Enum):
    CURRENCY = "currency"
    DISTANCE = "distance"
    TEMPERATURE = "temperature"
    TIMEZONE = "timezone"
    VOLUME = "volume"
    WEIGHT = "weight"


class PlaceholderKind(Enum):
    ATTACHMENT = "attachment"
    APP = "app"


@dataclass(frozen=True)
class Effect:
    """A formatting or semantic effect; value carries its payload."""
    kind: EffectKind
    value: Any = None

    def to_json(self):
        if self.kind == EffectKind.PLAIN:
            return {"kind": self.kind.value}
        value = self.value
        if isinstance(value, Enum):
            value = value.name.lower()
        elif isinstance(value, tuple):
            value = list(value)
        return {"kind": self.kind.value, "value": value}


PLAIN = Effect(EffectKind.PLAIN)


@dataclass(frozen=True)
class AttributedRun:
    """Half-open range [start, end) in UTF-16 code units tagged with one effect."""
    start: int
    end: int
    effect: Effect = PLAIN
    part: Optional[int] = None

    @property
    def length(self) -> int:
        return self.end - self.start

    def to_json(self) -> dict:
        return {"start": self.start, "end": self.end, "effect": self.effect.to_json(), "part": self.part}


@dataclass(frozen=True)
class Placeholder:
    """Position of an attachment or app slot in the plain text."""
    position: int
    kind: PlaceholderKind
    utf16_offset: int = 0
    attachment_guid: Optional[str] = None

    def to_json(self) -> dict:
        return {
            "position": self.position,
            "utf16_offset": self.utf16_offset,
            "kind": self.kind.value,
            "attachment_guid": self.attachment_guid,
        }


def utf16_len(text: str) -> int:
    return len(text.encode('utf-16-le')) // 2


def utf16_slice(text: str, start: int, end: int) -> str:
    """Slice text by UTF-16 code unit offsets."""
    encoded = text.encode('utf-16-le')
    return encoded[start * 2:end * 2].decode('utf-16-le', errors='replace')


def utf16_offsets(text: str) -> List[int]:
    """UTF-16 offset of every character, plus the total length at the end."""
    offsets = []
    offset = 0
    for ch in text:
        offsets.append(offset)
        offset += 2 if ord(ch) > 0xFFFF else 1
    offsets.append(offset)
    return offsets


def find_placeholders(text: str) -> List[Placeholder]:
    """Locate attachment (U+FFFC) and app (U+FFFD) placeholder characters."""
    placeholders = []
    offsets = utf16_offsets(text)
    for position, ch in enumerate(text):
        if ch == ATTACHMENT_CHAR:
            placeholders.append(Placeholder(position, PlaceholderKind.ATTACHMENT, offsets[position]))
        elif ch == APP_CHAR:
            placeholders.append(Placeholder(position, PlaceholderKind.APP, offsets[position]))
    return placeholders


@dataclass
class RichText:
    """Plain text plus its attributed runs and placeholders."""
    text: str
    runs: List[AttributedRun] = field(default_factory=list)
    placeholders: List[Placeholder] = field(default_factory=list)

    @property
    def utf16_length(self) -> int:
        return utf16_len(self.text)

    def text_of(self, run: AttributedRun) -> str:
        return utf16_slice(self.text, run.start, run.end)

    def segments(self) -> Iterator[Tuple[int, int, List[Effect]]]:
        """Distinct ranges in order, each with every effect applied to it."""
        grouped = {}
        for run in self.runs:
            grouped.setdefault((run.start, run.end), []).append(run.effect)
        for (start, end) in sorted(grouped):
            yield start, end, grouped[(start, end)]

    def to_json(self) -> dict:
        return {
            "text": self.text,
            "runs": [r.to_json() for r in self.runs],
            "placeholders": [p.to_json() for p in self.placeholders],
        }
