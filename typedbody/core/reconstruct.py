"""
Rebuild attributed text from decoded typedstream nodes.

An archived NSAttributedString body holds its string object followed by
range records. Each record is (attribute index, length) in UTF-16 code
units. The first time an index appears the attribute dictionary follows
the record; later records with the same index reuse it.
"""

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .errors import ReconstructionError
from .models import ArchivedObject, DecodedNode, ValueRun
from .text_effects import (
    AttributedRun, Animation, Effect, EffectKind, PLAIN, PlaceholderKind, RichText, Unit,
    find_placeholders, utf16_len,
)

logger = logging.getLogger(__name__)

ATTRIBUTED_STRING_CLASSES = ("NSAttributedString", "NSMutableAttributedString")
DICTIONARY_CLASSES = ("NSDictionary", "NSMutableDictionary")
URL_CLASSES = ("NSURL",)

PART_KEY = "__kIMMessagePartAttributeName"
FILE_TRANSFER_KEY = "__kIMFileTransferGUIDAttributeName"
MENTION_KEY = "__kIMMentionConfirmedMention"
LINK_KEY = "__kIMLinkAttributeName"
ONE_TIME_CODE_KEY = "__kIMOneTimeCodeAttributeName"
TEXT_EFFECT_KEY = "__kIMTextEffectAttributeName"
WRITING_DIRECTION_KEY = "__kIMBaseWritingDirectionAttributeName"

STYLE_KEYS = {
    "__kIMTextBoldAttributeName": EffectKind.BOLD,
    "__kIMTextItalicAttributeName": EffectKind.ITALIC,
    "__kIMTextUnderlineAttributeName": EffectKind.UNDERLINE,
    "__kIMTextStrikethroughAttributeName": EffectKind.STRIKETHROUGH,
}

UNIT_KEYS = {
    "__kIMCalendarEventAttributeName": Unit.TIMEZONE,
}

# Keys that describe the range without being a text effect
METADATA_KEYS = {
    PART_KEY,
    FILE_TRANSFER_KEY,
    "__kIMFilenameAttributeName",
    "__kIMInlineMediaWidthAttributeName",
    "__kIMInlineMediaHeightAttributeName",
    "__kIMDataDetectedAttributeName",
}

NATURAL_WRITING_DIRECTION = -1


@dataclass
class AttributeSet:
    """Effects and metadata decoded from one attribute dictionary."""
    effects: List[Effect] = field(default_factory=list)
    part: Optional[int] = None
    attachment_guid: Optional[str] = None


EMPTY_ATTRIBUTES = AttributeSet()


def _plain_value(obj: Optional[ArchivedObject], _seen=None):
    """Best-effort JSON-friendly value of an archived object."""
    if obj is None:
        return None
    seen = _seen if _seen is not None else set()
    if id(obj) in seen:
        return obj.class_name
    seen.add(id(obj))
    text = obj.string_value()
    if text is not None:
        return text
    number = obj.number_value()
    if number is not None:
        return number
    data = obj.bytes_value()
    if data is not None:
        return data.hex()
    for child in obj.children():
        value = _plain_value(child, seen)
        if value is not None:
            return value
    return obj.class_name


class RichTextReconstructor:
    """Walks decoded nodes with a UTF-16 cursor to produce attributed runs."""

    def __init__(self, text: str, nodes: List[DecodedNode]):
        """
        Initialize reconstructor.

        Args:
            text: Plain message text recovered by the decoder
            nodes: Node list from the typedstream decoder (may be empty)
        """
        self.text = text
        self.nodes = nodes

    def reconstruct(self) -> RichText:
        """
        Build the rich text.

        Returns:
            RichText whose runs cover the whole text

        Raises:
            ReconstructionError: a range runs past the end of the text
        """
        text_length = utf16_len(self.text)
        runs: List[AttributedRun] = []
        ranges: List[Tuple[int, int, AttributeSet]] = []

        cursor = 0
        for length, attributes in self._range_records():
            end = cursor + length
            if end > text_length:
                raise ReconstructionError(
                    f"Attribute range [{cursor}, {end}) exceeds text length {text_length}"
                )
            if length > 0:
                ranges.append((cursor, end, attributes))
                effects = attributes.effects or [PLAIN]
                for effect in effects:
                    runs.append(AttributedRun(cursor, end, effect, attributes.part))
            cursor = end

        if cursor < text_length:
            runs.append(AttributedRun(cursor, text_length, PLAIN))

        placeholders = []
        for placeholder in find_placeholders(self.text):
            if placeholder.kind == PlaceholderKind.ATTACHMENT:
                guid = self._guid_at(ranges, placeholder.utf16_offset)
                if guid:
                    placeholder = dataclasses.replace(placeholder, attachment_guid=guid)
            placeholders.append(placeholder)

        return RichText(self.text, runs, placeholders)

    def _range_records(self):
        root = self._attributed_root()
        if root is None:
            return

        attribute_sets: Dict[Optional[int], AttributeSet] = {}
        fields = root.fields
        i = 0
        while i < len(fields):
            node = fields[i]
            record = self._as_range_record(node)
            if record is None:
                if not (i == 0 and isinstance(node, ArchivedObject)):
                    logger.debug(f"Skipping unrecognized node {node!r} in attributed string body")
                i += 1
                continue

            index, length = record
            following = fields[i + 1] if i + 1 < len(fields) else None
            if isinstance(following, ArchivedObject) and following.is_kind_of(*DICTIONARY_CLASSES):
                attributes = self._read_attributes(following)
                attribute_sets[index] = attributes
                i += 2
            else:
                attributes = attribute_sets.get(index, EMPTY_ATTRIBUTES)
                i += 1

            yield length, attributes

    def _attributed_root(self) -> Optional[ArchivedObject]:
        for node in self.nodes:
            if isinstance(node, ArchivedObject) and node.is_kind_of(*ATTRIBUTED_STRING_CLASSES):
                return node
        return None

    @staticmethod
    def _as_range_record(node: DecodedNode) -> Optional[Tuple[Optional[int], int]]:
        if not isinstance(node, ValueRun) or not node.is_integer_record:
            return None
        values = node.integers()
        if len(values) == 2 and values[1] >= 0:
            return values[0], values[1]
        if len(values) == 1 and values[0] >= 0:
            return None, values[0]
        return None

    def _read_attributes(self, dictionary: ArchivedObject) -> AttributeSet:
        attributes = AttributeSet()
        children = dictionary.children()
        for key_obj, value_obj in zip(children[0::2], children[1::2]):
            key = key_obj.string_value()
            if key is None:
                logger.debug(f"Skipping attribute with non-string key {key_obj!r}")
                continue
            self._apply_attribute(key, value_obj, attributes)
        return attributes

    def _apply_attribute(self, key: str, value: ArchivedObject, attributes: AttributeSet):
        effects = attributes.effects

        if key in STYLE_KEYS:
            number = value.number_value()
            if number is None or number != 0:
                effects.append(Effect(STYLE_KEYS[key]))
        elif key == MENTION_KEY:
            effects.append(Effect(EffectKind.MENTION, value.string_value()))
        elif key == LINK_KEY:
            effects.append(Effect(EffectKind.LINK, self._url_of(value)))
        elif key == ONE_TIME_CODE_KEY:
            effects.append(Effect(EffectKind.ONE_TIME_CODE))
        elif key in UNIT_KEYS:
            effects.append(Effect(EffectKind.UNIT_CONVERSION, UNIT_KEYS[key]))
        elif key == TEXT_EFFECT_KEY:
            effects.append(Effect(EffectKind.ANIMATED, Animation.from_id(value.number_value())))
        elif key == WRITING_DIRECTION_KEY:
            direction = value.number_value()
            if direction is not None and direction != NATURAL_WRITING_DIRECTION:
                effects.append(Effect(EffectKind.WRITING_DIRECTION, int(direction)))
        elif key == PART_KEY:
            number = value.number_value()
            if number is not None:
                attributes.part = int(number)
        elif key == FILE_TRANSFER_KEY:
            attributes.attachment_guid = value.string_value()
        elif key in METADATA_KEYS:
            pass
        else:
            effects.append(Effect(EffectKind.UNKNOWN, (key, _plain_value(value))))

    @staticmethod
    def _url_of(value: ArchivedObject) -> Optional[str]:
        if value.is_kind_of(*URL_CLASSES):
            for child in value.children():
                url = child.string_value()
                if url is not None:
                    return url
        return value.string_value()

    @staticmethod
    def _guid_at(ranges, offset: int) -> Optional[str]:
        for start, end, attributes in ranges:
            if start <= offset < end and attributes.attachment_guid:
                return attributes.attachment_guid
        return None


def reconstruct(text: str, nodes: List[DecodedNode]) -> RichText:
    """Reconstruct attributed runs and placeholders for decoded text."""
    return RichTextReconstructor(text, nodes).reconstruct()
