"""
Edited and unsent message parts.

When a message is edited or unsent, message_summary_info holds a property
list:

    ec   dict: part index (as string) -> list of {"d": date, "t": archive}
    rp   list of part indices that were unsent
    otr  dict keyed by part index; its size is the number of parts

Each "t" archive is an attributed body decoded like the message itself.
"""

import logging
import plistlib
from xml.parsers.expat import ExpatError
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Union

from .dates import apple_time_to_datetime
from .decoder import BodyDecodeResult, decode_body
from .errors import EditedPayloadError

logger = logging.getLogger(__name__)

# Highest part index accepted from a payload
MAX_PART_INDEX = 1024


class EditStatus(Enum):
    ORIGINAL = "original"
    EDITED = "edited"
    UNSENT = "unsent"


@dataclass
class EditedEvent:
    """One historical version of a message part."""
    date: Optional[datetime]
    body: BodyDecodeResult

    @property
    def text(self) -> Optional[str]:
        return self.body.text


@dataclass
class EditedMessagePart:
    status: EditStatus = EditStatus.ORIGINAL
    events: List[EditedEvent] = field(default_factory=list)


@dataclass
class EditedMessage:
    """Edit history for every part of one message."""
    parts: List[EditedMessagePart] = field(default_factory=list)

    def part(self, index: int) -> Optional[EditedMessagePart]:
        if 0 <= index < len(self.parts):
            return self.parts[index]
        return None

    def is_unsent(self, index: int) -> bool:
        part = self.part(index)
        return part is not None and part.status == EditStatus.UNSENT

    @classmethod
    def from_payload(cls, payload: Union[bytes, dict]) -> "EditedMessage":
        """
        Build edit history from a message_summary_info payload.

        Args:
            payload: Binary or XML plist bytes, or an already loaded dict

        Returns:
            EditedMessage with one entry per message part

        Raises:
            EditedPayloadError: payload is not a plist dict or has bad entries
        """
        if isinstance(payload, (bytes, bytearray)):
            try:
                payload = plistlib.loads(bytes(payload))
            except (plistlib.InvalidFileException, ValueError, ExpatError) as e:
                raise EditedPayloadError(f"Cannot parse edit payload: {e}") from e
        if not isinstance(payload, dict):
            raise EditedPayloadError(f"Edit payload is {type(payload).__name__}, expected dict")

        edits = payload.get("ec", {})
        unsent = payload.get("rp", [])
        parts_info = payload.get("otr", {})
        if not isinstance(edits, dict) or not isinstance(unsent, list):
            raise EditedPayloadError("Edit payload has malformed 'ec' or 'rp' entries")

        edited_indices = {_part_index(key) for key in edits}
        unsent_indices = {_part_index(key) for key in unsent}
        known = edited_indices | unsent_indices
        count = max(len(parts_info) if isinstance(parts_info, dict) else 0,
                    max(known) + 1 if known else 0)

        parts = [EditedMessagePart() for _ in range(count)]
        for key, history in edits.items():
            part = parts[_part_index(key)]
            part.status = EditStatus.EDITED
            part.events = _read_events(key, history)
        for index in unsent_indices:
            parts[index].status = EditStatus.UNSENT

        logger.debug(f"Edit payload: {count} parts, {len(edited_indices)} edited, {len(unsent_indices)} unsent")
        return cls(parts)


def _part_index(key) -> int:
    try:
        index = int(key)
    except (TypeError, ValueError) as e:
        raise EditedPayloadError(f"Invalid part index {key!r}") from e
    if not 0 <= index <= MAX_PART_INDEX:
        raise EditedPayloadError(f"Invalid part index {key!r}")
    return index


def _read_events(key, history) -> List[EditedEvent]:
    if not isinstance(history, list):
        raise EditedPayloadError(f"Edit history for part {key} is not a list")

    events = []
    for entry in history:
        if not isinstance(entry, dict) or not isinstance(entry.get("t"), bytes):
            raise EditedPayloadError(f"Malformed edit event for part {key}")
        date = entry.get("d")
        if isinstance(date, (int, float)):
            date = apple_time_to_datetime(date)
        elif not isinstance(date, datetime):
            date = None
        events.append(EditedEvent(
            date=date,
            body=decode_body(entry["t"]),
        ))
    return events
