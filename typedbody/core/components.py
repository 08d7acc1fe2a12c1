"""Split a message body into the bubbles shown for it."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .text_effects import (
    AttributedRun, PLAIN, PlaceholderKind, RichText, find_placeholders, utf16_len, utf16_offsets,
)


class ComponentKind(Enum):
    TEXT = "text"
    ATTACHMENT = "attachment"
    APP = "app"
    RETRACTED = "retracted"


@dataclass
class BubbleComponent:
    """
    One bubble of a message.

    TEXT components carry their own text with runs rebased to offset 0.
    ATTACHMENT components carry the attachment's sequential index within the
    message and, when known, its file transfer GUID.
    """
    kind: ComponentKind
    text: str = ""
    runs: List[AttributedRun] = field(default_factory=list)
    attachment_index: Optional[int] = None
    attachment_guid: Optional[str] = None

    def to_json(self) -> dict:
        data = {"kind": self.kind.value}
        if self.kind == ComponentKind.TEXT:
            data["text"] = self.text
            data["runs"] = [r.to_json() for r in self.runs]
        elif self.kind == ComponentKind.ATTACHMENT:
            data["attachment_index"] = self.attachment_index
            data["attachment_guid"] = self.attachment_guid
        return data


def _clip_runs(runs: List[AttributedRun], start: int, end: int) -> List[AttributedRun]:
    clipped = []
    for run in runs:
        lo = max(run.start, start)
        hi = min(run.end, end)
        if lo < hi:
            clipped.append(AttributedRun(lo - start, hi - start, run.effect, run.part))
    return clipped


def body_components(rich: RichText, is_app: bool = False) -> List[BubbleComponent]:
    """
    Split rich text at its placeholders.

    Args:
        rich: Reconstructed message body
        is_app: Message carries a balloon bundle id (app message)

    Returns:
        Components in display order
    """
    if is_app:
        return [BubbleComponent(ComponentKind.APP)]

    components: List[BubbleComponent] = []
    offsets = utf16_offsets(rich.text)
    segment_start = 0
    attachment_index = 0

    def add_text(start_pos: int, end_pos: int):
        text = rich.text[start_pos:end_pos]
        if not text.strip():
            return
        lo, hi = offsets[start_pos], offsets[end_pos]
        components.append(BubbleComponent(ComponentKind.TEXT, text, _clip_runs(rich.runs, lo, hi)))

    for placeholder in rich.placeholders:
        add_text(segment_start, placeholder.position)
        if placeholder.kind == PlaceholderKind.ATTACHMENT:
            components.append(BubbleComponent(
                ComponentKind.ATTACHMENT,
                attachment_index=attachment_index,
                attachment_guid=placeholder.attachment_guid,
            ))
            attachment_index += 1
        else:
            components.append(BubbleComponent(ComponentKind.APP))
        segment_start = placeholder.position + 1

    add_text(segment_start, len(rich.text))
    return components


def legacy_components(text: str, is_app: bool = False) -> List[BubbleComponent]:
    """Components for plain text recovered without attributes."""
    runs = [AttributedRun(0, utf16_len(text), PLAIN)] if text else []
    return body_components(RichText(text, runs, find_placeholders(text)), is_app)
