"""iMessage data models."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from .components import BubbleComponent, ComponentKind, body_components, legacy_components
from .dates import apple_time_to_datetime
from .decoder import BodyDecodeResult, DecodeStatus, decode_body
from .edited import EditedMessage, EditedMessagePart, EditStatus
from .errors import NoTextError
from .reconstruct import reconstruct
from .text_effects import RichText

logger = logging.getLogger(__name__)

# associated_message_type values: 2000-2006 added, 3000-3006 removed
TAPBACK_TYPES = frozenset(range(2000, 2007)) | frozenset(range(3000, 3007))
STICKER_TYPES = frozenset({1000, 2007, 3007})


class Expressive(Enum):
    """Send effect chosen for a message."""
    NONE = "none"
    # Bubble effects
    GENTLE = "gentle"
    SLAM = "slam"
    LOUD = "loud"
    INVISIBLE_INK = "invisible_ink"
    # Screen effects
    CONFETTI = "confetti"
    ECHO = "echo"
    FIREWORKS = "fireworks"
    BALLOONS = "balloons"
    HEART = "heart"
    LASERS = "lasers"
    SHOOTING_STAR = "shooting_star"
    SPARKLES = "sparkles"
    SPOTLIGHT = "spotlight"
    UNKNOWN = "unknown"


EXPRESSIVE_STYLES = {
    "com.apple.MobileSMS.expressivesend.gentle": Expressive.GENTLE,
    "com.apple.MobileSMS.expressivesend.impact": Expressive.SLAM,
    "com.apple.MobileSMS.expressivesend.loud": Expressive.LOUD,
    "com.apple.MobileSMS.expressivesend.invisibleink": Expressive.INVISIBLE_INK,
    "com.apple.messages.effect.CKConfettiEffect": Expressive.CONFETTI,
    "com.apple.messages.effect.CKEchoEffect": Expressive.ECHO,
    "com.apple.messages.effect.CKFireworksEffect": Expressive.FIREWORKS,
    "com.apple.messages.effect.CKHappyBirthdayEffect": Expressive.BALLOONS,
    "com.apple.messages.effect.CKHeartEffect": Expressive.HEART,
    "com.apple.messages.effect.CKLasersEffect": Expressive.LASERS,
    "com.apple.messages.effect.CKShootingStarEffect": Expressive.SHOOTING_STAR,
    "com.apple.messages.effect.CKSparklesEffect": Expressive.SPARKLES,
    "com.apple.messages.effect.CKSpotlightEffect": Expressive.SPOTLIGHT,
}


@dataclass
class Message:
    """One row of the message table."""
    rowid: int
    guid: str = ""
    text: Optional[str] = None
    service: Optional[str] = None
    handle_id: int = 0
    date: int = 0
    date_read: int = 0
    date_delivered: int = 0
    date_edited: int = 0
    is_from_me: bool = False
    is_read: bool = False
    cache_has_attachments: bool = False
    balloon_bundle_id: Optional[str] = None
    associated_message_guid: Optional[str] = None
    associated_message_type: int = 0
    expressive_send_style_id: Optional[str] = None
    group_title: Optional[str] = None
    group_action_type: int = 0
    thread_originator_guid: Optional[str] = None
    attributed_body: Optional[bytes] = None
    message_summary_info: Optional[bytes] = None
    chat_id: Optional[int] = None

    # Filled in by generate_text()
    body_result: Optional[BodyDecodeResult] = field(default=None, repr=False)
    decode_errors: List[str] = field(default_factory=list)

    @property
    def sent_at(self) -> Optional[datetime]:
        return apple_time_to_datetime(self.date)

    @property
    def read_at(self) -> Optional[datetime]:
        return apple_time_to_datetime(self.date_read)

    @property
    def delivered_at(self) -> Optional[datetime]:
        return apple_time_to_datetime(self.date_delivered)

    @property
    def edited_at(self) -> Optional[datetime]:
        return apple_time_to_datetime(self.date_edited)

    @property
    def is_app(self) -> bool:
        return bool(self.balloon_bundle_id)

    @property
    def is_edited(self) -> bool:
        return bool(self.date_edited) and self.message_summary_info is not None

    @property
    def is_reply(self) -> bool:
        return self.thread_originator_guid is not None

    @property
    def is_tapback(self) -> bool:
        """Reaction to another message, including stickers placed on one."""
        if self.associated_message_type in TAPBACK_TYPES:
            return True
        return self.associated_message_type in STICKER_TYPES and self.associated_message_guid is not None

    @property
    def expressive(self) -> Expressive:
        if not self.expressive_send_style_id:
            return Expressive.NONE
        return EXPRESSIVE_STYLES.get(self.expressive_send_style_id, Expressive.UNKNOWN)

    def is_fully_unsent(self) -> bool:
        edited = self.edited_parts()
        return edited is not None and bool(edited.parts) and \
            all(part.status == EditStatus.UNSENT for part in edited.parts)

    def is_announcement(self) -> bool:
        """Group change notice, or a message unsent in full."""
        return self.group_title is not None or self.group_action_type != 0 or self.is_fully_unsent()

    def generate_text(self) -> str:
        """
        Populate text from the attributed body when possible.

        The archive wins over the text column, which older rows or partially
        written rows may be missing.

        Returns:
            The message text

        Raises:
            NoTextError: neither the archive nor the text column has text
        """
        if self.attributed_body:
            self.body_result = decode_body(self.attributed_body)
            if self.body_result.ok:
                self.text = self.body_result.text
                return self.text
            self.decode_errors.append(str(self.body_result.typed_error))
            self.decode_errors.append(str(self.body_result.legacy_error))
            logger.warning(f"Could not decode body of message {self.guid or self.rowid}")

        if self.text is None:
            raise NoTextError(f"Message {self.guid or self.rowid} has no text")
        return self.text

    def rich_text(self) -> RichText:
        """Body text with attributed runs and placeholders."""
        if self.body_result is None:
            self.generate_text()
        if self.body_result is not None and self.body_result.status == DecodeStatus.TYPED:
            return reconstruct(self.text, self.body_result.nodes)
        return reconstruct(self.text or "", [])

    def edited_parts(self) -> Optional[EditedMessage]:
        """Edit history, or None when the message was never edited or unsent."""
        if not self.message_summary_info:
            return None
        return EditedMessage.from_payload(self.message_summary_info)

    def body(self) -> List[BubbleComponent]:
        """
        Bubbles for this message.

        Unsent parts are replaced by RETRACTED components.
        """
        if self.body_result is None and (self.attributed_body or self.text is not None):
            try:
                self.generate_text()
            except NoTextError as e:
                logger.debug(f"Rendering empty body: {e}")

        if self.body_result is not None and self.body_result.status == DecodeStatus.TYPED:
            components = body_components(self.rich_text(), self.is_app)
        else:
            components = legacy_components(self.text or "", self.is_app)

        edited = self.edited_parts()
        if edited is None:
            return components

        result = []
        for position, component in enumerate(components):
            part_index = _part_of(component, position)
            if edited.is_unsent(part_index):
                result.append(BubbleComponent(ComponentKind.RETRACTED))
            else:
                result.append(component)
        # Parts unsent with nothing left in the body
        for index in range(len(components), len(edited.parts)):
            if edited.is_unsent(index):
                result.append(BubbleComponent(ComponentKind.RETRACTED))
        return result

    def edit_for(self, part_index: int) -> Optional[EditedMessagePart]:
        edited = self.edited_parts()
        return edited.part(part_index) if edited else None

    def to_dict(self) -> dict:
        """Convert message to dictionary for serialization."""
        return {
            "rowid": self.rowid,
            "guid": self.guid,
            "text": self.text,
            "service": self.service,
            "handle_id": self.handle_id,
            "is_from_me": self.is_from_me,
            "date": self.sent_at.isoformat() if self.sent_at else None,
            "date_read": self.read_at.isoformat() if self.read_at else None,
            "date_delivered": self.delivered_at.isoformat() if self.delivered_at else None,
            "date_edited": self.edited_at.isoformat() if self.edited_at else None,
            "balloon_bundle_id": self.balloon_bundle_id,
            "is_reply": self.is_reply,
            "is_tapback": self.is_tapback,
            "expressive": self.expressive.value,
            "decode_status": self.body_result.status.value if self.body_result else None,
        }


def _part_of(component: BubbleComponent, position: int) -> int:
    for run in component.runs:
        if run.part is not None:
            return run.part
    return position
