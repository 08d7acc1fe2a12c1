"""Core components for decoding iMessage bodies."""

from .chat_reader import ChatDBReader, ChatDBInfo
from .components import BubbleComponent, ComponentKind, body_components, legacy_components
from .decoder import BodyDecodeResult, DecodeStatus, decode_body, decode_rich_text
from .edited import EditedMessage, EditedMessagePart, EditStatus
from .message import Message
from .reconstruct import reconstruct
from .text_effects import AttributedRun, Effect, EffectKind, Placeholder, PlaceholderKind, RichText
from .typedstream import TypedStreamDecoder, decode_typedstream

__all__ = [
    "ChatDBReader", "ChatDBInfo",
    "BubbleComponent", "ComponentKind", "body_components", "legacy_components",
    "BodyDecodeResult", "DecodeStatus", "decode_body", "decode_rich_text",
    "EditedMessage", "EditedMessagePart", "EditStatus",
    "Message", "reconstruct",
    "AttributedRun", "Effect", "EffectKind", "Placeholder", "PlaceholderKind", "RichText",
    "TypedStreamDecoder", "decode_typedstream",
]
