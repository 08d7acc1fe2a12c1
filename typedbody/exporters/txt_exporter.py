"""Plain text transcript exporter."""

import logging
from typing import TextIO

from ..core.components import ComponentKind
from ..core.edited import EditStatus
from ..core.message import Message
from .base import BaseExporter

logger = logging.getLogger(__name__)

ATTACHMENT_MARKER = "[Attachment {index}]"
APP_MARKER = "[App]"
RETRACTED_MARKER = "[Unsent]"


class TXTExporter(BaseExporter):
    """
    Exports messages as a readable transcript.

    One block per message: a header line with date and sender, then one line
    per bubble. Attachments, app bubbles and unsent parts become markers.
    """

    format_name = "TXT"
    file_extension = ".txt"

    def _export_message(self, message: Message, stream: TextIO):
        message.generate_text()

        date = message.sent_at.strftime("%Y-%m-%d %H:%M:%S") if message.sent_at else "Unknown date"
        sender = "Me" if message.is_from_me else f"Handle {message.handle_id}"
        lines = [f"{date}  {sender}"]

        for component in message.body():
            lines.append(f"  {self._render(component)}")

        if self.options.include_edits:
            edited = message.edited_parts()
            if edited:
                for index, part in enumerate(edited.parts):
                    if part.status != EditStatus.EDITED:
                        continue
                    for event in part.events:
                        lines.append(f"  (part {index} edited: {event.text or ''})")

        stream.write("\n".join(lines) + "\n\n")
        logger.debug(f"Exported message {message.guid} as text")

    @staticmethod
    def _render(component) -> str:
        if component.kind == ComponentKind.TEXT:
            return component.text
        if component.kind == ComponentKind.ATTACHMENT:
            return ATTACHMENT_MARKER.format(index=component.attachment_index)
        if component.kind == ComponentKind.APP:
            return APP_MARKER
        return RETRACTED_MARKER
