"""JSON Lines exporter - one JSON document per message."""

import json
import logging
from typing import TextIO

from ..core.edited import EditedMessage
from ..core.message import Message
from .base import BaseExporter

logger = logging.getLogger(__name__)


class JSONExporter(BaseExporter):
    """
    Exports messages as JSON Lines.

    Each line holds the message metadata, its decoded text, and optionally
    the attributed runs, bubble components and edit history.
    """

    format_name = "JSON"
    file_extension = ".jsonl"

    def _export_message(self, message: Message, stream: TextIO):
        message.generate_text()
        record = message.to_dict()

        if self.options.include_runs:
            record["rich_text"] = message.rich_text().to_json()
            record["components"] = [c.to_json() for c in message.body()]

        if self.options.include_edits:
            edited = message.edited_parts()
            record["edits"] = self._edits_to_json(edited) if edited else None

        stream.write(json.dumps(record, ensure_ascii=False))
        stream.write("\n")
        logger.debug(f"Exported message {message.guid} as JSON")

    @staticmethod
    def _edits_to_json(edited: EditedMessage) -> list:
        return [
            {
                "status": part.status.value,
                "events": [
                    {
                        "date": event.date.isoformat() if event.date else None,
                        "text": event.text,
                    }
                    for event in part.events
                ],
            }
            for part in edited.parts
        ]
