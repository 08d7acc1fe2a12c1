"""Base exporter class for message export formats."""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Optional, Iterator, TextIO
from dataclasses import dataclass

from ..core.errors import BodyDecodeError
from ..core.message import Message

logger = logging.getLogger(__name__)


@dataclass
class ExportProgress:
    """Progress information for export operation."""
    total_messages: int
    exported_messages: int
    failed_messages: int
    current_message: Optional[str] = None
    is_complete: bool = False
    error: Optional[str] = None

    @property
    def progress_percent(self) -> float:
        if self.total_messages == 0:
            return 0.0
        return (self.exported_messages + self.failed_messages) / self.total_messages * 100


@dataclass
class ExportOptions:
    """Options for export operation."""
    output_path: str
    include_runs: bool = True  # Attributed runs and bubble components
    include_edits: bool = True  # Edit history of edited/unsent messages
    overwrite_existing: bool = False
    max_messages: int = 0  # 0 = unlimited


class BaseExporter(ABC):
    """
    Abstract base class for message exporters.

    Every format writes all messages to a single file; "-" writes to stdout.
    """

    format_name: str = "Unknown"
    file_extension: str = ""

    def __init__(self, options: ExportOptions, stream: Optional[TextIO] = None):
        """
        Initialize exporter.

        Args:
            options: Export configuration options
            stream: Write here instead of opening options.output_path
        """
        self.options = options
        self._stream = stream
        self._owns_stream = False
        self._progress = ExportProgress(0, 0, 0)
        self._progress_callback: Optional[Callable[[ExportProgress], None]] = None

    def set_progress_callback(self, callback: Callable[[ExportProgress], None]):
        """Set callback function for progress updates."""
        self._progress_callback = callback

    def _update_progress(self, message: Optional[str] = None, success: bool = True):
        """Update progress and notify callback."""
        if success:
            self._progress.exported_messages += 1
        else:
            self._progress.failed_messages += 1

        self._progress.current_message = message

        if self._progress_callback:
            self._progress_callback(self._progress)

    def export(self, messages: Iterator[Message], total_count: int = 0) -> ExportProgress:
        """
        Export messages to the configured format.

        Args:
            messages: Iterator of Message objects
            total_count: Total number of messages (for progress reporting)

        Returns:
            ExportProgress with final status
        """
        self._progress = ExportProgress(total_count, 0, 0)

        try:
            stream = self._prepare_output(Path(self.options.output_path))

            for message in messages:
                if self.options.max_messages > 0 and \
                   self._progress.exported_messages >= self.options.max_messages:
                    logger.info(f"Reached max message limit: {self.options.max_messages}")
                    break

                try:
                    self._export_message(message, stream)
                    self._update_progress(message.guid, success=True)
                except BodyDecodeError as e:
                    logger.warning(f"Failed to export message {message.guid or message.rowid}: {e}")
                    self._update_progress(message.guid, success=False)

        except OSError as e:
            logger.error(f"Export failed: {e}")
            self._progress.error = str(e)
        finally:
            self._finalize_output()

        self._progress.is_complete = True
        return self._progress

    def _prepare_output(self, output_path: Path) -> TextIO:
        """Open the output file unless a stream was supplied."""
        if self._stream is not None:
            return self._stream

        if output_path.is_dir():
            output_path = output_path / f"export{self.file_extension}"
        if output_path.exists() and not self.options.overwrite_existing:
            raise FileExistsError(f"Output file exists: {output_path}")
        output_path.parent.mkdir(parents=True, exist_ok=True)

        self._stream = open(output_path, 'w', encoding='utf-8')
        self._owns_stream = True
        return self._stream

    def _finalize_output(self):
        """Close the output file if this exporter opened it."""
        if self._owns_stream and self._stream is not None:
            self._stream.close()
            self._stream = None
            self._owns_stream = False

    @abstractmethod
    def _export_message(self, message: Message, stream: TextIO):
        """
        Export a single message.

        Args:
            message: Message to export
            stream: Open text output
        """
        pass

    @classmethod
    def get_format_info(cls) -> dict:
        """Get information about this export format."""
        return {
            "name": cls.format_name,
            "extension": cls.file_extension,
            "description": cls.__doc__ or ""
        }
