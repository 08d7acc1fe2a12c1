"""SQLite reader for iMessage chat.db files."""

import logging
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

from .message import Message

logger = logging.getLogger(__name__)


@dataclass
class ChatDBInfo:
    """Information about a chat.db file."""
    file_path: str
    file_size: int
    is_valid: bool
    message_count: int = 0
    table_count: int = 0
    error_message: str = ""


class ChatDBReader:
    """
    Read-only reader for the iMessage chat.db SQLite database.

    The database is opened through a read-only URI so the Messages app's
    copy is never modified.
    """

    SQLITE_SIGNATURE = b'SQLite format 3\x00'

    FULL_QUERY = """
        SELECT m.ROWID, m.guid, m.text, m.service, m.handle_id,
               m.date, m.date_read, m.date_delivered, m.date_edited,
               m.is_from_me, m.is_read, m.cache_has_attachments,
               m.balloon_bundle_id, m.associated_message_guid, m.associated_message_type,
               m.expressive_send_style_id, m.group_title, m.group_action_type,
               m.thread_originator_guid, m.attributedBody,
               m.message_summary_info, c.chat_id
        FROM message m
        LEFT JOIN chat_message_join c ON c.message_id = m.ROWID
        ORDER BY m.date, m.ROWID
    """

    # Databases from older OS versions lack the edit and threading columns
    MINIMAL_QUERY = """
        SELECT m.ROWID, m.guid, m.text, m.service, m.handle_id,
               m.date, m.date_read, m.date_delivered,
               m.is_from_me, m.attributedBody
        FROM message m
        ORDER BY m.date, m.ROWID
    """

    def __init__(self, file_path: str):
        """
        Initialize chat.db reader.

        Args:
            file_path: Path to chat.db
        """
        self.file_path = Path(file_path)
        self._conn: Optional[sqlite3.Connection] = None

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def get_info(self) -> ChatDBInfo:
        """
        Get information about the database without fully opening it.

        Returns:
            ChatDBInfo with file details
        """
        if not self.file_path.exists():
            return ChatDBInfo(
                file_path=str(self.file_path),
                file_size=0,
                is_valid=False,
                error_message="File not found"
            )

        file_size = self.file_path.stat().st_size

        try:
            with open(self.file_path, 'rb') as f:
                signature = f.read(len(self.SQLITE_SIGNATURE))
        except OSError as e:
            return ChatDBInfo(str(self.file_path), file_size, False, error_message=str(e))

        if signature != self.SQLITE_SIGNATURE:
            return ChatDBInfo(
                file_path=str(self.file_path),
                file_size=file_size,
                is_valid=False,
                error_message="Invalid SQLite file signature"
            )

        info = ChatDBInfo(str(self.file_path), file_size, True)
        was_open = self.is_open
        try:
            self.open()
            info.table_count = len(self.get_table_names())
            info.message_count = self.get_message_count()
        except sqlite3.Error as e:
            info.is_valid = False
            info.error_message = str(e)
        finally:
            if not was_open:
                self.close()
        return info

    def open(self) -> bool:
        """
        Open the database for reading.

        Returns:
            True if successful

        Raises:
            sqlite3.Error: database cannot be opened
        """
        if self._conn is not None:
            return True

        try:
            self._conn = sqlite3.connect(f"file:{self.file_path}?mode=ro", uri=True)
            self._conn.row_factory = sqlite3.Row
            logger.info(f"Opened chat database: {self.file_path}")
            return True
        except sqlite3.Error as e:
            logger.error(f"Failed to open chat database: {e}")
            self._conn = None
            raise

    def close(self):
        """Close the database connection."""
        if self._conn is not None:
            try:
                self._conn.close()
            except sqlite3.Error as e:
                logger.warning(f"Error closing database: {e}")
            finally:
                self._conn = None

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("Database not open")
        return self._conn

    def get_table_names(self) -> list[str]:
        """Get list of all table names in the database."""
        rows = self._connection().execute(
            "SELECT name FROM sqlite_master WHERE type = 'table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
        )
        return [row[0] for row in rows]

    def get_message_count(self) -> int:
        try:
            return self._connection().execute("SELECT COUNT(*) FROM message").fetchone()[0]
        except sqlite3.OperationalError as e:
            logger.warning(f"Cannot count messages: {e}")
            return 0

    def iter_messages(self, limit: int = 0) -> Iterator[Message]:
        """
        Iterate over messages in date order.

        Args:
            limit: Maximum number of messages (0 = unlimited)

        Yields:
            Message objects; text is not decoded yet
        """
        conn = self._connection()
        try:
            cursor = conn.execute(self._limited(self.FULL_QUERY, limit))
        except sqlite3.OperationalError as e:
            logger.info(f"Full message query failed ({e}), using minimal column set")
            cursor = conn.execute(self._limited(self.MINIMAL_QUERY, limit))

        for row in cursor:
            yield self._row_to_message(row)

    @staticmethod
    def _limited(query: str, limit: int) -> str:
        if limit > 0:
            return f"{query.rstrip()} LIMIT {int(limit)}"
        return query

    @staticmethod
    def _row_to_message(row: sqlite3.Row) -> Message:
        columns = row.keys()

        def get(name, default=None):
            if name not in columns:
                return default
            value = row[name]
            return default if value is None else value

        return Message(
            rowid=row["ROWID"],
            guid=get("guid", ""),
            text=get("text"),
            service=get("service"),
            handle_id=get("handle_id", 0),
            date=get("date", 0),
            date_read=get("date_read", 0),
            date_delivered=get("date_delivered", 0),
            date_edited=get("date_edited", 0),
            is_from_me=bool(get("is_from_me", 0)),
            is_read=bool(get("is_read", 0)),
            cache_has_attachments=bool(get("cache_has_attachments", 0)),
            balloon_bundle_id=get("balloon_bundle_id"),
            associated_message_guid=get("associated_message_guid"),
            associated_message_type=get("associated_message_type", 0),
            expressive_send_style_id=get("expressive_send_style_id"),
            group_title=get("group_title"),
            group_action_type=get("group_action_type", 0),
            thread_originator_guid=get("thread_originator_guid"),
            attributed_body=get("attributedBody"),
            message_summary_info=get("message_summary_info"),
            chat_id=get("chat_id"),
        )
