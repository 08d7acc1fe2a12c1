"""Test configuration ensuring the project root and test helpers are importable."""

import sqlite3
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
TESTS = ROOT / "tests"

for path in (str(ROOT), str(TESTS)):
    if path not in sys.path:
        sys.path.insert(0, path)


# A one-part message "Test" as written by Messages.app
GOLDEN_TEST_HEX = (
    "040b73747265616d747970656481e803"
    "840140"
    "84848412" + b"NSAttributedString".hex() + "00"
    "848408" + b"NSObject".hex() + "0085"
    "92848484" + "08" + b"NSString".hex() + "0194"
    "84012b04" + b"Test".hex() + "86"
    "840269490104"
    "928484840c" + b"NSDictionary".hex() + "0094"
    "84016901"
    "928496961d" + b"__kIMMessagePartAttributeName".hex() + "86"
    "92848484" + "08" + b"NSNumber".hex() + "00"
    "848407" + b"NSValue".hex() + "0094"
    "84012a84999900" + "86"
    "8686"
)


@pytest.fixture
def golden_body() -> bytes:
    return bytes.fromhex(GOLDEN_TEST_HEX)


FULL_SCHEMA = """
CREATE TABLE message (
    ROWID INTEGER PRIMARY KEY AUTOINCREMENT,
    guid TEXT UNIQUE NOT NULL,
    text TEXT,
    service TEXT,
    handle_id INTEGER DEFAULT 0,
    date INTEGER,
    date_read INTEGER,
    date_delivered INTEGER,
    date_edited INTEGER DEFAULT 0,
    is_from_me INTEGER DEFAULT 0,
    is_read INTEGER DEFAULT 0,
    cache_has_attachments INTEGER DEFAULT 0,
    balloon_bundle_id TEXT,
    associated_message_guid TEXT,
    associated_message_type INTEGER DEFAULT 0,
    expressive_send_style_id TEXT,
    group_title TEXT,
    group_action_type INTEGER DEFAULT 0,
    thread_originator_guid TEXT,
    attributedBody BLOB,
    message_summary_info BLOB
);
CREATE TABLE chat_message_join (chat_id INTEGER, message_id INTEGER, message_date INTEGER DEFAULT 0);
"""

MINIMAL_SCHEMA = """
CREATE TABLE message (
    ROWID INTEGER PRIMARY KEY AUTOINCREMENT,
    guid TEXT UNIQUE NOT NULL,
    text TEXT,
    service TEXT,
    handle_id INTEGER DEFAULT 0,
    date INTEGER,
    date_read INTEGER,
    date_delivered INTEGER,
    is_from_me INTEGER DEFAULT 0,
    attributedBody BLOB
);
"""


def make_chat_db(path: Path, rows, full: bool = True) -> Path:
    """Create a chat.db with the given message rows (dicts of column values)."""
    conn = sqlite3.connect(path)
    try:
        conn.executescript(FULL_SCHEMA if full else MINIMAL_SCHEMA)
        for row in rows:
            columns = ", ".join(row)
            marks = ", ".join("?" for _ in row)
            cursor = conn.execute(f"INSERT INTO message ({columns}) VALUES ({marks})", list(row.values()))
            if full:
                conn.execute(
                    "INSERT INTO chat_message_join (chat_id, message_id) VALUES (1, ?)",
                    (cursor.lastrowid,),
                )
        conn.commit()
    finally:
        conn.close()
    return path


@pytest.fixture
def chat_rows(golden_body):
    from archive_builder import BOLD, PART, attributed_body

    return [
        {
            "guid": "A-1", "text": "Test", "service": "iMessage", "handle_id": 3,
            "date": 700_000_000_000_000_000, "is_from_me": 1, "attributedBody": golden_body,
        },
        {
            "guid": "A-2", "text": None, "service": "iMessage", "handle_id": 3,
            "date": 700_000_100_000_000_000,
            "attributedBody": attributed_body("Bold rest", [
                (1, 4, [(PART, 0), (BOLD, 1)]), (2, 5, [(PART, 0)]),
            ]),
        },
        {
            "guid": "A-3", "text": None, "service": "SMS", "handle_id": 4,
            "date": 700_000_200_000_000_000, "attributedBody": b"broken",
        },
    ]


@pytest.fixture
def chat_db(tmp_path, chat_rows) -> Path:
    return make_chat_db(tmp_path / "chat.db", chat_rows)
