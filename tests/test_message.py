"""Tests for the Message model."""

import plistlib

import pytest

from archive_builder import FILE_TRANSFER, PART, attributed_body
from typedbody.core.components import ComponentKind
from typedbody.core.decoder import DecodeStatus
from typedbody.core.edited import EditStatus
from typedbody.core.errors import NoTextError
from typedbody.core.message import Expressive, Message
from typedbody.core.text_effects import AttributedRun, PLAIN


def test_archive_text_wins_over_column(golden_body) -> None:
    message = Message(rowid=1, text="stale", attributed_body=golden_body)
    assert message.generate_text() == "Test"
    assert message.text == "Test"
    assert message.body_result.status == DecodeStatus.TYPED


def test_falls_back_to_text_column() -> None:
    message = Message(rowid=2, guid="G", text="from column", attributed_body=b"broken")
    assert message.generate_text() == "from column"
    assert message.body_result.status == DecodeStatus.NO_TEXT
    assert len(message.decode_errors) == 2


def test_no_text_anywhere() -> None:
    with pytest.raises(NoTextError):
        Message(rowid=3, attributed_body=b"broken").generate_text()
    with pytest.raises(NoTextError):
        Message(rowid=4).generate_text()


def test_rich_text(golden_body) -> None:
    rich = Message(rowid=1, attributed_body=golden_body).rich_text()
    assert rich.runs == [AttributedRun(0, 4, PLAIN, 0)]

    plain = Message(rowid=2, text="column only").rich_text()
    assert plain.runs == [AttributedRun(0, 11, PLAIN)]


def test_body_components() -> None:
    blob = attributed_body("Look\ufffc", [
        (1, 4, [(PART, 0)]),
        (2, 1, [(PART, 1), (FILE_TRANSFER, "at_1_BEEF")]),
    ])
    components = Message(rowid=1, attributed_body=blob).body()
    assert [c.kind for c in components] == [ComponentKind.TEXT, ComponentKind.ATTACHMENT]
    assert components[1].attachment_guid == "at_1_BEEF"


def test_app_message_body(golden_body) -> None:
    message = Message(rowid=1, attributed_body=golden_body, balloon_bundle_id="com.apple.Handwriting")
    assert [c.kind for c in message.body()] == [ComponentKind.APP]


def test_unsent_parts_are_retracted() -> None:
    blob = attributed_body("Hi", [(1, 2, [(PART, 0)])])
    summary = plistlib.dumps({"rp": [1], "otr": {"0": {}, "1": {}}}, fmt=plistlib.FMT_BINARY)
    message = Message(rowid=1, attributed_body=blob, message_summary_info=summary, date_edited=1)

    assert message.is_edited
    assert [c.kind for c in message.body()] == [ComponentKind.TEXT, ComponentKind.RETRACTED]
    assert message.edit_for(1).status == EditStatus.UNSENT
    assert message.edit_for(0).status == EditStatus.ORIGINAL


def test_fully_unsent_message() -> None:
    summary = plistlib.dumps({"rp": [0]})
    message = Message(rowid=1, text="", message_summary_info=summary)
    assert [c.kind for c in message.body()] == [ComponentKind.RETRACTED]


def test_dates_and_dict(golden_body) -> None:
    message = Message(rowid=9, guid="G-9", attributed_body=golden_body, date=86_400, is_from_me=True)
    message.generate_text()
    data = message.to_dict()

    assert message.sent_at.isoformat() == "2001-01-02T00:00:00+00:00"
    assert message.read_at is None
    assert data["text"] == "Test"
    assert data["date"] == "2001-01-02T00:00:00+00:00"
    assert data["decode_status"] == "typed"
    assert data["is_from_me"] is True


@pytest.mark.parametrize("associated_type, associated_guid, expected", [
    (0, None, False),
    (2000, "p:0/X", True),
    (3006, "p:0/X", True),
    (1000, "p:0/X", True),
    (1000, None, False),
    (2008, "p:0/X", False),
])
def test_tapback_classification(associated_type, associated_guid, expected) -> None:
    message = Message(rowid=1, associated_message_type=associated_type,
                      associated_message_guid=associated_guid)
    assert message.is_tapback is expected


def test_reply_and_expressive() -> None:
    message = Message(rowid=1, thread_originator_guid="T-1",
                      expressive_send_style_id="com.apple.MobileSMS.expressivesend.impact")
    assert message.is_reply
    assert message.expressive == Expressive.SLAM
    assert message.to_dict()["expressive"] == "slam"

    plain = Message(rowid=2)
    assert not plain.is_reply
    assert plain.expressive == Expressive.NONE
    assert Message(rowid=3, expressive_send_style_id="com.example.new").expressive == Expressive.UNKNOWN


def test_announcements() -> None:
    assert Message(rowid=1, group_title="Team").is_announcement()
    assert Message(rowid=2, group_action_type=1).is_announcement()
    assert not Message(rowid=3, text="hi").is_announcement()

    unsent = Message(rowid=4, text="", message_summary_info=plistlib.dumps({"rp": [0]}))
    assert unsent.is_fully_unsent()
    assert unsent.is_announcement()

    partly = Message(rowid=5, text="", message_summary_info=plistlib.dumps({"rp": [1], "otr": {"0": {}, "1": {}}}))
    assert not partly.is_fully_unsent()
