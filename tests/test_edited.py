"""Tests for edited and unsent message history."""

import plistlib
from datetime import datetime, timezone

import pytest

from archive_builder import PART, attributed_body
from typedbody.core.dates import apple_time_to_datetime
from typedbody.core.decoder import DecodeStatus
from typedbody.core.edited import MAX_PART_INDEX, EditedMessage, EditStatus
from typedbody.core.errors import EditedPayloadError

EDIT_DATE = 700_000_000_000_000_000


def edit_payload(**overrides) -> dict:
    payload = {
        "ec": {
            "0": [
                {"d": EDIT_DATE, "t": attributed_body("First", [(1, 5, [(PART, 0)])])},
                {"d": EDIT_DATE + 10 ** 9, "t": attributed_body("Second", [(1, 6, [(PART, 0)])])},
            ],
        },
        "rp": [1],
        "otr": {"0": {"lo": 0, "le": 6}, "1": {"lo": 6, "le": 1}, "2": {"lo": 7, "le": 3}},
    }
    payload.update(overrides)
    return payload


def test_binary_plist_payload() -> None:
    edited = EditedMessage.from_payload(plistlib.dumps(edit_payload(), fmt=plistlib.FMT_BINARY))

    assert [p.status for p in edited.parts] == [
        EditStatus.EDITED, EditStatus.UNSENT, EditStatus.ORIGINAL,
    ]
    events = edited.parts[0].events
    assert [e.text for e in events] == ["First", "Second"]
    assert events[0].body.status == DecodeStatus.TYPED
    assert events[0].date == apple_time_to_datetime(EDIT_DATE)
    assert edited.is_unsent(1)
    assert not edited.is_unsent(5)


def test_xml_plist_and_dict_payloads() -> None:
    from_xml = EditedMessage.from_payload(plistlib.dumps(edit_payload()))
    from_dict = EditedMessage.from_payload(edit_payload())
    assert [p.status for p in from_xml.parts] == [p.status for p in from_dict.parts]


def test_unsent_without_parts_info() -> None:
    edited = EditedMessage.from_payload({"rp": [2]})
    assert [p.status for p in edited.parts] == [
        EditStatus.ORIGINAL, EditStatus.ORIGINAL, EditStatus.UNSENT,
    ]


def test_plist_dates_are_kept() -> None:
    when = datetime(2023, 5, 1, 12, 0)
    payload = edit_payload(ec={"0": [{"d": when, "t": attributed_body("x", [])}]})
    assert EditedMessage.from_payload(payload).parts[0].events[0].date == when


def test_undecodable_event_body_is_reported_not_raised() -> None:
    edited = EditedMessage.from_payload(edit_payload(ec={"0": [{"d": 0, "t": b"garbage"}]}))
    event = edited.parts[0].events[0]
    assert event.date is None
    assert event.body.status == DecodeStatus.NO_TEXT
    assert event.text is None


@pytest.mark.parametrize("payload", [
    b"not a plist",
    b"<?xml version='1.0'?><plist><dict><key>ec</key>",
    plistlib.dumps(["a", "list"]),
    {"rp": [4_000_000_000]},
    {"ec": {"4000000000": []}},
    {"ec": []},
    {"rp": ["x"]},
    {"rp": [-1]},
    {"ec": {"0": "history"}},
    {"ec": {"0": [{"d": 1}]}},
])
def test_malformed_payloads(payload) -> None:
    with pytest.raises(EditedPayloadError):
        EditedMessage.from_payload(payload)


def test_highest_part_index_is_accepted() -> None:
    edited = EditedMessage.from_payload({"rp": [MAX_PART_INDEX]})
    assert len(edited.parts) == MAX_PART_INDEX + 1
    assert edited.is_unsent(MAX_PART_INDEX)


def test_apple_time_conversion() -> None:
    epoch = datetime(2001, 1, 1, tzinfo=timezone.utc)
    assert apple_time_to_datetime(0) is None
    assert apple_time_to_datetime(None) is None
    assert apple_time_to_datetime(86_400) == epoch.replace(day=2)
    assert apple_time_to_datetime(86_400_000_000_000) == epoch.replace(day=2)
