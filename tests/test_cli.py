"""Tests for the command line interface."""

import json

import pytest

import cli


def test_blob_json(tmp_path, golden_body, capsys) -> None:
    blob = tmp_path / "body.bin"
    blob.write_bytes(golden_body)

    assert cli.main(["--blob", str(blob)]) == 0
    document = json.loads(capsys.readouterr().out)
    assert document["status"] == "typed"
    assert document["rich_text"]["text"] == "Test"
    assert document["components"] == [
        {"kind": "text", "text": "Test",
         "runs": [{"start": 0, "end": 4, "effect": {"kind": "plain"}, "part": 0}]},
    ]


def test_blob_txt_with_fallback(tmp_path, golden_body, capsys) -> None:
    blob = tmp_path / "body.bin"
    blob.write_bytes(golden_body[:-20])

    assert cli.main(["--blob", str(blob), "--format", "txt"]) == 0
    out = capsys.readouterr().out
    assert "Decoder: legacy" in out
    assert "[0, 4) plain: 'Test'" in out


def test_blob_errors(tmp_path, capsys) -> None:
    assert cli.main(["--blob", str(tmp_path / "missing.bin")]) == 1
    junk = tmp_path / "junk.bin"
    junk.write_bytes(b"junk")
    assert cli.main(["--blob", str(junk)]) == 1
    assert "No text recovered" in capsys.readouterr().out


def test_info(chat_db, capsys) -> None:
    assert cli.main([str(chat_db), "--info"]) == 0
    out = capsys.readouterr().out
    assert "Messages: 3" in out


def test_scan(chat_db, capsys) -> None:
    assert cli.main([str(chat_db), "--scan"]) == 0
    out = capsys.readouterr().out
    assert "Text: Bold rest" in out
    assert "not recovered" in out
    assert "typed=2" in out
    assert "no_text=1" in out


def test_export_to_file(chat_db, tmp_path, capsys) -> None:
    target = tmp_path / "messages.jsonl"
    assert cli.main([str(chat_db), "--format", "json", "--output", str(target)]) == 0
    assert "Exported: 2" in capsys.readouterr().out
    assert len(target.read_text(encoding="utf-8").splitlines()) == 2


def test_export_to_stdout_with_limit(chat_db, capsys) -> None:
    assert cli.main([str(chat_db), "--format", "txt", "--output", "-", "--limit", "1"]) == 0
    assert capsys.readouterr().out.splitlines()[1] == "  Test"


def test_invalid_database(tmp_path, capsys) -> None:
    bogus = tmp_path / "chat.db"
    bogus.write_bytes(b"nope")
    assert cli.main([str(bogus)]) == 1
    assert "Invalid SQLite file signature" in capsys.readouterr().out


def test_requires_input() -> None:
    with pytest.raises(SystemExit):
        cli.main([])
