"""
Tests for the wire log.
"""

import json
from pathlib import Path

import pytest
from rich.console import Console

from genaichat.wiretap import WireLog, format_entry, live_tap, read_entries


@pytest.fixture
def wire_log(tmp_path):
    return WireLog(str(tmp_path / "wire.jsonl"))


def test_wire_log_writes_jsonl(wire_log):
    wire_log.log("inbound", "user", "hello world", model="gemini-test")
    wire_log.log("outbound", "assistant", "hi there!", model="gemini-test")
    wire_log.close()

    lines = Path(wire_log.log_path).read_text().strip().split("\n")
    assert len(lines) == 2
    first = json.loads(lines[0])
    assert first["dir"] == "inbound"
    assert first["role"] == "user"
    assert first["content"] == "hello world"
    assert first["model"] == "gemini-test"
    assert json.loads(lines[1])["role"] == "assistant"


def test_wire_log_truncates_long_content(wire_log):
    wire_log.log("outbound", "assistant", "x" * 5000)
    wire_log.close()

    entry = json.loads(Path(wire_log.log_path).read_text().strip())
    assert len(entry["content"]) < 5000
    assert "truncated" in entry["content"]
    assert entry["len"] == 5000


def test_read_entries_skips_corrupt_and_filters(tmp_path):
    path = tmp_path / "wire.jsonl"
    path.write_text(
        '{"role": "user", "content": "a"}\n'
        "not json\n"
        '{"role": "assistant", "content": "b"}\n'
        '{"role": "user", "content": "c"}\n'
    )
    assert [e["content"] for e in read_entries(str(path))] == ["a", "b", "c"]
    assert [e["content"] for e in read_entries(str(path), role_filter="user")] == ["a", "c"]
    assert [e["content"] for e in read_entries(str(path), last_n=1)] == ["c"]


def test_read_entries_missing_file(tmp_path):
    assert read_entries(str(tmp_path / "nope.jsonl")) == []


def test_format_entry():
    entry = {
        "ts": "2026-01-01T12:34:56+00:00",
        "dir": "outbound",
        "role": "error",
        "model": "gemini-test",
        "len": 5,
        "content": "quota",
    }
    out = format_entry(entry).plain
    assert "12:34:56" in out
    assert "ERROR" in out
    assert "[gemini-test]" in out
    assert "quota" in out


def test_format_entry_bad_timestamp():
    out = format_entry({"ts": "nope", "role": "user", "dir": "inbound"}).plain
    assert out.startswith("??:??:??")


def test_live_tap_without_follow(tmp_path):
    path = tmp_path / "wire.jsonl"
    path.write_text(
        json.dumps({"role": "user", "dir": "inbound", "content": "[b]hello[/b]"}) + "\n"
        + json.dumps({"role": "assistant", "dir": "outbound", "content": "hi"}) + "\n"
    )
    console = Console(record=True, width=120)
    live_tap(str(path), follow=False, role_filter="user", console=console)
    out = console.export_text()
    assert "[b]hello[/b]" in out
    assert "ASSISTANT" not in out


def test_live_tap_raw(tmp_path):
    path = tmp_path / "wire.jsonl"
    record = {"role": "user", "dir": "inbound", "content": "hi"}
    path.write_text(json.dumps(record) + "\n")
    console = Console(record=True, width=200)
    live_tap(str(path), follow=False, raw=True, console=console)
    assert json.loads(console.export_text().strip()) == record


def test_live_tap_missing_file(tmp_path):
    console = Console(record=True, width=200)
    live_tap(str(tmp_path / "nope.jsonl"), follow=False, console=console)
    assert "No wire log found" in console.export_text()
