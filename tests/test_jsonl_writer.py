"""
Tests for JSONL event storage: line format, append order, read-back and
write failures.
"""

from __future__ import annotations

import json
import threading

import pytest

from solana_event_listener.core.exceptions import SinkWriteError
from solana_event_listener.solana_listener.models import AccountEvent, LogEvent
from solana_event_listener.storage import JsonlWriter, parse_event_line, read_events, serialize_event

LOG_EVENT = LogEvent(
    timestamp="2024-03-01T12:30:45Z",
    signature="5h6xBEauJ3PK6SWCZ1PGjBvj8vDdWG3KpwATGy1ARAXF",
    slot=5208469,
    program_id="11111111111111111111111111111111",
    logs=("Program 11111111111111111111111111111111 invoke [1]", "Program log: héllo"),
)
ACCOUNT_EVENT = AccountEvent(
    timestamp="2024-03-01T12:30:46Z",
    pubkey="unknown",
    slot=5199307,
    lamports=33594,
    data="AAECbase64",
)


def test_serialize_event_is_one_compact_line():
    line = serialize_event(LOG_EVENT)
    assert "\n" not in line
    assert json.loads(line) == {
        "timestamp": "2024-03-01T12:30:45Z",
        "signature": LOG_EVENT.signature,
        "slot": 5208469,
        "program_id": LOG_EVENT.program_id,
        "logs": list(LOG_EVENT.logs),
    }
    # non-ASCII kept as UTF-8, not escaped
    assert "héllo" in line


def test_parse_event_line_round_trip():
    assert parse_event_line(serialize_event(LOG_EVENT)) == LOG_EVENT
    assert parse_event_line(serialize_event(ACCOUNT_EVENT)) == ACCOUNT_EVENT


def test_append_creates_file_and_parent(writer, event_log_path):
    assert not event_log_path.parent.exists()
    writer.append(ACCOUNT_EVENT)
    assert event_log_path.exists()
    assert event_log_path.read_bytes().endswith(b"\n")
    assert writer.file_path == event_log_path


def test_n_appends_give_n_lines_in_order(writer, event_log_path):
    events = [
        LogEvent(timestamp="t", signature=f"sig{i}", slot=i, program_id="unknown", logs=())
        for i in range(25)
    ]
    for event in events:
        writer.append(event)
    lines = event_log_path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 25
    assert read_events(event_log_path) == events


def test_append_keeps_existing_content(event_log_path):
    event_log_path.parent.mkdir(parents=True)
    event_log_path.write_text(serialize_event(LOG_EVENT) + "\n", encoding="utf-8")
    JsonlWriter(event_log_path).append(ACCOUNT_EVENT)
    assert read_events(event_log_path) == [LOG_EVENT, ACCOUNT_EVENT]


def test_concurrent_appends_never_interleave(writer, event_log_path):
    def worker(n: int) -> None:
        for i in range(20):
            writer.append(
                AccountEvent(timestamp="t", pubkey=f"w{n}", slot=i, lamports=i, data="x" * 500)
            )

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    events = read_events(event_log_path)
    assert len(events) == 80
    for n in range(4):
        assert [e.slot for e in events if e.pubkey == f"w{n}"] == list(range(20))


def test_append_to_directory_raises_sink_write_error(tmp_path):
    writer = JsonlWriter(tmp_path)
    with pytest.raises(SinkWriteError, match="Failed to write"):
        writer.append(LOG_EVENT)


def test_unserializable_event_raises_sink_write_error(writer):
    bad = AccountEvent(timestamp="t", pubkey="p", slot=1, lamports=1, data=object())  # type: ignore[arg-type]
    with pytest.raises(SinkWriteError, match="serialize"):
        writer.append(bad)


def test_read_events_skips_blank_lines(event_log_path):
    event_log_path.parent.mkdir(parents=True)
    event_log_path.write_text(
        "\n" + serialize_event(ACCOUNT_EVENT) + "\n\n", encoding="utf-8"
    )
    assert read_events(event_log_path) == [ACCOUNT_EVENT]


def test_lone_surrogate_raises_sink_write_error(writer, event_log_path):
    bad = LogEvent(timestamp="t", signature="s", slot=1, program_id="unknown", logs=("\ud800",))
    with pytest.raises(SinkWriteError, match="serialize"):
        writer.append(bad)
    assert not event_log_path.exists()
