"""
JSONL file storage for events. Append-only, one JSON object per line.

append() returns only after the line is flushed and fsync'd, so an event the
caller saw succeed survives a process crash. A lock serializes appends so
concurrent callers never interleave partial lines. No batching or rotation.
"""

from __future__ import annotations

import json
import os
import threading
from pathlib import Path
from typing import Iterator

from solana_event_listener.core.exceptions import SinkWriteError
from solana_event_listener.listener_logging import get_logger
from solana_event_listener.solana_listener.models import AccountEvent, Event, LogEvent

logger = get_logger(__name__)


def serialize_event(event: Event) -> str:
    """One record line, newline not included."""
    return json.dumps(event.to_dict(), ensure_ascii=False, separators=(",", ":"))


def parse_event_line(line: str) -> Event:
    """Rebuild a LogEvent or AccountEvent from one record line, by shape."""
    data = json.loads(line)
    if "signature" in data:
        return LogEvent.from_dict(data)
    return AccountEvent.from_dict(data)


class JsonlWriter:
    """JSONL writer for append-only event storage."""

    def __init__(self, file_path: str | Path) -> None:
        self._path = Path(file_path)
        self._lock = threading.Lock()

    @property
    def file_path(self) -> Path:
        return self._path

    def append(self, event: Event) -> None:
        """
        Append one event as a single line, creating the file if absent.

        Raises SinkWriteError if the event cannot be serialized or written.
        """
        try:
            # lone surrogates from escaped JSON fail here (UnicodeEncodeError)
            data = (serialize_event(event) + "\n").encode("utf-8")
        except (TypeError, ValueError) as e:
            raise SinkWriteError(f"Failed to serialize event to JSON: {e}") from e
        with self._lock:
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                with open(self._path, "ab") as fh:
                    fh.write(data)
                    fh.flush()
                    os.fsync(fh.fileno())
            except OSError as e:
                raise SinkWriteError(f"Failed to write to file {self._path}: {e}") from e
        logger.debug("event_persisted", path=str(self._path), bytes=len(data))


def iter_events(file_path: str | Path) -> Iterator[Event]:
    """Yield events from a JSONL log in file order; blank lines are skipped."""
    with open(file_path, encoding="utf-8") as fh:
        for line in fh:
            line = line.strip()
            if not line:
                continue
            yield parse_event_line(line)


def read_events(file_path: str | Path) -> list[Event]:
    return list(iter_events(file_path))
