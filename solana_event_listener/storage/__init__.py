"""
Durable event storage: append-only JSONL log.
"""

from solana_event_listener.storage.jsonl_writer import (
    JsonlWriter,
    iter_events,
    parse_event_line,
    read_events,
    serialize_event,
)

__all__ = [
    "JsonlWriter",
    "iter_events",
    "parse_event_line",
    "read_events",
    "serialize_event",
]
