"""
Pytest fixtures for listener tests: a fresh metrics registry and a JSONL
writer pointed at a temporary file.
"""

from __future__ import annotations

import pytest

from solana_event_listener.metrics import MetricsRegistry
from solana_event_listener.storage import JsonlWriter


@pytest.fixture
def metrics() -> MetricsRegistry:
    """Private registry per test; counters start at zero."""
    return MetricsRegistry()


@pytest.fixture
def event_log_path(tmp_path):
    # nested so append() has to create the parent directory
    return tmp_path / "events" / "events.jsonl"


@pytest.fixture
def writer(event_log_path) -> JsonlWriter:
    return JsonlWriter(event_log_path)
