"""
Listener metrics: events/errors counters and the connection liveness gauge.
"""

from solana_event_listener.metrics.registry import MetricsRegistry

__all__ = ["MetricsRegistry"]
