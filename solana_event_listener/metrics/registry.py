"""
Prometheus metrics for monitoring the listener.

One MetricsRegistry is created at startup and shared by the session, the
supervisor and the HTTP app. It owns a private CollectorRegistry (no
process-global default registry), so tests can build as many as they like.
prometheus-client metrics are thread-safe.
"""

from __future__ import annotations

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, Gauge, generate_latest

EVENTS_TOTAL = "sol_events_total"
ERRORS_TOTAL = "sol_errors_total"
WS_CONNECTED = "sol_ws_connected"


class MetricsRegistry:
    """Events/errors counters and the WebSocket liveness gauge."""

    content_type = CONTENT_TYPE_LATEST

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry()
        self.events_total = Counter(
            EVENTS_TOTAL,
            "Total number of events processed",
            registry=self.registry,
        )
        self.errors_total = Counter(
            ERRORS_TOTAL,
            "Total number of errors encountered",
            registry=self.registry,
        )
        self.ws_connected = Gauge(
            WS_CONNECTED,
            "WebSocket connection status (1=connected, 0=disconnected)",
            registry=self.registry,
        )

    def record_event(self) -> None:
        self.events_total.inc()

    def record_error(self) -> None:
        self.errors_total.inc()

    def set_connected(self, connected: bool) -> None:
        self.ws_connected.set(1 if connected else 0)

    def events(self) -> float:
        return self.registry.get_sample_value(EVENTS_TOTAL) or 0.0

    def errors(self) -> float:
        return self.registry.get_sample_value(ERRORS_TOTAL) or 0.0

    def connected(self) -> float:
        return self.registry.get_sample_value(WS_CONNECTED) or 0.0

    def render(self) -> bytes:
        """Prometheus text exposition of every metric in this registry."""
        return generate_latest(self.registry)
