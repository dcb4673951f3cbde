"""
FastAPI app exposing listener metrics.

GET /metrics  Prometheus text exposition (events, errors, ws_connected).
GET /health   JSON liveness summary read from the same registry.

Read-only: handlers never touch the WebSocket session or the event log.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.responses import Response
from pydantic import BaseModel, Field

from solana_event_listener import __version__
from solana_event_listener.metrics import MetricsRegistry


class HealthResponse(BaseModel):
    """GET /health response."""

    status: str = Field(..., description="connected | disconnected")
    ws_connected: bool = Field(..., description="True while a WebSocket session is live")
    events_total: int = Field(..., ge=0, description="Events persisted since start")
    errors_total: int = Field(..., ge=0, description="Errors counted since start")


def create_app(metrics: MetricsRegistry) -> FastAPI:
    """Build the metrics app bound to one MetricsRegistry."""
    app = FastAPI(
        title="Solana Event Listener Metrics",
        description="Prometheus metrics and liveness for the Solana event listener.",
        version=__version__,
    )

    @app.get("/metrics")
    def get_metrics() -> Response:
        return Response(content=metrics.render(), media_type=metrics.content_type)

    @app.get("/health", response_model=HealthResponse)
    def get_health() -> HealthResponse:
        connected = metrics.connected() >= 1
        return HealthResponse(
            status="connected" if connected else "disconnected",
            ws_connected=connected,
            events_total=int(metrics.events()),
            errors_total=int(metrics.errors()),
        )

    return app
