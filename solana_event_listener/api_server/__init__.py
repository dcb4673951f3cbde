"""
API server package — HTTP exposition of listener metrics and liveness.
"""

from solana_event_listener.api_server.app import create_app
from solana_event_listener.api_server.server import MetricsServer, start_metrics_server

__all__ = ["MetricsServer", "create_app", "start_metrics_server"]
