"""
Real-time ingestion: WebSocket subscription sessions under a reconnect supervisor.
"""

from solana_event_listener.ingestion.backoff import BackoffPolicy, backoff_delay
from solana_event_listener.ingestion.session import SubscriptionSession, build_subscribe_requests
from solana_event_listener.ingestion.supervisor import ReconnectSupervisor

__all__ = [
    "BackoffPolicy",
    "ReconnectSupervisor",
    "SubscriptionSession",
    "backoff_delay",
    "build_subscribe_requests",
]
