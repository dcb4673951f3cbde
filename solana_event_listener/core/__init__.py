"""
Core utilities: exceptions shared by the listener, ingestion, and storage layers.
"""

from solana_event_listener.core.exceptions import (
    ConfigurationError,
    ListenerError,
    RpcFaultError,
    SessionError,
    SessionTerminatedError,
    SinkWriteError,
    TransportError,
)

__all__ = [
    "ConfigurationError",
    "ListenerError",
    "RpcFaultError",
    "SessionError",
    "SessionTerminatedError",
    "SinkWriteError",
    "TransportError",
]
