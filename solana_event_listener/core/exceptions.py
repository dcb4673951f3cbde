"""
Application-level exceptions.

ConfigurationError is the only non-retryable class: the supervisor raises it
before any connection attempt and the entrypoint exits. Every SessionError
ends the current WebSocket session and is retried with backoff.
SinkWriteError is counted and the event dropped; the session keeps running.
"""

from __future__ import annotations


class ListenerError(Exception):
    """Base class for all listener errors."""


class ConfigurationError(ListenerError):
    """Missing or invalid settings, including an empty subscription target."""


class SessionError(ListenerError):
    """A subscription session ended; the supervisor reconnects."""


class TransportError(SessionError):
    """Connect failure, read error, or keepalive failure on the WebSocket."""


class SessionTerminatedError(SessionError):
    """Remote peer closed the connection or the frame stream ended."""


class RpcFaultError(SessionError):
    """The RPC node answered with an error envelope."""

    def __init__(self, code: int | None, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(f"RPC error: {message} (code: {code})")


class SinkWriteError(ListenerError):
    """An event could not be appended to the JSONL log."""
