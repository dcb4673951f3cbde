"""
One WebSocket subscription session: connect → subscribe → stream → terminate.

States: disconnected → connecting → subscribed → streaming → terminated.
A session is single-use and never ends successfully: remote close, end of
stream, a transport error, or an RPC error envelope all raise a SessionError
for the supervisor to retry. Nothing is carried over to the next session.

Per frame:
- text: classified for the active mode; events are appended to the sink and
  counted; an RPC error counts as an error and ends the session; unknown
  shapes are logged and skipped.
- binary: logged and ignored.
- ping/pong: answered by the websockets protocol layer (ping_interval /
  ping_timeout); a keepalive failure surfaces as ConnectionClosedError.

A sink failure is counted and the event dropped; the session continues.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
from typing import Any, Callable, NoReturn

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from solana_event_listener.config.settings import (
    DEFAULT_WS_PING_INTERVAL,
    DEFAULT_WS_PING_TIMEOUT,
    Settings,
)
from solana_event_listener.core.exceptions import (
    RpcFaultError,
    SessionTerminatedError,
    SinkWriteError,
    TransportError,
)
from solana_event_listener.listener_logging import get_logger
from solana_event_listener.metrics import MetricsRegistry
from solana_event_listener.solana_listener.models import (
    MODE_LOGS,
    AccountEvent,
    Event,
    LogEvent,
    SubscriptionTarget,
)
from solana_event_listener.solana_listener.normalizer import to_account_event, to_log_event
from solana_event_listener.solana_listener.parser import (
    Ack,
    AccountNotification,
    LogsNotification,
    RpcFault,
    Unrecognized,
    classify,
)
from solana_event_listener.storage import JsonlWriter

logger = get_logger(__name__)

STATE_DISCONNECTED = "disconnected"
STATE_CONNECTING = "connecting"
STATE_SUBSCRIBED = "subscribed"
STATE_STREAMING = "streaming"
STATE_TERMINATED = "terminated"

_WS_CLOSE_TIMEOUT = 5.0
_WS_MAX_MESSAGE_BYTES = 16 * 1024 * 1024
_PREVIEW_CHARS = 200

ConnectFn = Callable[..., Any]


def build_subscribe_requests(target: SubscriptionTarget, commitment: str) -> list[tuple[str, dict[str, Any]]]:
    """
    (method, params) per subscribe request: one logsSubscribe for logs mode,
    one accountSubscribe per account (in order) for account mode.
    """
    if target.mode == MODE_LOGS:
        return [
            (
                "logsSubscribe",
                {"mentions": [target.program_id], "commitment": commitment},
            )
        ]
    return [
        (
            "accountSubscribe",
            {"account": account, "commitment": commitment, "encoding": "base64"},
        )
        for account in target.accounts
    ]


def _short(value: str, keep: int = 16) -> str:
    return value[:keep] + "..." if len(value) > keep else value


class SubscriptionSession:
    """Owns one live connection for one run(); create a new one per attempt."""

    def __init__(
        self,
        ws_url: str,
        target: SubscriptionTarget,
        commitment: str,
        sink: JsonlWriter,
        metrics: MetricsRegistry,
        *,
        ping_interval: float | None = DEFAULT_WS_PING_INTERVAL,
        ping_timeout: float | None = DEFAULT_WS_PING_TIMEOUT,
        track_account_pubkeys: bool = False,
        connect: ConnectFn | None = None,
    ) -> None:
        self._ws_url = ws_url
        self._target = target
        self._commitment = commitment
        self._sink = sink
        self._metrics = metrics
        self._ping_interval = ping_interval
        self._ping_timeout = ping_timeout
        self._track_pubkeys = track_account_pubkeys
        self._connect = connect or websockets.connect
        self._state = STATE_DISCONNECTED
        self._send_lock = asyncio.Lock()
        self._next_request_id = 0
        # request id -> account, then subscription id -> account (tracking only)
        self._pending_accounts: dict[int, str] = {}
        self._subscription_accounts: dict[int, str] = {}

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        sink: JsonlWriter,
        metrics: MetricsRegistry,
        *,
        connect: ConnectFn | None = None,
    ) -> "SubscriptionSession":
        return cls(
            settings.ws_url,
            settings.subscription_target(),
            settings.commitment,
            sink,
            metrics,
            ping_interval=settings.ws_ping_interval,
            ping_timeout=settings.ws_ping_timeout,
            track_account_pubkeys=settings.track_account_pubkeys,
            connect=connect,
        )

    @property
    def state(self) -> str:
        return self._state

    def _transition(self, new_state: str) -> None:
        logger.debug("session_state", from_state=self._state, to_state=new_state)
        self._state = new_state

    async def run(self) -> NoReturn:
        """Connect, subscribe and stream until the session fails; always raises."""
        if self._state != STATE_DISCONNECTED:
            raise RuntimeError("SubscriptionSession.run() may only be called once")
        self._transition(STATE_CONNECTING)
        self._metrics.set_connected(False)
        logger.info("ws_connecting", url=self._ws_url, mode=self._target.mode)
        try:
            async with contextlib.AsyncExitStack() as stack:
                try:
                    ws = await stack.enter_async_context(
                        self._connect(
                            self._ws_url,
                            ping_interval=self._ping_interval,
                            ping_timeout=self._ping_timeout,
                            close_timeout=_WS_CLOSE_TIMEOUT,
                            max_size=_WS_MAX_MESSAGE_BYTES,
                        )
                    )
                except (OSError, asyncio.TimeoutError, WebSocketException) as e:
                    raise TransportError(f"Failed to connect to WebSocket: {e}") from e

                self._transition(STATE_SUBSCRIBED)
                self._metrics.set_connected(True)
                logger.info("ws_connected", url=self._ws_url)
                await self._subscribe(ws)
                self._transition(STATE_STREAMING)
                await self._stream(ws)
        finally:
            self._transition(STATE_TERMINATED)

    async def _send(self, ws: Any, payload: dict[str, Any]) -> None:
        async with self._send_lock:
            await ws.send(json.dumps(payload))

    async def _subscribe(self, ws: Any) -> None:
        """Send every subscribe request without waiting for acknowledgments."""
        requests = build_subscribe_requests(self._target, self._commitment)
        for method, params in requests:
            self._next_request_id += 1
            request_id = self._next_request_id
            if "account" in params:
                self._pending_accounts[request_id] = params["account"]
                logger.info("subscribing_account", account=params["account"], request_id=request_id)
            else:
                logger.info("subscribing_logs", program_id=self._target.program_id, request_id=request_id)
            payload = {"jsonrpc": "2.0", "id": request_id, "method": method, "params": params}
            try:
                await self._send(ws, payload)
            except (ConnectionClosed, OSError) as e:
                raise TransportError(f"Failed to send subscription request: {e}") from e
        logger.info(
            "subscribed",
            mode=self._target.mode,
            commitment=self._commitment,
            requests=len(requests),
        )

    async def _stream(self, ws: Any) -> NoReturn:
        try:
            async for raw in ws:
                self._handle_frame(raw)
        except (ConnectionClosed, OSError) as e:
            self._metrics.record_error()
            self._metrics.set_connected(False)
            logger.error("ws_error", error=str(e))
            raise TransportError(f"WebSocket error: {e}") from e

        self._metrics.set_connected(False)
        close_code = getattr(ws, "close_code", None)
        if close_code is not None:
            logger.warning("ws_closed_by_server", code=close_code, reason=getattr(ws, "close_reason", None))
            raise SessionTerminatedError(f"WebSocket closed by server (code={close_code})")
        logger.warning("ws_stream_ended")
        raise SessionTerminatedError("WebSocket stream ended")

    def _handle_frame(self, raw: str | bytes) -> None:
        if isinstance(raw, (bytes, bytearray, memoryview)):
            logger.warning("ws_unexpected_binary", bytes=len(raw))
            return
        logger.debug("ws_message_received", chars=len(raw))
        frame = classify(raw, self._target.mode)

        if isinstance(frame, RpcFault):
            self._metrics.record_error()
            logger.error(
                "rpc_error",
                code=frame.code,
                message=frame.message,
                request_id=frame.request_id,
            )
            raise RpcFaultError(frame.code, frame.message)
        if isinstance(frame, Ack):
            self._on_ack(frame)
            return
        if isinstance(frame, Unrecognized):
            logger.warning("ws_unknown_message", reason=frame.reason, preview=raw[:_PREVIEW_CHARS])
            return
        if isinstance(frame, LogsNotification):
            self._deliver(to_log_event(frame))
        elif isinstance(frame, AccountNotification):
            self._deliver(to_account_event(frame, pubkey=self._lookup_pubkey(frame)))

    def _on_ack(self, ack: Ack) -> None:
        logger.info("subscription_confirmed", request_id=ack.request_id, result=ack.result)
        if not self._track_pubkeys:
            return
        account = self._pending_accounts.pop(ack.request_id, None)
        if account is not None and isinstance(ack.result, int) and not isinstance(ack.result, bool):
            self._subscription_accounts[ack.result] = account

    def _lookup_pubkey(self, notification: AccountNotification) -> str | None:
        if not self._track_pubkeys or notification.subscription_id is None:
            return None
        return self._subscription_accounts.get(notification.subscription_id)

    def _deliver(self, event: Event) -> None:
        """Append to the sink, then count; a failed write is counted and dropped."""
        try:
            self._sink.append(event)
        except SinkWriteError as e:
            self._metrics.record_error()
            logger.error("event_write_failed", error=str(e))
            return
        self._metrics.record_event()
        if isinstance(event, LogEvent):
            logger.info(
                "log_event",
                signature=_short(event.signature),
                slot=event.slot,
                program_id=event.program_id,
                log_lines=len(event.logs),
            )
        elif isinstance(event, AccountEvent):
            logger.info(
                "account_event",
                pubkey=event.pubkey,
                slot=event.slot,
                lamports=event.lamports,
            )
