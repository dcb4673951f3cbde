"""
Tests for SubscriptionSession against an in-memory WebSocket.

Covers subscribe requests, per-frame handling (events, acks, RPC errors,
binary and unknown frames), sink failures and every way a session ends.
"""

from __future__ import annotations

import asyncio

import pytest
from websockets.exceptions import ConnectionClosedError
from websockets.frames import Close

from solana_event_listener.core.exceptions import (
    RpcFaultError,
    SessionTerminatedError,
    TransportError,
)
from solana_event_listener.ingestion.session import (
    STATE_DISCONNECTED,
    STATE_TERMINATED,
    SubscriptionSession,
    build_subscribe_requests,
)
from solana_event_listener.solana_listener.models import AccountEvent, LogEvent, SubscriptionTarget
from solana_event_listener.storage import JsonlWriter, read_events
from ws_fakes import (
    ACCOUNT_A,
    ACCOUNT_B,
    PROGRAM_ID,
    WS_URL,
    FakeConnector,
    FakeWebSocket,
    account_frame,
    ack_frame,
    logs_frame,
    rpc_error_frame,
)

INVOKE_LOGS = [f"Program {PROGRAM_ID} invoke [1]", "Program log: Instruction: Transfer"]


def _session(target, sink, metrics, connector, **kwargs) -> SubscriptionSession:
    return SubscriptionSession(WS_URL, target, "confirmed", sink, metrics, connect=connector, **kwargs)


def _run(session: SubscriptionSession) -> None:
    asyncio.run(session.run())


def test_build_subscribe_requests_logs():
    requests = build_subscribe_requests(SubscriptionTarget.for_program(PROGRAM_ID), "finalized")
    assert requests == [("logsSubscribe", {"mentions": [PROGRAM_ID], "commitment": "finalized"})]


def test_build_subscribe_requests_accounts_in_order():
    requests = build_subscribe_requests(SubscriptionTarget.for_accounts([ACCOUNT_A, ACCOUNT_B]), "processed")
    assert [params["account"] for _, params in requests] == [ACCOUNT_A, ACCOUNT_B]
    assert all(method == "accountSubscribe" for method, _ in requests)
    assert requests[0][1] == {"account": ACCOUNT_A, "commitment": "processed", "encoding": "base64"}


def test_logs_session_appends_one_event_per_notification(writer, event_log_path, metrics):
    ws = FakeWebSocket(
        [
            ack_frame(1, 42),
            logs_frame(100, "sig-a", INVOKE_LOGS),
            logs_frame(101, "sig-b", ["Program log: no invoke line"], subscription_id=42),
        ]
    )
    connector = FakeConnector(ws)
    session = _session(SubscriptionTarget.for_program(PROGRAM_ID), writer, metrics, connector)

    with pytest.raises(SessionTerminatedError, match="stream ended"):
        _run(session)

    assert ws.sent == [
        {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "logsSubscribe",
            "params": {"mentions": [PROGRAM_ID], "commitment": "confirmed"},
        }
    ]
    events = read_events(event_log_path)
    assert [e.signature for e in events] == ["sig-a", "sig-b"]
    assert all(isinstance(e, LogEvent) for e in events)
    assert events[0].program_id == PROGRAM_ID
    assert events[0].slot == 100
    assert events[1].program_id == "log:"
    assert metrics.events() == 2
    assert metrics.errors() == 0
    assert metrics.connected() == 0
    assert session.state == STATE_TERMINATED


def test_connect_receives_keepalive_settings(writer, metrics):
    connector = FakeConnector(FakeWebSocket())
    session = _session(
        SubscriptionTarget.for_program(PROGRAM_ID), writer, metrics, connector, ping_interval=15.0, ping_timeout=None
    )
    with pytest.raises(SessionTerminatedError):
        _run(session)
    url, kwargs = connector.calls[0]
    assert url == WS_URL
    assert kwargs["ping_interval"] == 15.0
    assert kwargs["ping_timeout"] is None


def test_rpc_error_terminates_without_append(writer, event_log_path, metrics):
    ws = FakeWebSocket([rpc_error_frame(1, code=-32602, message="Invalid params"), logs_frame(1, "s", INVOKE_LOGS)])
    session = _session(SubscriptionTarget.for_program(PROGRAM_ID), writer, metrics, FakeConnector(ws))

    with pytest.raises(RpcFaultError) as exc_info:
        _run(session)

    assert exc_info.value.code == -32602
    assert exc_info.value.message == "Invalid params"
    assert not event_log_path.exists()
    assert metrics.events() == 0
    assert metrics.errors() == 1


def test_binary_and_unknown_frames_are_skipped(writer, event_log_path, metrics):
    ws = FakeWebSocket(
        [b"\x00\x01\x02", "not json", '{"hello": "world"}', logs_frame(7, "sig", INVOKE_LOGS)],
        close_code=1000,
    )
    session = _session(SubscriptionTarget.for_program(PROGRAM_ID), writer, metrics, FakeConnector(ws))

    with pytest.raises(SessionTerminatedError, match="closed by server"):
        _run(session)

    assert len(read_events(event_log_path)) == 1
    assert metrics.events() == 1
    assert metrics.errors() == 0


def test_transport_error_mid_stream(writer, event_log_path, metrics):
    ws = FakeWebSocket(
        [logs_frame(1, "sig", INVOKE_LOGS)],
        error=ConnectionClosedError(Close(1011, "internal error"), None),
    )
    session = _session(SubscriptionTarget.for_program(PROGRAM_ID), writer, metrics, FakeConnector(ws))

    with pytest.raises(TransportError):
        _run(session)

    assert len(read_events(event_log_path)) == 1
    assert metrics.errors() == 1
    assert metrics.connected() == 0


def test_connect_failure_is_transport_error(writer, metrics):
    connector = FakeConnector(OSError("connection refused"))
    session = _session(SubscriptionTarget.for_program(PROGRAM_ID), writer, metrics, connector)

    with pytest.raises(TransportError, match="Failed to connect"):
        _run(session)

    assert metrics.connected() == 0
    assert session.state == STATE_TERMINATED


def test_session_is_single_use(writer, metrics):
    session = _session(SubscriptionTarget.for_program(PROGRAM_ID), writer, metrics, FakeConnector(FakeWebSocket()))
    assert session.state == STATE_DISCONNECTED
    with pytest.raises(SessionTerminatedError):
        _run(session)
    with pytest.raises(RuntimeError):
        _run(session)


def test_account_subscribe_ids_and_unknown_pubkey(writer, event_log_path, metrics):
    ws = FakeWebSocket(
        [
            ack_frame(1, 500),
            ack_frame(2, 501),
            account_frame(9, 1_000_000, ["AAEC", "base64"], subscription_id=501),
        ]
    )
    session = _session(SubscriptionTarget.for_accounts([ACCOUNT_A, ACCOUNT_B]), writer, metrics, FakeConnector(ws))

    with pytest.raises(SessionTerminatedError):
        _run(session)

    assert [m["id"] for m in ws.sent] == [1, 2]
    assert [m["params"]["account"] for m in ws.sent] == [ACCOUNT_A, ACCOUNT_B]
    assert all(m["method"] == "accountSubscribe" for m in ws.sent)
    (event,) = read_events(event_log_path)
    assert isinstance(event, AccountEvent)
    assert event.pubkey == "unknown"
    assert event.lamports == 1_000_000
    assert event.data == "AAECbase64"


def test_account_pubkey_tracking(writer, event_log_path, metrics):
    ws = FakeWebSocket(
        [
            ack_frame(1, 500),
            ack_frame(2, 501),
            account_frame(9, 1, ["A"], subscription_id=501),
            account_frame(10, 2, ["B"], subscription_id=500),
            account_frame(11, 3, ["C"]),
        ]
    )
    session = _session(
        SubscriptionTarget.for_accounts([ACCOUNT_A, ACCOUNT_B]),
        writer,
        metrics,
        FakeConnector(ws),
        track_account_pubkeys=True,
    )

    with pytest.raises(SessionTerminatedError):
        _run(session)

    assert [e.pubkey for e in read_events(event_log_path)] == [ACCOUNT_B, ACCOUNT_A, "unknown"]


def test_sink_failure_is_counted_and_session_continues(tmp_path, metrics):
    # a directory cannot be opened for append
    sink = JsonlWriter(tmp_path)
    ws = FakeWebSocket([logs_frame(1, "s1", INVOKE_LOGS), logs_frame(2, "s2", INVOKE_LOGS)])
    session = _session(SubscriptionTarget.for_program(PROGRAM_ID), sink, metrics, FakeConnector(ws))

    with pytest.raises(SessionTerminatedError):
        _run(session)

    assert metrics.events() == 0
    assert metrics.errors() == 2


def test_unencodable_notification_is_dropped_and_stream_continues(writer, event_log_path, metrics):
    """An escaped lone surrogate parses as JSON but cannot be written as UTF-8."""
    ws = FakeWebSocket(
        [
            logs_frame(1, "bad", ["\ud800"]),
            logs_frame(2, "after", INVOKE_LOGS),
        ]
    )
    session = _session(SubscriptionTarget.for_program(PROGRAM_ID), writer, metrics, FakeConnector(ws))

    with pytest.raises(SessionTerminatedError, match="stream ended"):
        _run(session)

    assert [e.signature for e in read_events(event_log_path)] == ["after"]
    assert metrics.events() == 1
    assert metrics.errors() == 1
