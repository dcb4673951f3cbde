"""
WebSocket frame classifier — raw JSON-RPC text to a tagged frame variant.

classify() tries a short, ordered list of known shapes and returns the first
match, falling through to Unrecognized:

1. RPC response envelope {jsonrpc, id, result?, error?}:
   error present -> RpcFault; result present -> Ack; neither -> keep going.
2. Mode-specific notification {result: {context: {slot}, value: {...}}}
   (also accepted under params.result, where params.subscription carries
   the subscription id): LogsNotification or AccountNotification.
3. Unrecognized(reason).

Purely structural; no I/O, no clock. Building events from the
notifications is the normalizer's job.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from solana_event_listener.solana_listener.models import MODE_ACCOUNT, MODE_LOGS

_U64_MAX = 2**64 - 1


@dataclass(frozen=True)
class Ack:
    """Subscription acknowledgment (or any successful RPC response)."""

    result: Any
    request_id: int


@dataclass(frozen=True)
class RpcFault:
    """RPC error envelope; fatal for the current session."""

    code: int | None
    message: str
    request_id: int


@dataclass(frozen=True)
class LogsNotification:
    slot: int
    signature: str
    logs: tuple[str, ...]
    err: Any = None
    subscription_id: int | None = None


@dataclass(frozen=True)
class AccountNotification:
    slot: int
    lamports: int
    data: tuple[str, ...]
    subscription_id: int | None = None


@dataclass(frozen=True)
class Unrecognized:
    """Frame that matched no known shape; logged and dropped."""

    reason: str


Frame = Ack | RpcFault | LogsNotification | AccountNotification | Unrecognized


def _is_uint(value: Any) -> bool:
    """True for an int in the unsigned 64-bit range (bool excluded)."""
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= _U64_MAX


def _is_str_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(v, str) for v in value)


def _as_response(msg: dict[str, Any]) -> Ack | RpcFault | None:
    """Decode the RPC response envelope; None if the frame is not one."""
    if not isinstance(msg.get("jsonrpc"), str) or not _is_uint(msg.get("id")):
        return None
    request_id = msg["id"]
    error = msg.get("error")
    if error is not None:
        if isinstance(error, dict):
            code = error.get("code")
            message = error.get("message")
            return RpcFault(
                code=code if isinstance(code, int) and not isinstance(code, bool) else None,
                message=str(message) if message is not None else json.dumps(error),
                request_id=request_id,
            )
        return RpcFault(code=None, message=str(error), request_id=request_id)
    result = msg.get("result")
    if result is not None:
        return Ack(result=result, request_id=request_id)
    return None


def _notification_body(msg: dict[str, Any]) -> tuple[dict[str, Any], dict[str, Any], int | None] | None:
    """
    Locate (context, value, subscription_id) in a notification frame.

    Top-level result first, then params.result; context.slot must be an
    unsigned int and value an object.
    """
    candidates: list[tuple[Any, int | None]] = [(msg.get("result"), None)]
    params = msg.get("params")
    if isinstance(params, dict):
        sub = params.get("subscription")
        candidates.append((params.get("result"), sub if _is_uint(sub) else None))
    for body, sub_id in candidates:
        if not isinstance(body, dict):
            continue
        context = body.get("context")
        value = body.get("value")
        if not isinstance(context, dict) or not isinstance(value, dict):
            continue
        if not _is_uint(context.get("slot")):
            continue
        return context, value, sub_id
    return None


def _as_logs(context: dict[str, Any], value: dict[str, Any], sub_id: int | None) -> LogsNotification | None:
    logs = value.get("logs")
    signature = value.get("signature")
    if not _is_str_list(logs) or not isinstance(signature, str):
        return None
    return LogsNotification(
        slot=context["slot"],
        signature=signature,
        logs=tuple(logs),
        err=value.get("err"),
        subscription_id=sub_id,
    )


def _as_account(context: dict[str, Any], value: dict[str, Any], sub_id: int | None) -> AccountNotification | None:
    account = value.get("account")
    if not isinstance(account, dict) and "lamports" in value:
        # pubsub nodes put the account fields directly under value
        account = value
    if not isinstance(account, dict):
        return None
    lamports = account.get("lamports")
    data = account.get("data")
    if not _is_uint(lamports) or not _is_str_list(data):
        return None
    return AccountNotification(
        slot=context["slot"],
        lamports=lamports,
        data=tuple(data),
        subscription_id=sub_id,
    )


def classify(raw_text: str | bytes, mode: str) -> Frame:
    """
    Classify one text frame for the given mode (logs | account).

    Never raises on bad input: anything that is not a response envelope or a
    notification of the active mode comes back as Unrecognized.
    """
    try:
        msg = json.loads(raw_text)
    except (TypeError, ValueError):
        return Unrecognized(reason="invalid_json")
    if not isinstance(msg, dict):
        return Unrecognized(reason="not_an_object")

    response = _as_response(msg)
    if response is not None:
        return response

    located = _notification_body(msg)
    if located is None:
        return Unrecognized(reason="unknown_shape")
    context, value, sub_id = located
    if mode == MODE_LOGS:
        notification = _as_logs(context, value, sub_id)
    elif mode == MODE_ACCOUNT:
        notification = _as_account(context, value, sub_id)
    else:
        return Unrecognized(reason=f"unsupported_mode:{mode}")
    if notification is None:
        return Unrecognized(reason=f"not_a_{mode}_notification")
    return notification
