"""
Solana notification handling: frame classification and event normalization.

classify() turns a raw WebSocket text frame into a tagged variant; the
normalizer turns logs/account notifications into LogEvent / AccountEvent.
"""

from solana_event_listener.solana_listener.models import (
    AccountEvent,
    LogEvent,
    SubscriptionTarget,
)
from solana_event_listener.solana_listener.normalizer import (
    infer_program_id,
    to_account_event,
    to_log_event,
)
from solana_event_listener.solana_listener.parser import (
    Ack,
    AccountNotification,
    LogsNotification,
    RpcFault,
    Unrecognized,
    classify,
)

__all__ = [
    "Ack",
    "AccountEvent",
    "AccountNotification",
    "LogEvent",
    "LogsNotification",
    "RpcFault",
    "SubscriptionTarget",
    "Unrecognized",
    "classify",
    "infer_program_id",
    "to_account_event",
    "to_log_event",
]
