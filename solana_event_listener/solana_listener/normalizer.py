"""
Notification normalizer: parsed notifications to LogEvent / AccountEvent.

Stamps each event with the wall-clock time of parsing (RFC3339, UTC). This is
call time, not chain time; notifications carry no block time.

Logs mode: the wire format does not name the program that produced the
logs, so program_id is inferred from the first log line. "Program <id>
invoke [1]" yields <id>; anything else yields "unknown". The heuristic is
kept as-is, including its misses (e.g. "Program log: ..." yields "log:").
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

from solana_event_listener.solana_listener.models import UNKNOWN, AccountEvent, LogEvent
from solana_event_listener.solana_listener.parser import AccountNotification, LogsNotification

PROGRAM_LINE_PREFIX = "Program "


def rfc3339_now(now: Callable[[], datetime] | None = None) -> str:
    """Current UTC time as RFC3339 with a Z suffix."""
    current = now() if now is not None else datetime.now(timezone.utc)
    return current.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def infer_program_id(logs: tuple[str, ...] | list[str]) -> str:
    """Third whitespace token of the first log line if it starts with "Program "."""
    if not logs:
        return UNKNOWN
    first = logs[0]
    if not first.startswith(PROGRAM_LINE_PREFIX):
        return UNKNOWN
    tokens = first.split()
    if len(tokens) < 3:
        return UNKNOWN
    return tokens[2]


def to_log_event(
    notification: LogsNotification,
    *,
    now: Callable[[], datetime] | None = None,
) -> LogEvent:
    return LogEvent(
        timestamp=rfc3339_now(now),
        signature=notification.signature,
        slot=notification.slot,
        program_id=infer_program_id(notification.logs),
        logs=notification.logs,
    )


def to_account_event(
    notification: AccountNotification,
    *,
    pubkey: str | None = None,
    now: Callable[[], datetime] | None = None,
) -> AccountEvent:
    """
    Build an AccountEvent. The notification itself carries no pubkey; callers
    that track subscription ids pass it in, otherwise it is "unknown".
    """
    return AccountEvent(
        timestamp=rfc3339_now(now),
        pubkey=pubkey or UNKNOWN,
        slot=notification.slot,
        lamports=notification.lamports,
        data="".join(notification.data),
    )
