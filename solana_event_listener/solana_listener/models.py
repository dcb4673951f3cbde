"""
Data models for Solana listener output.

LogEvent and AccountEvent are the normalized records appended to the JSONL
log; SubscriptionTarget is what a session subscribes to. All are frozen:
events are built once by the normalizer and never mutated.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

MODE_LOGS = "logs"
MODE_ACCOUNT = "account"
MODES = (MODE_LOGS, MODE_ACCOUNT)

COMMITMENT_PROCESSED = "processed"
COMMITMENT_CONFIRMED = "confirmed"
COMMITMENT_FINALIZED = "finalized"
COMMITMENTS = (COMMITMENT_PROCESSED, COMMITMENT_CONFIRMED, COMMITMENT_FINALIZED)

# Placeholder for fields the wire format does not carry
UNKNOWN = "unknown"


@dataclass(frozen=True)
class SubscriptionTarget:
    """
    What one session subscribes to: a program id (logs mode) or an ordered
    set of account addresses (account mode).
    """

    mode: str
    program_id: str | None = None
    accounts: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def for_program(cls, program_id: str) -> "SubscriptionTarget":
        return cls(mode=MODE_LOGS, program_id=program_id)

    @classmethod
    def for_accounts(cls, accounts: list[str] | tuple[str, ...]) -> "SubscriptionTarget":
        return cls(mode=MODE_ACCOUNT, accounts=tuple(accounts))

    def is_empty(self) -> bool:
        """True when there is nothing to subscribe to for this mode."""
        if self.mode == MODE_LOGS:
            return not (self.program_id or "").strip()
        return not self.accounts


@dataclass(frozen=True)
class LogEvent:
    """Program log lines from one transaction (logsNotification)."""

    timestamp: str
    """RFC3339 UTC wall-clock time at parse time."""
    signature: str
    """Transaction signature (base58)."""
    slot: int
    program_id: str
    """Inferred from the first log line; "unknown" when it cannot be."""
    logs: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "signature": self.signature,
            "slot": self.slot,
            "program_id": self.program_id,
            "logs": list(self.logs),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LogEvent":
        return cls(
            timestamp=data["timestamp"],
            signature=data["signature"],
            slot=int(data["slot"]),
            program_id=data["program_id"],
            logs=tuple(data["logs"]),
        )


@dataclass(frozen=True)
class AccountEvent:
    """Account state change (accountNotification)."""

    timestamp: str
    """RFC3339 UTC wall-clock time at parse time."""
    pubkey: str
    """Account address; "unknown" unless subscription tracking is enabled."""
    slot: int
    lamports: int
    data: str
    """Base64 account data, segments joined without separator."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "pubkey": self.pubkey,
            "slot": self.slot,
            "lamports": self.lamports,
            "data": self.data,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AccountEvent":
        return cls(
            timestamp=data["timestamp"],
            pubkey=data["pubkey"],
            slot=int(data["slot"]),
            lamports=int(data["lamports"]),
            data=data["data"],
        )


Event = LogEvent | AccountEvent
