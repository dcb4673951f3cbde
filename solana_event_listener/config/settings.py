"""
Application settings: CLI flags with environment fallbacks.

Every flag falls back to an environment variable (loaded from .env first),
then to a default. load_settings() validates the result and raises
ConfigurationError instead of exiting, so the entrypoint decides how to fail.

    --ws-url / WS_URL                    Solana WebSocket endpoint (required)
    --mode / MODE                        logs | account (required)
    --program-id / PROGRAM_ID            program to watch in logs mode
    --accounts / ACCOUNTS                comma-separated addresses for account mode
    --commitment / COMMITMENT            processed | confirmed | finalized
    --event-log-path / EVENT_LOG_PATH    JSONL output file
    --metrics-addr / METRICS_ADDR        host:port for the metrics server
    --ws-ping-interval / WS_PING_INTERVAL  keepalive ping period, 0 disables
    --ws-ping-timeout / WS_PING_TIMEOUT    pong deadline, 0 disables
    --track-account-pubkeys / TRACK_ACCOUNT_PUBKEYS
                                         resolve account-mode pubkeys from subscription ids
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from typing import Mapping, Sequence

from solana_event_listener.config.env import env_bool, env_str, load_listener_env
from solana_event_listener.core.exceptions import ConfigurationError
from solana_event_listener.solana_listener.models import (
    COMMITMENT_FINALIZED,
    COMMITMENTS,
    MODE_ACCOUNT,
    MODE_LOGS,
    MODES,
    SubscriptionTarget,
)

DEFAULT_EVENT_LOG_PATH = "./events.jsonl"
DEFAULT_METRICS_ADDR = "0.0.0.0:9108"
DEFAULT_WS_PING_INTERVAL = 30.0
DEFAULT_WS_PING_TIMEOUT = 10.0


def parse_accounts(raw: str | None) -> list[str]:
    """Split a comma-separated account list; trims entries and drops blanks."""
    if raw is None:
        return []
    return [a.strip() for a in raw.split(",") if a.strip()]


def parse_metrics_addr(addr: str) -> tuple[str, int]:
    """Parse host:port (IPv6 hosts in brackets). Raises ConfigurationError."""
    host, sep, port_raw = addr.strip().rpartition(":")
    if not sep or not host:
        raise ConfigurationError(f"Invalid METRICS_ADDR: {addr}")
    host = host.strip("[]")
    try:
        port = int(port_raw)
    except ValueError:
        raise ConfigurationError(f"Invalid METRICS_ADDR: {addr}") from None
    if not (0 <= port <= 65535):
        raise ConfigurationError(f"Invalid METRICS_ADDR: {addr}")
    return host, port


@dataclass(frozen=True)
class Settings:
    """Resolved listener configuration; built once at startup."""

    ws_url: str
    mode: str
    program_id: str | None = None
    accounts: str | None = None
    commitment: str = COMMITMENT_FINALIZED
    event_log_path: str = DEFAULT_EVENT_LOG_PATH
    metrics_addr: str = DEFAULT_METRICS_ADDR
    ws_ping_interval: float | None = DEFAULT_WS_PING_INTERVAL
    ws_ping_timeout: float | None = DEFAULT_WS_PING_TIMEOUT
    track_account_pubkeys: bool = False

    def parse_accounts(self) -> list[str]:
        return parse_accounts(self.accounts)

    def metrics_socket_addr(self) -> tuple[str, int]:
        return parse_metrics_addr(self.metrics_addr)

    def subscription_target(self) -> SubscriptionTarget:
        if self.mode == MODE_LOGS:
            return SubscriptionTarget.for_program((self.program_id or "").strip())
        return SubscriptionTarget.for_accounts(self.parse_accounts())

    def validate(self) -> "Settings":
        """Check mode-specific requirements; return self for chaining."""
        if not self.ws_url.strip():
            raise ConfigurationError("WS_URL must be set")
        if self.mode not in MODES:
            raise ConfigurationError(
                f"MODE must be one of {', '.join(MODES)} (got {self.mode!r})"
            )
        if self.commitment not in COMMITMENTS:
            raise ConfigurationError(
                f"COMMITMENT must be one of {', '.join(COMMITMENTS)} (got {self.commitment!r})"
            )
        if self.mode == MODE_LOGS and self.program_id is None:
            raise ConfigurationError("MODE=logs requires PROGRAM_ID to be set")
        if self.mode == MODE_ACCOUNT and self.accounts is None:
            raise ConfigurationError("MODE=account requires ACCOUNTS to be set")
        self.metrics_socket_addr()
        return self


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="solana-event-listener",
        description="Listen to Solana blockchain events via WebSocket",
    )
    parser.add_argument("--ws-url", help="Solana WebSocket endpoint (env WS_URL)")
    parser.add_argument("--mode", help="Operation mode: logs or account (env MODE)")
    parser.add_argument("--program-id", help="Program ID for logs mode (env PROGRAM_ID)")
    parser.add_argument("--accounts", help="Comma-separated account addresses (env ACCOUNTS)")
    parser.add_argument("--commitment", help="Commitment level (env COMMITMENT)")
    parser.add_argument("--event-log-path", help="Path to JSONL event log file (env EVENT_LOG_PATH)")
    parser.add_argument("--metrics-addr", help="Metrics server bind address (env METRICS_ADDR)")
    parser.add_argument("--ws-ping-interval", help="Seconds between keepalive pings (env WS_PING_INTERVAL)")
    parser.add_argument("--ws-ping-timeout", help="Seconds to wait for a pong (env WS_PING_TIMEOUT)")
    parser.add_argument(
        "--track-account-pubkeys",
        action="store_true",
        default=None,
        help="Resolve account-mode pubkeys from subscription ids (env TRACK_ACCOUNT_PUBKEYS)",
    )
    return parser


def _optional_seconds(raw: str | None, default: float, name: str) -> float | None:
    """Parse a keepalive duration; 0 or negative disables it."""
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number (got {raw!r})") from None
    return value if value > 0 else None


def load_settings(
    argv: Sequence[str] | None = None,
    environ: Mapping[str, str] | None = None,
    *,
    load_env_file: bool = True,
) -> Settings:
    """
    Resolve Settings from argv (sys.argv[1:] when None) and environment.

    Raises ConfigurationError on missing or invalid values.
    """
    if load_env_file and environ is None:
        load_listener_env()
    args = _build_parser().parse_args(argv)

    def pick(cli_value: str | None, env_name: str, default: str | None = None) -> str | None:
        if cli_value is not None and cli_value.strip():
            return cli_value.strip()
        return env_str(env_name, default, environ)

    ws_url = pick(args.ws_url, "WS_URL")
    if ws_url is None:
        raise ConfigurationError("WS_URL must be set")
    mode = pick(args.mode, "MODE")
    if mode is None:
        raise ConfigurationError("MODE must be set (logs or account)")

    track = args.track_account_pubkeys
    if track is None:
        track = env_bool("TRACK_ACCOUNT_PUBKEYS", False, environ)

    settings = Settings(
        ws_url=ws_url,
        mode=mode.lower(),
        program_id=pick(args.program_id, "PROGRAM_ID"),
        accounts=args.accounts if args.accounts is not None else env_str("ACCOUNTS", None, environ),
        commitment=(pick(args.commitment, "COMMITMENT", COMMITMENT_FINALIZED) or "").lower(),
        event_log_path=pick(args.event_log_path, "EVENT_LOG_PATH", DEFAULT_EVENT_LOG_PATH),
        metrics_addr=pick(args.metrics_addr, "METRICS_ADDR", DEFAULT_METRICS_ADDR),
        ws_ping_interval=_optional_seconds(
            pick(args.ws_ping_interval, "WS_PING_INTERVAL"), DEFAULT_WS_PING_INTERVAL, "WS_PING_INTERVAL"
        ),
        ws_ping_timeout=_optional_seconds(
            pick(args.ws_ping_timeout, "WS_PING_TIMEOUT"), DEFAULT_WS_PING_TIMEOUT, "WS_PING_TIMEOUT"
        ),
        track_account_pubkeys=bool(track),
    )
    return settings.validate()
