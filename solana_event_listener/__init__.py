"""
Solana event listener — WebSocket logs/account subscriptions to a JSONL log.

Runs 24/7: subscribes to a Solana RPC WebSocket (logsSubscribe for one program
or accountSubscribe for a list of accounts), normalizes each notification into
a LogEvent or AccountEvent, appends it durably to a JSONL file, and exposes
Prometheus counters over HTTP. Reconnects with capped exponential backoff on
any transport or protocol failure.
"""

__version__ = "0.1.0"
