"""
Main entrypoint: Solana WebSocket event listener with a Prometheus metrics endpoint.

Subscribes to program logs (MODE=logs, PROGRAM_ID) or account changes
(MODE=account, ACCOUNTS), appends each event to EVENT_LOG_PATH as JSON lines
and serves /metrics and /health on METRICS_ADDR. Settings come from CLI flags,
the environment, or a .env file; run with --help for the flag list.

Installed console script: solana-event-listener
"""

import sys

from solana_event_listener.runner import main

if __name__ == "__main__":
    sys.exit(main())
