"""
Structured logging for the Solana event listener.

JSON logs with timestamp, event_type and keyword context.
Use get_logger() in every module for aggregation-friendly output.
"""

from solana_event_listener.listener_logging.logger import configure_structlog, get_logger

__all__ = ["configure_structlog", "get_logger"]
