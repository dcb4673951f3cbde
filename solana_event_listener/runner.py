"""
Process entrypoint: settings → metrics server → supervisor.

The metrics HTTP server runs as a background task on the same loop as the
listener. SIGINT/SIGTERM stop the supervisor; the metrics server is shut
down on the way out.

Env (see config/settings.py): WS_URL, MODE, PROGRAM_ID, ACCOUNTS, COMMITMENT,
EVENT_LOG_PATH, METRICS_ADDR, WS_PING_INTERVAL, WS_PING_TIMEOUT,
TRACK_ACCOUNT_PUBKEYS, LOG_LEVEL, LOG_FORMAT.
"""

from __future__ import annotations

import asyncio
import signal
from typing import Sequence

from solana_event_listener import __version__
from solana_event_listener.api_server import create_app, start_metrics_server
from solana_event_listener.config import Settings, load_settings
from solana_event_listener.core.exceptions import ConfigurationError
from solana_event_listener.ingestion import ReconnectSupervisor
from solana_event_listener.listener_logging import get_logger
from solana_event_listener.metrics import MetricsRegistry
from solana_event_listener.storage import JsonlWriter

logger = get_logger("main")


def _install_signal_handlers(supervisor: ReconnectSupervisor) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _on_signal, supervisor, sig)
        except (NotImplementedError, RuntimeError):
            # not supported on this platform / not the main thread
            logger.debug("signal_handler_unavailable", signal=sig.name)


def _on_signal(supervisor: ReconnectSupervisor, sig: signal.Signals) -> None:
    logger.info("shutdown_requested", signal=sig.name)
    supervisor.stop()


async def run(settings: Settings) -> None:
    """Serve metrics and run the supervisor until stopped."""
    metrics = MetricsRegistry()
    host, port = settings.metrics_socket_addr()
    metrics_server = start_metrics_server(create_app(metrics), host, port)
    writer = JsonlWriter(settings.event_log_path)
    supervisor = ReconnectSupervisor(settings, writer, metrics)
    _install_signal_handlers(supervisor)
    try:
        await supervisor.run()
    finally:
        await metrics_server.stop()
        logger.info("listener_stopped", events_total=metrics.events(), errors_total=metrics.errors())


def main(argv: Sequence[str] | None = None) -> int:
    """Load settings and run the listener; returns the process exit code."""
    try:
        settings = load_settings(argv)
    except ConfigurationError as e:
        logger.error("startup_config_error", error=str(e))
        return 1

    logger.info(
        "listener_starting",
        version=__version__,
        ws_url=settings.ws_url,
        mode=settings.mode,
        commitment=settings.commitment,
        event_log_path=settings.event_log_path,
        metrics_addr=settings.metrics_addr,
    )
    try:
        asyncio.run(run(settings))
    except ConfigurationError as e:
        logger.error("startup_config_error", error=str(e))
        return 1
    except KeyboardInterrupt:
        logger.info("shutdown_requested", signal="SIGINT")
    return 0
