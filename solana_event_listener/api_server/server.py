"""
Metrics HTTP server — uvicorn running the metrics app as a background task.

The server shares the listener's event loop and lives for the whole process.
A bind failure is logged and ends only the server task; the listener keeps
streaming without an HTTP endpoint.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import Iterator

import uvicorn
from fastapi import FastAPI

from solana_event_listener.listener_logging import get_logger

logger = get_logger(__name__)

SHUTDOWN_TIMEOUT_SEC = 5.0


class _EmbeddedServer(uvicorn.Server):
    """uvicorn.Server that leaves process signal handling to the listener."""

    def install_signal_handlers(self) -> None:
        return None

    @contextlib.contextmanager
    def capture_signals(self) -> Iterator[None]:
        yield


class MetricsServer:
    """Handle for a running metrics server task."""

    def __init__(self, app: FastAPI, host: str, port: int) -> None:
        self.host = host
        self.port = port
        self._server = _EmbeddedServer(
            uvicorn.Config(
                app,
                host=host,
                port=port,
                log_level="warning",
                access_log=False,
                lifespan="off",
            )
        )
        self._task: asyncio.Task[None] | None = None

    @property
    def started(self) -> bool:
        return self._server.started

    def start(self) -> asyncio.Task[None]:
        if self._task is None:
            self._task = asyncio.create_task(self._serve(), name="metrics-server")
        return self._task

    async def _serve(self) -> None:
        logger.info("metrics_server_starting", host=self.host, port=self.port)
        try:
            await self._server.serve()
        except SystemExit:
            # uvicorn exits the process when it cannot bind; contain it here
            logger.error("metrics_server_bind_failed", host=self.host, port=self.port)
            return
        except OSError as e:
            logger.error("metrics_server_error", host=self.host, port=self.port, error=str(e))
            return
        logger.info("metrics_server_stopped", host=self.host, port=self.port)

    async def stop(self) -> None:
        """Ask uvicorn to exit and wait for the task; cancel it if it hangs."""
        if self._task is None:
            return
        self._server.should_exit = True
        try:
            await asyncio.wait_for(self._task, timeout=SHUTDOWN_TIMEOUT_SEC)
        except asyncio.TimeoutError:
            logger.warning("metrics_server_shutdown_timeout", timeout_sec=SHUTDOWN_TIMEOUT_SEC)
        finally:
            self._task = None


def start_metrics_server(app: FastAPI, host: str, port: int) -> MetricsServer:
    """Start serving app on host:port in the running loop; returns the handle."""
    server = MetricsServer(app, host, port)
    server.start()
    return server
