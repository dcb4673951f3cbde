"""
Reconnect supervisor: runs subscription sessions forever with backoff.

Before the first attempt the subscription target is validated; an empty
target (no program id, or no accounts) raises ConfigurationError without
connecting. After that every session failure is retried: count the error,
clear the liveness gauge, wait delay(attempt, 30) seconds, start a fresh
session. Only stop() (or task cancellation) ends the loop; stop() also
cancels a live session so shutdown does not wait for the upstream to drop.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import Awaitable, Callable

from solana_event_listener.config.settings import Settings
from solana_event_listener.core.exceptions import ConfigurationError
from solana_event_listener.ingestion.backoff import DEFAULT_BACKOFF_CAP_SEC, BackoffPolicy
from solana_event_listener.ingestion.session import SubscriptionSession
from solana_event_listener.listener_logging import get_logger
from solana_event_listener.metrics import MetricsRegistry
from solana_event_listener.solana_listener.models import MODE_LOGS
from solana_event_listener.storage import JsonlWriter

logger = get_logger(__name__)

SessionFactory = Callable[[], SubscriptionSession]
SleepFn = Callable[[float], Awaitable[None]]


class ReconnectSupervisor:
    """Outer loop around SubscriptionSession; one session at a time."""

    def __init__(
        self,
        settings: Settings,
        sink: JsonlWriter,
        metrics: MetricsRegistry,
        *,
        session_factory: SessionFactory | None = None,
        backoff: BackoffPolicy | None = None,
        sleep: SleepFn | None = None,
    ) -> None:
        self._settings = settings
        self._sink = sink
        self._metrics = metrics
        self._session_factory = session_factory or (
            lambda: SubscriptionSession.from_settings(settings, sink, metrics)
        )
        self._backoff = backoff or BackoffPolicy(cap_seconds=DEFAULT_BACKOFF_CAP_SEC)
        self._sleep = sleep or self._wait_or_stop
        self._stop = asyncio.Event()
        self.sessions_started = 0

    def stop(self) -> None:
        """Signal the loop to exit; cuts a pending backoff wait short."""
        self._stop.set()

    def validate_target(self) -> None:
        """Raise ConfigurationError when there is nothing to subscribe to."""
        target = self._settings.subscription_target()
        if not target.is_empty():
            return
        if target.mode == MODE_LOGS:
            raise ConfigurationError("No program id provided for logs subscription")
        raise ConfigurationError("No accounts provided for account subscription")

    async def _wait_or_stop(self, delay: float) -> None:
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass

    async def _run_until_stopped(self, session: SubscriptionSession) -> bool:
        """
        Run one session until it ends or stop() is called.

        Returns True when stop() won (the session is cancelled), False when the
        session returned; a session failure is re-raised.
        """
        session_task = asyncio.create_task(session.run(), name="subscription-session")
        stop_task = asyncio.create_task(self._stop.wait())
        try:
            await asyncio.wait({session_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            stop_task.cancel()
            if not session_task.done():
                session_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await session_task
        if session_task.cancelled():
            return True
        session_task.result()
        return False

    async def run(self) -> None:
        """Run sessions until stop(); raises ConfigurationError up front."""
        self.validate_target()
        target = self._settings.subscription_target()
        logger.info(
            "supervisor_started",
            mode=target.mode,
            program_id=target.program_id,
            account_count=len(target.accounts),
            commitment=self._settings.commitment,
        )
        while not self._stop.is_set():
            session = self._session_factory()
            self.sessions_started += 1
            try:
                stopped = await self._run_until_stopped(session)
            except asyncio.CancelledError:
                self._metrics.set_connected(False)
                raise
            except Exception as e:
                self._metrics.record_error()
                self._metrics.set_connected(False)
                logger.error(
                    "subscription_error",
                    mode=target.mode,
                    error=str(e),
                    error_class=type(e).__name__,
                )
            else:
                self._metrics.set_connected(False)
                if stopped:
                    logger.info("session_cancelled_on_stop", mode=target.mode)
                    break
                # run() always raises; reaching here means the session gave up quietly
                logger.info("subscription_loop_exited", mode=target.mode)
                return

            if self._stop.is_set():
                break
            attempt = self._backoff.attempt
            delay = self._backoff.next_delay()
            logger.warning(
                "reconnect_scheduled",
                backoff_sec=delay,
                attempt=attempt + 1,
                sessions_started=self.sessions_started,
            )
            await self._sleep(delay)
        logger.info("supervisor_stopped", sessions_started=self.sessions_started)
