"""Expiration sweeper - periodically retires zens whose time is up."""

import asyncio
import time
from typing import Callable

from loguru import logger

from zenbot.zen.notify import NotificationSink, ended_text
from zenbot.zen.registry import SessionRegistry
from zenbot.zen.session import Session

# Default interval between sweeps: 1 second
DEFAULT_SWEEP_INTERVAL_S = 1.0


class ExpirationSweeper:
    """
    Background task that removes expired sessions and announces them.

    How it works:
    1. Sleep for `interval_s`
    2. Remove every session whose end time has passed (one registry call)
    3. Send an "ended" notification for each removed session
    4. Go back to 1

    A pass always finishes before the next sleep starts, so sweeps never
    overlap. A session may outlive its end time by up to one interval.
    Delivery failures are logged; the session stays removed.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        sink: NotificationSink,
        interval_s: float = DEFAULT_SWEEP_INTERVAL_S,
        clock: Callable[[], float] = time.time,
    ):
        self.registry = registry
        self.sink = sink
        self.interval_s = interval_s
        self.clock = clock
        self._running = False
        self._task: asyncio.Task | None = None

    async def start(self) -> None:
        """Start the sweep loop."""
        if self._running:
            logger.warning("Expiration sweeper already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info(f"Expiration sweeper started (interval: {self.interval_s}s)")

    def stop(self) -> None:
        """Stop the sweep loop."""
        self._running = False
        if self._task:
            self._task.cancel()
            self._task = None
        logger.info("Expiration sweeper stopped")

    async def _run_loop(self) -> None:
        while self._running:
            try:
                await asyncio.sleep(self.interval_s)
                if self._running:
                    await self.sweep_once()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Sweep error: {e}")

    async def sweep_once(self, now: float | None = None) -> list[Session]:
        """
        Run a single sweep.

        Args:
            now: Epoch seconds to sweep against. Defaults to the clock.

        Returns:
            The sessions removed by this pass.
        """
        if now is None:
            now = self.clock()

        expired = self.registry.sweep_expired(now)
        for session in expired:
            logger.info(f"Zen {session.id} of {session.display_name} ({session.reason!r}) ended")
            await self.sink.send_quietly(ended_text(session), session.channel_id, session.transport)
        return expired

    def is_running(self) -> bool:
        """Check whether the sweep loop is running."""
        return self._running and self._task is not None and not self._task.done()
