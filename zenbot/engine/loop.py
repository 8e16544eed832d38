"""Zen loop - dispatches inbound events to the zen core.

Each inbound event is handled in its own asyncio task:
- MessageCommand  → SessionCommandHandler.handle_message
- ActivitySignal  → EnforcementGate.report_activity
- ConnectionEvent → logged
- AuthError       → logged, the loop stops and raises FatalAuthError

Fan-out is unbounded: one short task per event. Tasks only touch shared
state through SessionRegistry, which serializes every operation.
"""

from __future__ import annotations

import asyncio
from typing import Any, Coroutine, Optional

from loguru import logger

from zenbot.bus import (
    ActivitySignal,
    AuthError,
    ConnectionEvent,
    InboundEvent,
    MessageBus,
    MessageCommand,
)
from zenbot.zen.commands import SessionCommandHandler
from zenbot.zen.errors import FatalAuthError
from zenbot.zen.gate import EnforcementGate


class ZenLoop:
    """Main loop - consumes the inbound queue and fans events out to tasks."""

    def __init__(
        self,
        bus: MessageBus,
        handler: SessionCommandHandler,
        gate: EnforcementGate,
        debug: bool = False,
    ):
        self.bus = bus
        self.handler = handler
        self.gate = gate
        self.debug = debug

        self._running = False
        self._task: Optional[asyncio.Task] = None
        self._tasks: set[asyncio.Task] = set()

    async def run(self) -> None:
        """
        Consume inbound events until stopped.

        Raises:
            FatalAuthError: The transport reported invalid credentials.
        """
        self._running = True
        logger.info("ZenLoop started, listening for inbound events...")

        while self._running:
            try:
                event = await self.bus.consume_inbound()
            except asyncio.CancelledError:
                break

            try:
                self.dispatch(event)
            except FatalAuthError:
                self._running = False
                raise
            except Exception as e:
                logger.error(f"Error dispatching {type(event).__name__}: {e}")
            finally:
                self.bus.task_done_inbound()

    def dispatch(self, event: InboundEvent) -> Optional[asyncio.Task]:
        """
        Route one event. Command and activity events are scheduled as tasks
        and the task is returned; other events are handled inline.

        Raises:
            FatalAuthError: For AuthError events.
        """
        if isinstance(event, MessageCommand):
            return self._spawn(
                self.handler.handle_message(
                    event.sender_id, event.chat_id, event.content, event.channel
                ),
                f"command from {event.channel}:{event.sender_id}",
            )

        if isinstance(event, ActivitySignal):
            return self._spawn(
                self.gate.report_activity(event.user_id, event.label),
                f"activity '{event.label}' from {event.channel}:{event.user_id}",
            )

        if isinstance(event, ConnectionEvent):
            logger.info(f"Connected to {event.channel}")
            if self.debug:
                logger.debug(f"{event.channel} connection info: {event.info}")
            return None

        if isinstance(event, AuthError):
            logger.critical(f"Invalid {event.channel} credentials: {event.reason}")
            raise FatalAuthError(f"invalid {event.channel} credentials: {event.reason}")

        logger.warning(f"Ignoring unknown inbound event {event!r}")
        return None

    def _spawn(self, coro: Coroutine[Any, Any, Any], description: str) -> asyncio.Task:
        task = asyncio.create_task(self._guard(coro, description))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _guard(self, coro: Coroutine[Any, Any, Any], description: str) -> None:
        try:
            await coro
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception(f"Unhandled error processing {description}")

    @property
    def pending(self) -> int:
        """Number of event tasks still running."""
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every in-flight event task."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def start_background(self) -> asyncio.Task:
        """Run the loop as a background task and return it."""
        if not self._task:
            self._task = asyncio.create_task(self.run())
        return self._task

    def stop(self) -> None:
        """Stop consuming events. In-flight tasks are left to finish."""
        self._running = False
        if self._task:
            self._task.cancel()
            self._task = None
        logger.info("ZenLoop stopped")
