"""Message bus for inter-component communication."""

import asyncio
from typing import Optional

from loguru import logger

from zenbot.bus.events import InboundEvent, OutboundMessage


class MessageBus:
    """
    Message bus for communication between Channels and the zen loop.

    The bus provides two queues:
    - Inbound: classified events from chat platforms → ZenLoop
    - Outbound: notifications from the zen core → chat platforms

    Usage:
        bus = MessageBus()

        # Channel publishes an inbound event
        await bus.publish_inbound(ActivitySignal(channel="slack", user_id="U1", label="typing"))

        # ZenLoop consumes inbound events
        event = await bus.consume_inbound()

        # Core publishes outbound message
        await bus.publish_outbound(OutboundMessage(...))

        # ChannelManager consumes outbound message
        msg = await bus.consume_outbound()
    """

    def __init__(self, max_size: int = 1000):
        """
        Initialize the message bus.

        Args:
            max_size: Maximum queue size for each direction.
        """
        self._inbound: asyncio.Queue[InboundEvent] = asyncio.Queue(maxsize=max_size)
        self._outbound: asyncio.Queue[OutboundMessage] = asyncio.Queue(maxsize=max_size)
        self._running = True

    async def publish_inbound(self, event: InboundEvent) -> bool:
        """
        Publish an inbound event.

        Args:
            event: The classified inbound event.

        Returns:
            False if the event was dropped.
        """
        if not self._running:
            logger.warning("Bus is stopped, dropping inbound event")
            return False

        try:
            self._inbound.put_nowait(event)
            logger.debug(f"Published inbound {type(event).__name__} from {event.channel}")
            return True
        except asyncio.QueueFull:
            logger.warning("Inbound queue full, dropping event")
            return False

    async def consume_inbound(self, timeout: Optional[float] = None) -> InboundEvent:
        """
        Consume an inbound event.

        Args:
            timeout: Optional timeout in seconds.

        Returns:
            The next inbound event.

        Raises:
            asyncio.TimeoutError: If timeout is reached.
        """
        if timeout is not None:
            return await asyncio.wait_for(self._inbound.get(), timeout=timeout)
        return await self._inbound.get()

    async def publish_outbound(self, msg: OutboundMessage) -> bool:
        """
        Publish an outbound message.

        Args:
            msg: The outbound message to publish.

        Returns:
            False if the message was dropped.
        """
        if not self._running:
            logger.warning("Bus is stopped, dropping outbound message")
            return False

        try:
            self._outbound.put_nowait(msg)
            logger.debug(f"Published outbound message to {msg.channel}:{msg.chat_id}")
            return True
        except asyncio.QueueFull:
            logger.warning("Outbound queue full, dropping message")
            return False

    async def consume_outbound(self, timeout: Optional[float] = None) -> OutboundMessage:
        """
        Consume an outbound message.

        Args:
            timeout: Optional timeout in seconds.

        Returns:
            The next outbound message.

        Raises:
            asyncio.TimeoutError: If timeout is reached.
        """
        if timeout is not None:
            return await asyncio.wait_for(self._outbound.get(), timeout=timeout)
        return await self._outbound.get()

    def stop(self) -> None:
        """Stop the bus and reject new messages."""
        self._running = False
        logger.info("Message bus stopped")

    def start(self) -> None:
        """Start the bus."""
        self._running = True
        logger.info("Message bus started")

    @property
    def is_running(self) -> bool:
        """Check if the bus is running."""
        return self._running

    @property
    def inbound_size(self) -> int:
        """Get the current size of the inbound queue."""
        return self._inbound.qsize()

    @property
    def outbound_size(self) -> int:
        """Get the current size of the outbound queue."""
        return self._outbound.qsize()

    def task_done_inbound(self) -> None:
        """Mark one inbound event as processed."""
        try:
            self._inbound.task_done()
        except ValueError:
            pass  # more task_done() calls than items

    def task_done_outbound(self) -> None:
        """Mark one outbound message as processed."""
        try:
            self._outbound.task_done()
        except ValueError:
            pass  # more task_done() calls than items
