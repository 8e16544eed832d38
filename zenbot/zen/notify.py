"""Collaborator interfaces used by the zen core, and the outgoing message texts."""

from abc import ABC, abstractmethod

from loguru import logger

from zenbot.bus.events import OutboundMessage
from zenbot.bus.queue import MessageBus
from zenbot.zen.errors import DeliveryError
from zenbot.zen.session import Session


START_USAGE = "Usage: `./zen <duration e.g. 1h30m> [reason - optional]`"
CANCEL_USAGE = "Usage: `./zen cancel [reason - optional]`"


def mention(user_id: str) -> str:
    return f"<@{user_id}>"


def started_text(duration_text: str, session: Session) -> str:
    return f"Added a zen for {duration_text} ({session.reason}), ends at [{session.ends_at_display}]."


def ended_text(session: Session) -> str:
    return f"{mention(session.user_id)}: Be free, for your zen ({session.reason}) has ended!"


def violation_text(session: Session, label: str) -> str:
    return f"{mention(session.user_id)}-- for {label} during your zen period ({session.reason})."


def canceled_text(session: Session) -> str:
    return f"({session.reason}) zen canceled."


def cancel_summary_text(user_id: str, count: int) -> str:
    return f"{mention(user_id)}-{'-' * count} for canceling {count} zens."


def no_sessions_text(reason_filter: str | None) -> str:
    if reason_filter:
        return "you do not have any such running zens"
    return "you do not have any running zens"


class NotificationSink(ABC):
    """Best-effort outbound delivery."""

    @abstractmethod
    async def send(self, text: str, channel_id: str, transport: str = "slack") -> None:
        """
        Deliver `text` to `channel_id` on `transport`.

        Raises:
            DeliveryError: The message could not be handed off.
        """

    async def send_quietly(self, text: str, channel_id: str, transport: str = "slack") -> bool:
        """Send, logging instead of raising on failure. Returns True on success."""
        try:
            await self.send(text, channel_id, transport)
            return True
        except DeliveryError as e:
            logger.error(f"Failed to deliver message to {transport}:{channel_id}: {e}")
        except Exception as e:
            logger.exception(f"Unexpected error delivering to {transport}:{channel_id}: {e}")
        return False


class UserDirectory(ABC):
    """Resolves user ids to display names."""

    @abstractmethod
    async def resolve_user(self, user_id: str, transport: str = "slack") -> str:
        """
        Raises:
            ResolutionError: The user could not be found.
        """


class BusNotificationSink(NotificationSink):
    """Publishes notifications to the outbound queue of the message bus."""

    def __init__(self, bus: MessageBus):
        self.bus = bus

    async def send(self, text: str, channel_id: str, transport: str = "slack") -> None:
        if not self.bus.is_running:
            raise DeliveryError("message bus is stopped")
        published = await self.bus.publish_outbound(OutboundMessage(
            channel=transport,
            chat_id=channel_id,
            content=text,
        ))
        if not published:
            raise DeliveryError(f"outbound queue rejected message for {transport}:{channel_id}")
