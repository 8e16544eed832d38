"""Event types carried by the message bus.

Channels classify raw transport events into one of the inbound variants
below before publishing. Nothing past the bus sees transport objects.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Union


@dataclass
class MessageCommand:
    """A chat message that may contain a ./zen command."""

    channel: str
    """Transport name (slack, ...)"""

    sender_id: str
    """User who sent the message"""

    chat_id: str
    """Chat/channel the message was posted in"""

    content: str
    """Message text"""

    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class ActivitySignal:
    """A user did something a resting user should not be doing."""

    channel: str
    user_id: str
    label: str
    """Human readable activity, e.g. "typing" """

    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class ConnectionEvent:
    """The transport (re)connected."""

    channel: str
    info: dict[str, Any] = field(default_factory=dict)


@dataclass
class AuthError:
    """The transport rejected our credentials."""

    channel: str
    reason: str = ""


InboundEvent = Union[MessageCommand, ActivitySignal, ConnectionEvent, AuthError]


@dataclass
class OutboundMessage:
    """A message to deliver through a channel."""

    channel: str
    chat_id: str
    content: str
