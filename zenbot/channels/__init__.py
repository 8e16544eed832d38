"""Channel implementations for zenbot."""

from zenbot.channels.base import BaseChannel
from zenbot.channels.manager import ChannelManager, register_channel, get_channel_class

# Channel implementations
from zenbot.channels.slack import SlackChannel

__all__ = [
    # Base
    "BaseChannel",
    "ChannelManager",
    "register_channel",
    "get_channel_class",
    # Implementations
    "SlackChannel",
]
