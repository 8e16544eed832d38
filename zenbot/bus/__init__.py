"""Message bus module."""

from zenbot.bus.events import (
    ActivitySignal,
    AuthError,
    ConnectionEvent,
    InboundEvent,
    MessageCommand,
    OutboundMessage,
)
from zenbot.bus.queue import MessageBus

__all__ = [
    "ActivitySignal",
    "AuthError",
    "ConnectionEvent",
    "InboundEvent",
    "MessageCommand",
    "OutboundMessage",
    "MessageBus",
]
