"""Zen session core: registry, expiration sweeper, enforcement gate and commands."""

from zenbot.zen.commands import SessionCommandHandler, parse_duration
from zenbot.zen.errors import (
    DeliveryError,
    FatalAuthError,
    ResolutionError,
    UsageError,
    ZenError,
)
from zenbot.zen.gate import EnforcementGate
from zenbot.zen.notify import BusNotificationSink, NotificationSink, UserDirectory
from zenbot.zen.registry import SessionRegistry
from zenbot.zen.session import CancelResult, Session, ViolationInfo
from zenbot.zen.sweeper import ExpirationSweeper

__all__ = [
    "Session",
    "ViolationInfo",
    "CancelResult",
    "SessionRegistry",
    "ExpirationSweeper",
    "EnforcementGate",
    "SessionCommandHandler",
    "parse_duration",
    "NotificationSink",
    "UserDirectory",
    "BusNotificationSink",
    "ZenError",
    "UsageError",
    "ResolutionError",
    "DeliveryError",
    "FatalAuthError",
]
