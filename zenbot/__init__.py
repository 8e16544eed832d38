"""zenbot - leave me alone, I'm in the zone."""

__version__ = "0.3.0"
__logo__ = "🧘"

from zenbot.bus.queue import MessageBus
from zenbot.zen.registry import SessionRegistry
from zenbot.zen.session import Session

__all__ = [
    "__version__",
    "__logo__",
    "MessageBus",
    "SessionRegistry",
    "Session",
]
