"""Zen session types."""

import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime


def _short_id() -> str:
    return uuid.uuid4().hex[:8]


@dataclass
class Session:
    """
    One user's active zen period.

    `ends_at` and `cooldown_until` are epoch seconds. `ends_at` is fixed at
    creation; `cooldown_until` only ever moves forward and is written by the
    registry on behalf of the enforcement gate.
    """
    user_id: str
    """Requesting user identifier"""

    display_name: str
    """User name resolved when the session was created"""

    channel_id: str
    """Chat where notifications for this session are sent"""

    ends_at: float
    """Epoch seconds at which the session becomes eligible for removal"""

    reason: str = ""
    """Optional free text, matched case-insensitively on cancel"""

    cooldown_until: float = 0.0
    """Enforcement is suppressed while now < cooldown_until"""

    transport: str = "slack"
    """Name of the chat transport the session was started from"""

    id: str = field(default_factory=_short_id)
    created_at: float = field(default_factory=time.time)

    def is_expired(self, now: float) -> bool:
        return now >= self.ends_at

    def in_cooldown(self, now: float) -> bool:
        return now < self.cooldown_until

    def matches_reason(self, reason: str | None) -> bool:
        """Empty or missing filter matches every reason."""
        if not reason:
            return True
        return self.reason.lower() == reason.lower()

    @property
    def ends_at_display(self) -> str:
        return datetime.fromtimestamp(self.ends_at).astimezone().strftime("%Y-%m-%d %H:%M:%S %Z")


@dataclass(frozen=True)
class ViolationInfo:
    """Result of a successful enforcement check."""
    session: Session
    label: str
    fired_at: float


@dataclass
class CancelResult:
    """Sessions removed by a cancel request and the replies sent for them."""
    sessions: list[Session] = field(default_factory=list)
    messages: list[str] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.sessions)
