"""Enforcement gate: turns activity signals into rate-limited violation notices."""

import time
from typing import Callable, Optional

from loguru import logger

from zenbot.zen.notify import NotificationSink, violation_text
from zenbot.zen.registry import SessionRegistry
from zenbot.zen.session import ViolationInfo

DEFAULT_COOLDOWN_S = 10.0


class EnforcementGate:
    """
    Reports activity by users who are supposed to be resting.

    Only the user's earliest active session is considered. At most one
    notification is sent per session per cooldown window, no matter how many
    signals arrive concurrently: the cooldown check and the cooldown update
    are a single registry operation.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        sink: NotificationSink,
        cooldown_s: float = DEFAULT_COOLDOWN_S,
        clock: Callable[[], float] = time.time,
    ):
        self.registry = registry
        self.sink = sink
        self.cooldown_s = cooldown_s
        self.clock = clock

    async def report_activity(
        self,
        user_id: str,
        label: str,
        now: Optional[float] = None,
    ) -> Optional[ViolationInfo]:
        """
        Record that `user_id` did `label`.

        Returns:
            The violation if one was reported, otherwise None (no session, or
            suppressed by the cooldown).
        """
        if now is None:
            now = self.clock()

        violation = self.registry.try_enforce(user_id, now, self.cooldown_s, label=label)
        if violation is None:
            return None

        session = violation.session
        logger.info(f"Zen violation by {session.display_name}: {label}")
        await self.sink.send_quietly(
            violation_text(session, label), session.channel_id, session.transport
        )
        return violation
