"""./zen command parsing and handling."""

import re
import time
from typing import Callable, Optional

from loguru import logger

from zenbot.zen.errors import ResolutionError, UsageError
from zenbot.zen.notify import (
    CANCEL_USAGE,
    START_USAGE,
    NotificationSink,
    UserDirectory,
    cancel_summary_text,
    canceled_text,
    no_sessions_text,
    started_text,
)
from zenbot.zen.registry import SessionRegistry
from zenbot.zen.session import CancelResult, Session

ZEN_RE = re.compile(r"^\./zen")
ZEN_ARGS_RE = re.compile(r"^\./zen\s+t?((?:\d+h)?(?:\d+m)?(?:\d+s)?)(?:\s+(.*))?$", re.DOTALL)
CANCEL_RE = re.compile(r"^\./zen cancel(?:\s+(.*))?$", re.DOTALL)

_DURATION_RE = re.compile(r"^t?(?:(\d+)h)?(?:(\d+)m)?(?:(\d+)s)?$")

# Longest accepted zen (about 292 years); keeps ends_at within datetime's range
MAX_DURATION_S = 2562047 * 3600

DEFAULT_INITIAL_GRACE_S = 5.0


def parse_duration(text: str) -> float:
    """
    Parse a duration like ``1h30m``, ``t45m`` or ``90s`` into seconds.

    Components must appear in h, m, s order; each is optional but the
    result must be positive.

    Raises:
        UsageError: The text is empty, malformed, zero or longer than
            MAX_DURATION_S.
    """
    text = (text or "").strip()
    match = _DURATION_RE.match(text)
    if not text or not match or not any(match.groups()):
        raise UsageError(f"invalid duration {text!r}. {START_USAGE}")

    hours, minutes, seconds = (int(g) if g else 0 for g in match.groups())
    total = hours * 3600 + minutes * 60 + seconds
    if total <= 0:
        raise UsageError(f"duration must be positive. {START_USAGE}")
    if total > MAX_DURATION_S:
        raise UsageError(f"duration {text!r} is too long, the maximum is {MAX_DURATION_S // 3600}h.")
    return float(total)


class SessionCommandHandler:
    """
    Translates ./zen commands into registry operations and replies.

    Every outcome, including usage and lookup errors, is answered in the
    originating chat.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        sink: NotificationSink,
        directory: UserDirectory,
        initial_grace_s: float = DEFAULT_INITIAL_GRACE_S,
        clock: Callable[[], float] = time.time,
    ):
        self.registry = registry
        self.sink = sink
        self.directory = directory
        self.initial_grace_s = initial_grace_s
        self.clock = clock

    async def handle_message(
        self,
        user_id: str,
        channel_id: str,
        text: str,
        transport: str = "slack",
    ) -> None:
        """Dispatch a chat message. Messages that are not ./zen commands are ignored."""
        text = (text or "").strip()

        if match := CANCEL_RE.match(text):
            await self.cancel_session(user_id, channel_id, match.group(1), transport)
            return

        if not ZEN_RE.match(text):
            return

        if text.startswith("./zen cancel"):
            await self.sink.send_quietly(CANCEL_USAGE, channel_id, transport)
            return

        match = ZEN_ARGS_RE.match(text)
        if not match:
            await self.sink.send_quietly(START_USAGE, channel_id, transport)
            return

        await self.start_session(user_id, channel_id, match.group(1), match.group(2), transport)

    async def start_session(
        self,
        user_id: str,
        channel_id: str,
        duration_text: str,
        reason_text: Optional[str] = None,
        transport: str = "slack",
    ) -> Optional[Session]:
        """
        Start a zen for `user_id`.

        Returns:
            The created session, or None if the request failed (the failure
            has already been reported to the chat).
        """
        reason = (reason_text or "").strip()

        try:
            duration = parse_duration(duration_text)
            display_name = await self.directory.resolve_user(user_id, transport)
        except UsageError as e:
            await self.sink.send_quietly(str(e), channel_id, transport)
            return None
        except ResolutionError as e:
            logger.error(f"Could not resolve user {user_id}: {e}")
            await self.sink.send_quietly(str(e), channel_id, transport)
            return None

        now = self.clock()
        session = Session(
            user_id=user_id,
            display_name=display_name,
            channel_id=channel_id,
            reason=reason,
            ends_at=now + duration,
            cooldown_until=now + self.initial_grace_s,
            transport=transport,
            created_at=now,
        )
        try:
            reply = started_text(duration_text.strip(), session)
        except (ValueError, OverflowError, OSError) as e:
            logger.error(f"Could not format end time {session.ends_at} for {user_id}: {e}")
            await self.sink.send_quietly(f"invalid duration {duration_text!r}: {e}", channel_id, transport)
            return None

        # Nothing below may fail: the session is live from here on
        self.registry.create(session)
        logger.info(f"Zen {session.id} started by {display_name} for {duration_text} ({reason!r})")

        await self.sink.send_quietly(reply, channel_id, transport)
        return session

    async def cancel_session(
        self,
        user_id: str,
        channel_id: str,
        reason_text: Optional[str] = None,
        transport: str = "slack",
    ) -> CancelResult:
        """
        Cancel the user's zens, optionally only those with a matching reason.

        Sends one acknowledgement per cancelled session followed by a summary,
        or a "no such zens" reply if nothing matched.
        """
        reason = (reason_text or "").strip() or None
        removed = self.registry.cancel(user_id, reason)
        result = CancelResult(sessions=removed)

        if not removed:
            text = no_sessions_text(reason)
            result.messages.append(text)
            await self.sink.send_quietly(text, channel_id, transport)
            return result

        for session in removed:
            text = canceled_text(session)
            result.messages.append(text)
            await self.sink.send_quietly(text, channel_id, transport)

        summary = cancel_summary_text(user_id, result.count)
        result.messages.append(summary)
        await self.sink.send_quietly(summary, channel_id, transport)

        logger.info(f"Cancelled {result.count} zen(s) for {user_id}")
        return result
