"""Registry of live zen sessions."""

import threading
from dataclasses import replace
from typing import Optional

from loguru import logger

from zenbot.zen.session import Session, ViolationInfo


class SessionRegistry:
    """
    Thread-safe owner of every live Session.

    All reads and writes go through this class. Each operation, including the
    check-and-update ones (`try_enforce`, `cancel`, `sweep_expired`), runs
    inside a single critical section, so a concurrent caller never sees a
    session between its check and its mutation.

    Sessions are kept in creation order. Lookups return copies; only
    sessions that have already been removed are handed out as-is.

    Usage:
        registry = SessionRegistry()
        registry.create(Session(user_id="U1", display_name="ann", channel_id="C1", ends_at=t))

        hit = registry.try_enforce("U1", now=time.time(), cooldown=10)
        removed = registry.sweep_expired(time.time())
    """

    def __init__(self) -> None:
        self._sessions: list[Session] = []
        self._lock = threading.Lock()

    def create(self, session: Session) -> None:
        """Register a fully constructed session."""
        with self._lock:
            self._sessions.append(session)
        logger.debug(f"Zen {session.id} created for {session.user_id}, ends at {session.ends_at}")

    def find_active(self, user_id: str) -> Optional[Session]:
        """Return a snapshot of the user's earliest-created session, if any."""
        with self._lock:
            for session in self._sessions:
                if session.user_id == user_id:
                    return replace(session)
        return None

    def sessions_for(self, user_id: str) -> list[Session]:
        with self._lock:
            return [replace(s) for s in self._sessions if s.user_id == user_id]

    def snapshot(self) -> list[Session]:
        with self._lock:
            return [replace(s) for s in self._sessions]

    def cancel(self, user_id: str, reason_filter: Optional[str] = None) -> list[Session]:
        """
        Remove every session of `user_id` whose reason matches `reason_filter`.

        The reason is compared case-insensitively. An empty or missing filter
        removes all of the user's sessions.

        Returns:
            The removed sessions, in creation order. Empty if nothing matched.
        """
        with self._lock:
            removed, kept = [], []
            for s in self._sessions:
                if s.user_id == user_id and s.matches_reason(reason_filter):
                    removed.append(s)
                else:
                    kept.append(s)
            self._sessions = kept

        if removed:
            logger.debug(f"Cancelled {len(removed)} zen(s) for {user_id}")
        return removed

    def sweep_expired(self, now: float) -> list[Session]:
        """Remove and return every session with ends_at <= now."""
        with self._lock:
            expired, kept = [], []
            for s in self._sessions:
                (expired if s.is_expired(now) else kept).append(s)
            self._sessions = kept

        if expired:
            logger.debug(f"Swept {len(expired)} expired zen(s)")
        return expired

    def update_cooldown(self, session_ref: Session | str, new_cooldown: float) -> bool:
        """
        Advance one session's cooldown.

        The cooldown never moves backwards. If the session has already been
        removed (cancelled or expired) this is a no-op.

        Args:
            session_ref: The session, or its id.
            new_cooldown: Epoch seconds until which enforcement is suppressed.

        Returns:
            True if a live session was found.
        """
        session_id = session_ref if isinstance(session_ref, str) else session_ref.id
        with self._lock:
            session = self._get(session_id)
            if session is None:
                return False
            session.cooldown_until = max(session.cooldown_until, new_cooldown)
            return True

    def try_enforce(
        self,
        user_id: str,
        now: float,
        cooldown: float,
        label: str = "",
    ) -> Optional[ViolationInfo]:
        """
        Check the user's earliest session and, if its cooldown has elapsed,
        start a new cooldown window.

        Only one caller can win a given window: the check and the cooldown
        update happen under the same lock acquisition.

        Returns:
            ViolationInfo for the caller that should notify, otherwise None.
        """
        with self._lock:
            session = next((s for s in self._sessions if s.user_id == user_id), None)
            if session is None or session.in_cooldown(now):
                return None
            session.cooldown_until = max(session.cooldown_until, now + cooldown)
            return ViolationInfo(session=replace(session), label=label, fired_at=now)

    def _get(self, session_id: str) -> Optional[Session]:
        for session in self._sessions:
            if session.id == session_id:
                return session
        return None

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __repr__(self) -> str:
        return f"<SessionRegistry sessions={len(self)}>"
