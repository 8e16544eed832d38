"""Shared fakes for the zen core tests."""

import pytest

from zenbot.zen.errors import DeliveryError, ResolutionError
from zenbot.zen.notify import NotificationSink, UserDirectory
from zenbot.zen.registry import SessionRegistry
from zenbot.zen.session import Session

T0 = 1_700_000_000.0


class FakeClock:
    def __init__(self, now: float = T0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


class RecordingSink(NotificationSink):
    """Collects sent messages; can be told to fail."""

    def __init__(self):
        self.sent: list[tuple[str, str, str]] = []
        self.fail = False

    async def send(self, text: str, channel_id: str, transport: str = "slack") -> None:
        if self.fail:
            raise DeliveryError("sink is down")
        self.sent.append((text, channel_id, transport))

    @property
    def texts(self) -> list[str]:
        return [text for text, _, _ in self.sent]


class FakeDirectory(UserDirectory):
    def __init__(self, names: dict[str, str] | None = None):
        self.names = names or {}

    async def resolve_user(self, user_id: str, transport: str = "slack") -> str:
        try:
            return self.names[user_id]
        except KeyError:
            raise ResolutionError(f"user_not_found: {user_id}") from None


def make_session(
    user_id: str = "U1",
    reason: str = "focus",
    ends_at: float = T0 + 3600,
    cooldown_until: float = 0.0,
    channel_id: str = "C1",
) -> Session:
    return Session(
        user_id=user_id,
        display_name=user_id.lower(),
        channel_id=channel_id,
        reason=reason,
        ends_at=ends_at,
        cooldown_until=cooldown_until,
        created_at=T0,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def directory() -> FakeDirectory:
    return FakeDirectory({f"U{i}": f"user{i}" for i in range(1, 51)})


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry()
