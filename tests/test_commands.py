"""Tests for SessionCommandHandler (./zen start / cancel)."""

import asyncio

import pytest

from zenbot.zen.commands import SessionCommandHandler
from zenbot.zen.gate import EnforcementGate
from zenbot.zen.notify import CANCEL_USAGE, START_USAGE
from zenbot.zen.sweeper import ExpirationSweeper

from conftest import T0


@pytest.fixture
def handler(registry, sink, directory, clock):
    return SessionCommandHandler(
        registry=registry,
        sink=sink,
        directory=directory,
        initial_grace_s=0.0,
        clock=clock,
    )


class TestStartSession:
    def test_creates_session_ending_after_duration(self, handler, registry, sink):
        session = asyncio.run(handler.start_session("U1", "C1", "1h30m", "deep work"))

        assert session.ends_at == T0 + 5400
        assert session.display_name == "user1"
        assert session.reason == "deep work"
        assert registry.find_active("U1").id == session.id
        assert len(sink.sent) == 1
        text, channel, _ = sink.sent[0]
        assert channel == "C1"
        assert text.startswith("Added a zen for 1h30m (deep work), ends at [")

    def test_initial_grace_sets_first_cooldown(self, registry, sink, directory, clock):
        handler = SessionCommandHandler(registry, sink, directory, initial_grace_s=5.0, clock=clock)
        session = asyncio.run(handler.start_session("U1", "C1", "10m"))
        assert session.cooldown_until == T0 + 5.0
        assert session.reason == ""

    def test_bad_duration_is_reported(self, handler, registry, sink):
        assert asyncio.run(handler.start_session("U1", "C1", "")) is None
        assert len(registry) == 0
        assert "Usage" in sink.texts[0]

    def test_unknown_user_is_reported(self, handler, registry, sink):
        assert asyncio.run(handler.start_session("NOBODY", "C1", "1h")) is None
        assert len(registry) == 0
        assert sink.texts == ["user_not_found: NOBODY"]

    def test_too_long_duration_creates_nothing(self, handler, registry, sink):
        asyncio.run(handler.handle_message("U1", "C1", "./zen 100000000h focus"))

        assert len(registry) == 0
        assert len(sink.texts) == 1
        assert "too long" in sink.texts[0]

    def test_concurrent_starts_are_all_kept(self, handler, registry):
        async def start_many():
            return await asyncio.gather(*[
                handler.start_session(f"U{i}", "C1", "1h", f"r{i}") for i in range(1, 51)
            ])

        sessions = asyncio.run(start_many())

        assert all(s is not None for s in sessions)
        assert len(registry) == 50


class TestCancelSession:
    def test_cancel_matches_case_insensitively(self, handler, registry, sink):
        async def scenario():
            await handler.start_session("U1", "C1", "1h", "focus")
            return await handler.cancel_session("U1", "C1", "FOCUS")

        result = asyncio.run(scenario())

        assert result.count == 1
        assert len(registry) == 0
        assert sink.texts[-2:] == ["(focus) zen canceled.", "<@U1>-- for canceling 1 zens."]

    def test_cancel_all_replies_per_session_then_summary(self, handler, sink):
        async def scenario():
            await handler.start_session("U1", "C1", "1h", "a")
            await handler.start_session("U1", "C1", "2h", "b")
            sink.sent.clear()
            return await handler.cancel_session("U1", "C1")

        result = asyncio.run(scenario())

        assert result.count == 2
        assert result.messages == [
            "(a) zen canceled.",
            "(b) zen canceled.",
            "<@U1>--- for canceling 2 zens.",
        ]
        assert sink.texts == result.messages

    def test_no_sessions_wording(self, handler, sink):
        result = asyncio.run(handler.cancel_session("U1", "C1"))
        assert result.count == 0
        assert sink.texts == ["you do not have any running zens"]

    def test_no_matching_reason_wording(self, handler, sink):
        async def scenario():
            await handler.start_session("U1", "C1", "1h", "focus")
            sink.sent.clear()
            return await handler.cancel_session("U1", "C1", "lunch")

        result = asyncio.run(scenario())
        assert result.count == 0
        assert sink.texts == ["you do not have any such running zens"]


class TestHandleMessage:
    def test_routes_start(self, handler, registry):
        asyncio.run(handler.handle_message("U1", "C1", "./zen 25m pomodoro"))
        session = registry.find_active("U1")
        assert session.reason == "pomodoro"
        assert session.ends_at == T0 + 1500

    def test_routes_cancel(self, handler, registry):
        async def scenario():
            await handler.handle_message("U1", "C1", "./zen 25m pomodoro")
            await handler.handle_message("U1", "C1", "./zen cancel Pomodoro")

        asyncio.run(scenario())
        assert len(registry) == 0

    def test_bad_args_reply_usage(self, handler, registry, sink):
        asyncio.run(handler.handle_message("U1", "C1", "./zen whenever"))
        assert sink.texts == [START_USAGE]
        assert len(registry) == 0

    def test_bad_cancel_reply_cancel_usage(self, handler, sink):
        asyncio.run(handler.handle_message("U1", "C1", "./zen cancelnow"))
        assert sink.texts == [CANCEL_USAGE]

    def test_other_messages_ignored(self, handler, sink):
        asyncio.run(handler.handle_message("U1", "C1", "hello there"))
        assert sink.sent == []


class TestScenario:
    """U1 starts a one hour zen, gets told off once, and the zen expires."""

    def test_full_lifecycle(self, registry, sink, directory, clock):
        cooldown = 10.0
        handler = SessionCommandHandler(registry, sink, directory, initial_grace_s=0.0, clock=clock)
        gate = EnforcementGate(registry, sink, cooldown_s=cooldown, clock=clock)
        sweeper = ExpirationSweeper(registry, sink, clock=clock)

        async def scenario():
            await handler.handle_message("U1", "C1", "./zen 1h focus")
            assert "ends at" in sink.texts[-1]

            clock.now = T0 + 10
            assert await gate.report_activity("U1", "typing") is not None

            clock.now = T0 + 10 + cooldown - 1
            assert await gate.report_activity("U1", "typing") is None

            clock.now = T0 + 3600 + 1
            expired = await sweeper.sweep_once()
            assert len(expired) == 1

            await handler.handle_message("U1", "C1", "./zen cancel focus")

        asyncio.run(scenario())
        assert sink.texts[1] == "<@U1>-- for typing during your zen period (focus)."
        assert sink.texts[2] == "<@U1>: Be free, for your zen (focus) has ended!"
        assert sink.texts[3] == "you do not have any such running zens"
        assert len(sink.texts) == 4
